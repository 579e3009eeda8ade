#!/usr/bin/env python
# -*- coding: utf-8 -*-
# patient.py
"""Find, select and parse the DICOM RT data of a treatment plan."""
# Copyright (c) 2009-2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.

import logging
logger = logging.getLogger('conformitychecks.patient')
import os
from pubsub import pub
from pydicom.errors import InvalidDicomError
from dicompylercore import dicomparser

class PlanContext:
    """The patient, plan, structure set and dose currently open."""

    def __init__(self, patient=None, plan=None, structures=None,
                 rtss=None, rtdose=None):

        self.patient = patient
        self.plan = plan
        self.structures = structures if structures else {}
        self.rtss = rtss
        self.rtdose = rtdose
        # Maximum dose of the dose grid in Gy
        self.dose_max = None

    @property
    def has_structure_set(self):
        return self.rtss is not None

    @property
    def is_dose_valid(self):
        """Whether the plan has a calculated dose grid."""

        return (self.rtdose is not None) and ('PixelData' in self.rtdose)

def find_patient_files(path, subfolders=True, callback=None):
    """Search the given path for RT Plan, RT Structure Set and RT Dose files.

    :param callback:    Called with (num, length, message) for progress.
    :return:            Dictionary of lists of datasets keyed by
                        'rtplan', 'rtss' and 'rtdose'."""

    if not os.path.isdir(path):
        raise IOError("The DICOM import location does not exist: " + path)

    files = []
    for root, dirs, filenames in os.walk(path):
        files += [os.path.join(root, f) for f in sorted(filenames)]
        if not subfolders:
            break

    found = {'rtplan': [], 'rtss': [], 'rtdose': []}
    for n, filename in enumerate(files):
        try:
            logger.debug("Reading: %s", filename)
            dp = dicomparser.DicomParser(filename)
        except (AttributeError, EOFError, IOError, KeyError, InvalidDicomError):
            logger.info("%s is not a valid DICOM file.", filename)
        else:
            modality = dp.ds.get('Modality', '')
            if (modality == 'RTSTRUCT'):
                found['rtss'].append(dp.ds)
            elif (modality == 'RTPLAN'):
                found['rtplan'].append(dp.ds)
            elif (modality == 'RTDOSE'):
                found['rtdose'].append(dp.ds)
            else:
                logger.info("%s is a %s file and is not currently supported.",
                            filename, modality or 'non-RT')
        if callback:
            callback(n, len(files), 'Searching for plan data...')

    logger.debug("Found %d plan(s), %d structure set(s) and %d dose(s)",
                 len(found['rtplan']), len(found['rtss']), len(found['rtdose']))
    return found

def get_referenced_structure_set(ds):
    """Return the SOP Instance UID of the referenced structure set."""

    if "ReferencedStructureSetSequence" in ds:
        return ds.ReferencedStructureSetSequence[0].ReferencedSOPInstanceUID
    else:
        return ''

def get_referenced_rtplan(ds):
    """Return the SOP Instance UID of the referenced RT plan."""

    if "ReferencedRTPlanSequence" in ds:
        return ds.ReferencedRTPlanSequence[0].ReferencedSOPInstanceUID
    else:
        return ''

def get_plan_target(ds):
    """Return the ROI number of the plan's target volume, if one is set."""

    if "DoseReferenceSequence" in ds:
        for item in ds.DoseReferenceSequence:
            if ((item.get('DoseReferenceStructureType') == 'VOLUME') and
                ('ReferencedROINumber' in item)):
                return int(item.ReferencedROINumber)
    return None

def select_plan_data(found, plan_uid=None):
    """Choose a plan with its structure set and dose from the found data."""

    ptdata = {}

    plans = found['rtplan']
    if plan_uid:
        plans = [p for p in plans if p.SOPInstanceUID == plan_uid]
        if not len(plans):
            raise ValueError("Plan " + plan_uid + " was not found.")
    if (len(plans) > 1):
        logger.warning("Found %d plans, using %s", len(plans),
                       plans[0].get('RTPlanLabel', plans[0].SOPInstanceUID))
    if len(plans):
        ptdata['rtplan'] = plans[0]
    rtplan = ptdata.get('rtplan')

    structuresets = found['rtss']
    if rtplan is not None:
        uid = get_referenced_structure_set(rtplan)
        matches = [s for s in structuresets if s.SOPInstanceUID == uid]
        if len(matches):
            structuresets = matches
        elif len(structuresets):
            logger.warning("The structure set referenced by the plan was "
                           "not found, using the first structure set")
    if len(structuresets):
        ptdata['rtss'] = structuresets[0]

    doses = found['rtdose']
    if rtplan is not None:
        matches = [d for d in doses
                   if get_referenced_rtplan(d) == rtplan.SOPInstanceUID]
        # A single unreferenced dose is assumed to belong to the plan
        if len(matches) or (len(doses) == 1):
            doses = matches or doses
        else:
            doses = []
    # Prefer the plan dose over individual beam or fraction doses
    doses = sorted(doses,
                   key=lambda d: not (d.get('DoseSummationType') == 'PLAN'))
    if len(doses):
        ptdata['rtdose'] = doses[0]

    return ptdata

def load_patient_data(ptdata, rxdose=None, callback=None):
    """Parse the raw plan data into a PlanContext.

    :param rxdose:      Prescription dose in cGy overriding the plan's.
    :param callback:    Called with (num, length, message) for progress."""

    if callback:
        callback(0, 0, 'Processing patient data...')
    context = PlanContext()
    if 'rtss' in ptdata:
        if callback:
            callback(20, 100, 'Processing RT Structure Set...')
        dp = dicomparser.DicomParser(ptdata['rtss'])
        if context.patient is None:
            context.patient = dp.GetDemographics()
        context.structures = dp.GetStructures()
        context.rtss = ptdata['rtss']
    if 'rtplan' in ptdata:
        if callback:
            callback(40, 100, 'Processing RT Plan...')
        dp = dicomparser.DicomParser(ptdata['rtplan'])
        if context.patient is None:
            context.patient = dp.GetDemographics()
        context.plan = dp.GetPlan()
        context.plan['id'] = ptdata['rtplan'].SOPInstanceUID
        context.plan['target'] = get_plan_target(ptdata['rtplan'])
    if 'rtdose' in ptdata:
        if callback:
            callback(60, 100, 'Processing RT Dose...')
        dp = dicomparser.DicomParser(ptdata['rtdose'])
        if context.patient is None:
            context.patient = dp.GetDemographics()
        context.rtdose = ptdata['rtdose']
        if context.is_dose_valid:
            dd = dp.GetDoseData()
            context.dose_max = dd['dosemax'] * dd['dosegridscaling']
    if rxdose:
        if context.plan is None:
            context.plan = {'id': '', 'label': 'N/A', 'name': '',
                            'target': None}
        context.plan['rxdose'] = rxdose
    if callback:
        callback(100, 100, 'Done')

    pub.sendMessage('patient.updated.parsed_data', msg=context)
    return context

def load_patient_directory(path, plan_uid=None, rxdose=None, subfolders=True,
                           callback=None):
    """Find, select and parse the plan data in the given directory."""

    found = find_patient_files(path, subfolders, callback)
    ptdata = select_plan_data(found, plan_uid)
    pub.sendMessage('patient.updated.raw_data', msg=ptdata)
    return load_patient_data(ptdata, rxdose, callback)
