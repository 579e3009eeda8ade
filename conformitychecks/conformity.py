#!/usr/bin/env python
# -*- coding: utf-8 -*-
# conformity.py
"""Calculate the R100 (conformity) and R50 (dose gradient) of a plan."""
# Copyright (c) 2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.
#
# R100 = V(reference structure receiving >= 100% of the rx dose) / V(target)
# R50  = V(reference structure receiving >=  50% of the rx dose) / V(target)
# The reference structure is usually the body (EXTERNAL) contour.

import logging
logger = logging.getLogger('conformitychecks.conformity')
import traceback
from collections import OrderedDict
from conformitychecks.dosevolume import DoseVolumeCalculator

# Isodose level (percent of the rx dose) for each metric
METRICS = OrderedDict([('R100', 100), ('R50', 50)])

# Labels and number of decimals used to display each metric
LABELS = {'R100': 'R100 (CI):\t\t', 'R50': 'R50 (Gradient):\t'}
DECIMALS = {'R100': 1, 'R50': 2}

############################## Exceptions #####################################

class ConformityError(Exception):
    """The statistics can't be calculated for the current context.

    The message is meant to be shown to the user."""

    message = "Sorry, the conformity statistics could not be calculated"

    def __init__(self, message=None):
        if message is None:
            message = self.message
        super().__init__(message)
        self.message = message

class PatientNotLoadedError(ConformityError):
    message = "Please open a patient"

class PlanDoseError(ConformityError):
    message = "Please open a plan and ensure it has calculated dose"

class StructureSetError(ConformityError):
    message = "Sorry, the selected plan does not have a structure set"

class StructureNotFoundError(ConformityError):
    message = "Please select a target volume"

class PrescriptionError(ConformityError):
    message = "Please ensure the plan has a prescription dose"

class EmptyTargetError(ConformityError):
    message = "Sorry, the target volume does not contain any volume"

class ConformityResult:
    """The conformity statistics of a plan."""

    def __init__(self, patient_id, plan_id, max_dose, target, reference,
                 target_volume, metrics, target_roi=None, reference_roi=None):

        self.patient_id = patient_id
        self.plan_id = plan_id
        self.max_dose = max_dose
        self.target = target
        self.reference = reference
        self.target_volume = target_volume
        self.metrics = metrics
        self.target_roi = target_roi
        self.reference_roi = reference_roi

    def __getitem__(self, metric):
        return self.metrics[metric]

    def __repr__(self):
        values = ', '.join('%s=%.3f' % (k, v) for k, v in self.metrics.items())
        return '<ConformityResult %s / %s: %s>' % (
            self.plan_id, self.target, values)

############################## Validation #####################################

def validate_patient(context):
    """Validate that a patient is open."""

    if (context is None) or (context.patient is None):
        raise PatientNotLoadedError()

def validate_plan_and_plan_dose(context):
    """Validate that a plan is open and that its dose is calculated."""

    if (context.plan is None) or not context.is_dose_valid:
        raise PlanDoseError()

def validate_structure_set(context):
    """Validate that the plan has a structure set."""

    if not context.has_structure_set:
        raise StructureSetError()

def validate_prescription(context):
    """Validate that the plan has a prescription dose to scale the isodoses."""

    if not context.plan.get('rxdose'):
        raise PrescriptionError()

def validate_structure_exists(structure, message):
    """Validate that the structure was found."""

    if structure is None:
        raise StructureNotFoundError(message)

def check_metrics(metrics):
    """Return the requested metric names in display order."""

    selected = set(m.upper() for m in metrics)
    unknown = selected.difference(METRICS)
    if len(unknown):
        raise ValueError("Unknown metric(s): " + ', '.join(sorted(unknown)))
    if not len(selected):
        raise ValueError("At least one metric needs to be selected")
    return [m for m in METRICS if m in selected]

############################## Structures #####################################

def get_structure(context, key):
    """Return the structure with the given ROI number or name."""

    if isinstance(key, dict):
        return key
    if isinstance(key, int):
        return context.structures.get(key)
    if str(key).isdigit() and (int(key) in context.structures):
        return context.structures[int(key)]
    for structure in context.structures.values():
        if (structure['name'] == key):
            return structure
    # Otherwise fall back to a case insensitive match
    for structure in context.structures.values():
        if (structure['name'].lower() == str(key).lower()):
            return structure
    return None

def get_plan_target_volume(context):
    """Return the plan's target volume structure."""

    target = context.plan.get('target') if context.plan else None
    if target is None:
        return None
    return context.structures.get(target)

def get_body_structure(context, reference_type='EXTERNAL'):
    """Return the first structure of the given type, i.e. the body."""

    for number in sorted(context.structures):
        structure = context.structures[number]
        if ((structure.get('type') or '').upper() == reference_type.upper()):
            return structure
    return None

############################## Calculation ####################################

def validate_context(context):
    """Validate that the context has everything needed for the statistics."""

    validate_patient(context)
    validate_plan_and_plan_dose(context)
    validate_structure_set(context)
    validate_prescription(context)

def get_calculator(context, limit=50000):
    """Return a DoseVolumeCalculator for the plan of a validated context."""

    validate_context(context)
    return DoseVolumeCalculator(context.rtss, context.rtdose,
                                context.plan['rxdose'], limit)

def calculate_ratio(calculator, reference, target, isodose):
    """Return the ratio of the isodose volume within the reference structure
        to the target volume.

    :param isodose:     Isodose level in percent of the rx dose."""

    target_volume = calculator.structure_volume(target['id'])
    if not (target_volume > 0):
        raise EmptyTargetError(
            "Sorry, the target volume " + target['name'] +
            " does not contain any volume")
    return calculator.volume_at_dose(reference['id'], isodose, '%') / target_volume

def calculate_r100(calculator, reference, target):
    """Calculate the ratio of the 100% isodose volume to the target volume."""

    return calculate_ratio(calculator, reference, target, METRICS['R100'])

def calculate_r50(calculator, reference, target):
    """Calculate the ratio of the 50% isodose volume to the target volume."""

    return calculate_ratio(calculator, reference, target, METRICS['R50'])

def calculate_conformity_statistics(context, calculator=None, target=None,
        reference=None, metrics=('R100', 'R50'), reference_type='EXTERNAL',
        limit=50000):
    """Calculate the selected conformity statistics for the given context.

    :param target:      Target structure, ROI number or name. Defaults to the
                        plan's target volume.
    :param reference:   Reference structure, ROI number or name. Defaults to
                        the first structure of reference_type.
    :param calculator:  DoseVolumeCalculator to use, created from the
                        context if not given.
    :return:            ConformityResult."""

    metrics = check_metrics(metrics)

    if calculator is None:
        calculator = get_calculator(context, limit)
    else:
        validate_context(context)

    if target is None:
        target = get_plan_target_volume(context)
    else:
        target = get_structure(context, target)
    validate_structure_exists(target, "Please select a target volume")

    if reference is None:
        reference = get_body_structure(context, reference_type)
    else:
        reference = get_structure(context, reference)
    validate_structure_exists(reference, "Please select a reference structure")

    logger.debug("Calculating %s of %s within %s", ', '.join(metrics),
                 target['name'], reference['name'])
    ratios = OrderedDict()
    for metric in metrics:
        ratios[metric] = calculate_ratio(
            calculator, reference, target, METRICS[metric])

    result = ConformityResult(
        patient_id=context.patient['id'],
        plan_id=context.plan.get('label', ''),
        max_dose=context.dose_max,
        target=target['name'],
        reference=reference['name'],
        target_volume=calculator.structure_volume(target['id']),
        metrics=ratios,
        target_roi=target['id'],
        reference_roi=reference['id'])
    logger.info("%r", result)
    return result

############################## Display ########################################

def format_dose(dose):
    """Format a dose in Gy for display."""

    if dose is None:
        return 'N/A'
    return '%.2f Gy' % dose

def format_statistics(result, structures=True):
    """Format the conformity statistics for display to the user.

    :param structures:  Whether to include the target and reference names."""

    lines = ['Patient Id:\t\t' + str(result.patient_id),
             'Plan Id:\t\t' + str(result.plan_id),
             'Max Dose:\t\t' + format_dose(result.max_dose)]
    if structures:
        lines.append('Target:\t\t\t' + str(result.target))
        lines.append('Reference:\t\t' + str(result.reference))
    for metric, value in result.metrics.items():
        lines.append(LABELS[metric] + '%.*f' % (DECIMALS[metric], value))
    return '\n\n'.join(lines)

def format_error(exc):
    """Format an unexpected error along with its traceback for display."""

    trace = ''.join(traceback.format_tb(exc.__traceback__))
    return "Sorry, something went wrong.\n\n%s\n\n%s" % (exc, trace)
