#!/usr/bin/env python
# -*- coding: utf-8 -*-
# conformityform.py
"""conformitychecks plugin that calculates the R100 and / or R50 for a
    selected target and reference structure."""
# Copyright (c) 2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.

import logging
logger = logging.getLogger('conformitychecks.plugins.conformityform')
import wx
from pubsub import pub
from conformitychecks import conformity, guiutil

def pluginProperties():
    """Properties of the plugin."""

    props = {}
    props['name'] = 'Conformity Checks Form'
    props['menuname'] = "Conformity Checks &Form..."
    props['description'] = "Calculate the R100 and R50 for a selected " + \
        "target and reference structure"
    props['author'] = 'Aditya Panchal'
    props['version'] = "0.4.0"
    props['plugin_type'] = 'menu'
    props['plugin_version'] = 1
    props['min_dicom'] = ['rtss', 'rtdose', 'rtplan']
    props['recommended_dicom'] = ['rtss', 'rtdose', 'rtplan']

    return props

class plugin:
    """Shows the conformity checks form for the current patient."""

    def __init__(self, parent):

        self.parent = parent
        self.data = None
        self.prefs = {'reference_type': 'EXTERNAL', 'dvh_limit': 50000,
                      'metrics': ['R100', 'R50']}

        # Set up pubsub
        pub.subscribe(self.OnUpdatePatient, 'patient.updated.parsed_data')
        pub.subscribe(self.OnCalculationPrefsChange, 'general.calculation')
        pub.sendMessage('preferences.requested.values', msg='general.calculation')

    def OnUpdatePatient(self, msg):
        """Update and load the patient data."""

        self.data = msg

    def OnCalculationPrefsChange(self, msg, topic=pub.AUTO_TOPIC):
        """When the calculation preferences change, update the values."""

        self.prefs[topic.getName().split('.')[-1]] = msg

    def pluginMenu(self, evt=None):
        """Validate the patient data and show the form."""

        try:
            conformity.validate_patient(self.data)
            conformity.validate_plan_and_plan_dose(self.data)
            conformity.validate_structure_set(self.data)
        except conformity.ConformityError as e:
            guiutil.show_message(self.parent, e.message, "Conformity Checks",
                                 wx.OK|wx.ICON_WARNING)
            return None

        dlgConformity = ConformityDialog(self.parent, self.data,
            self.prefs['reference_type'], int(self.prefs['dvh_limit']),
            self.prefs['metrics'])
        dlgConformity.ShowModal()
        result = dlgConformity.result
        dlgConformity.Destroy()
        return result

class ConformityDialog(wx.Dialog):
    """Form to select the target, reference structure and the metrics."""

    def __init__(self, parent, context, reference_type='EXTERNAL',
                 limit=50000, metrics=('R100', 'R50')):
        wx.Dialog.__init__(self, parent, -1, "Conformity Checks",
            style=wx.DEFAULT_DIALOG_STYLE|wx.RESIZE_BORDER)

        self.context = context
        self.reference_type = reference_type
        self.limit = limit
        self.calculator = None
        self.result = None

        # Initialize the selector controls
        self.lblTarget = wx.StaticText(self, -1, "Target structure:")
        self.choiceTarget = wx.Choice(self, -1)
        self.lblReference = wx.StaticText(self, -1, "Reference structure:")
        self.choiceReference = wx.Choice(self, -1)
        self.checkMetrics = {}
        for metric in conformity.METRICS:
            self.checkMetrics[metric] = wx.CheckBox(
                self, -1, conformity.LABELS[metric].strip())
            self.checkMetrics[metric].SetValue(metric in metrics)
        self.btnCalculate = wx.Button(self, -1, "Calculate")
        self.btnClose = wx.Button(self, wx.ID_CLOSE)
        self.lblResult = wx.StaticText(self, -1, "")

        controls = [self.lblTarget, self.choiceTarget, self.lblReference,
                    self.choiceReference, self.lblResult]
        controls += list(self.checkMetrics.values())
        for control in controls:
            guiutil.adjust_control(control)

        # Setup the layout for the dialog
        grid = wx.FlexGridSizer(cols=2, vgap=6, hgap=6)
        grid.AddGrowableCol(1)
        grid.Add(self.lblTarget, 0, flag=wx.ALIGN_CENTER_VERTICAL)
        grid.Add(self.choiceTarget, 1, flag=wx.EXPAND)
        grid.Add(self.lblReference, 0, flag=wx.ALIGN_CENTER_VERTICAL)
        grid.Add(self.choiceReference, 1, flag=wx.EXPAND)
        metricGrid = wx.BoxSizer(wx.HORIZONTAL)
        for checkbox in self.checkMetrics.values():
            metricGrid.Add(checkbox, 0, flag=wx.RIGHT, border=8)
        buttonGrid = wx.BoxSizer(wx.HORIZONTAL)
        buttonGrid.Add(self.btnCalculate, 0, flag=wx.RIGHT, border=6)
        buttonGrid.Add(self.btnClose, 0)
        mainGrid = wx.BoxSizer(wx.VERTICAL)
        mainGrid.Add(grid, 0, flag=wx.EXPAND|wx.ALL, border=8)
        mainGrid.Add(metricGrid, 0, flag=wx.ALL, border=8)
        mainGrid.Add(self.lblResult, 1, flag=wx.EXPAND|wx.ALL, border=8)
        mainGrid.Add(buttonGrid, 0, flag=wx.ALIGN_RIGHT|wx.ALL, border=8)
        self.SetSizerAndFit(mainGrid)

        # Bind ui events to the proper methods
        self.Bind(wx.EVT_BUTTON, self.OnCalculate, self.btnCalculate)
        self.Bind(wx.EVT_BUTTON, self.OnClose, self.btnClose)
        self.Bind(wx.EVT_CHECKBOX, self.OnToggleMetric)

        self.PopulateStructureChoices()
        self.OnToggleMetric()

    def PopulateStructureChoices(self):
        """Load the plan structure list, selecting the plan target and body."""

        structures = self.context.structures
        numbers = sorted(structures)
        names = [structures[n]['name'] for n in numbers]

        target = conformity.get_plan_target_volume(self.context)
        reference = conformity.get_body_structure(
            self.context, self.reference_type)
        guiutil.SetItemsList(self.choiceTarget, names, numbers,
            numbers.index(target['id']) if target else 0)
        guiutil.SetItemsList(self.choiceReference, names, numbers,
            numbers.index(reference['id']) if reference else 0)

    def GetSelectedMetrics(self):
        """Return the names of the checked metrics."""

        return [m for m, c in self.checkMetrics.items() if c.IsChecked()]

    def OnToggleMetric(self, evt=None):
        """Only allow a calculation if at least one metric is checked."""

        self.btnCalculate.Enable(len(self.GetSelectedMetrics()) > 0)

    def OnCalculate(self, evt):
        """Calculate and display the selected statistics."""

        target = guiutil.GetSelectedData(self.choiceTarget)
        reference = guiutil.GetSelectedData(self.choiceReference)
        busy = wx.BusyCursor()
        try:
            # Keep the calculator so the DVHs are only calculated once
            if self.calculator is None:
                self.calculator = conformity.get_calculator(
                    self.context, self.limit)
            self.result = conformity.calculate_conformity_statistics(
                self.context, self.calculator, target, reference,
                self.GetSelectedMetrics(), self.reference_type, self.limit)
        except conformity.ConformityError as e:
            self.lblResult.SetLabel(e.message)
        except Exception as e:
            logger.exception("Unable to calculate the conformity statistics")
            del busy
            guiutil.show_message(self, conformity.format_error(e),
                                 "Conformity Checks", wx.OK|wx.ICON_ERROR)
            raise
        else:
            self.lblResult.SetLabel(
                conformity.format_statistics(self.result))
        self.Fit()
        self.Layout()

    def OnClose(self, evt):
        """Close the form."""

        self.EndModal(wx.ID_CLOSE)
