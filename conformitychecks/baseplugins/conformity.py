#!/usr/bin/env python
# -*- coding: utf-8 -*-
# conformity.py
"""conformitychecks plugin that calculates the R100 and R50 of the plan's
    target volume and displays them in a message dialog."""
# Copyright (c) 2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.

import logging
logger = logging.getLogger('conformitychecks.plugins.conformity')
import wx
from pubsub import pub
from conformitychecks import conformity, guiutil

def pluginProperties():
    """Properties of the plugin."""

    props = {}
    props['name'] = 'Conformity Checks'
    props['menuname'] = "&Conformity Checks"
    props['description'] = "Calculate the R100 and R50 of the plan target volume"
    props['author'] = 'Aditya Panchal'
    props['version'] = "0.4.0"
    props['plugin_type'] = 'menu'
    props['plugin_version'] = 1
    props['min_dicom'] = ['rtss', 'rtdose', 'rtplan']
    props['recommended_dicom'] = ['rtss', 'rtdose', 'rtplan']

    return props

class plugin:
    """Calculates and displays the R100 and R50 to the user."""

    def __init__(self, parent):

        self.parent = parent
        self.data = None
        self.reference_type = 'EXTERNAL'
        self.dvh_limit = 50000

        # Set up pubsub
        pub.subscribe(self.OnUpdatePatient, 'patient.updated.parsed_data')
        pub.subscribe(self.OnCalculationPrefsChange, 'general.calculation')
        pub.sendMessage('preferences.requested.values', msg='general.calculation')

    def OnUpdatePatient(self, msg):
        """Update and load the patient data."""

        self.data = msg

    def OnCalculationPrefsChange(self, msg, topic=pub.AUTO_TOPIC):
        """When the calculation preferences change, update the values."""

        setting = topic.getName().split('.')[-1]
        if (setting == 'reference_type'):
            self.reference_type = msg
        elif (setting == 'dvh_limit'):
            self.dvh_limit = int(msg)

    def pluginMenu(self, evt=None):
        """Calculate the statistics using the plan target and the body."""

        try:
            result = conformity.calculate_conformity_statistics(
                self.data, reference_type=self.reference_type,
                limit=self.dvh_limit)
        except conformity.ConformityError as e:
            logger.info(e.message)
            guiutil.show_message(self.parent, e.message, "Conformity Checks",
                                 wx.OK|wx.ICON_WARNING)
            return None
        except Exception as e:
            logger.exception("Unable to calculate the conformity statistics")
            guiutil.show_message(self.parent, conformity.format_error(e),
                                 "Conformity Checks", wx.OK|wx.ICON_ERROR)
            raise

        # display stats to user
        guiutil.show_message(self.parent,
                             conformity.format_statistics(result, False),
                             "Conformity Checks")
        return result
