#!/usr/bin/env python
# -*- coding: utf-8 -*-
# preferences.py
"""Preferences manager for conformitychecks."""
# Copyright (c) 2011-2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.

import logging
logger = logging.getLogger('conformitychecks.preferences')
import json, os
from pubsub import pub
from conformitychecks import util

# Preference settings with their default values
preftemplate = [
    {'name': 'Reference structure type',
     'callback': 'general.calculation.reference_type',
     'default': 'EXTERNAL'},
    {'name': 'DVH dose limit (cGy)',
     'callback': 'general.calculation.dvh_limit',
     'default': 50000},
    {'name': 'Metrics',
     'callback': 'general.calculation.metrics',
     'default': ['R100', 'R50']},
    {'name': 'Debug logging',
     'callback': 'general.logging.debug',
     'default': False}]

class PreferencesManager():
    """Class to load, save and publish the preferences."""

    def __init__(self, datapath=None, filename='preferences.txt',
                 template=None):

        # Setup user pubsub methods
        pub.subscribe(self.GetPreferenceValue, 'preferences.requested.value')
        pub.subscribe(self.GetPreferenceValues, 'preferences.requested.values')
        pub.subscribe(self.SetPreferenceValue, 'preferences.updated.value')

        # Initialize variables
        self.preftemplate = template if template else preftemplate
        self.values = {}
        if datapath is None:
            datapath = util.get_data_dir()
        self.filename = os.path.join(datapath, filename)
        self.LoadPreferenceValues()

    def LoadPreferenceValues(self):
        """Load the saved preference values from disk."""

        if os.path.isfile(self.filename):
            with open(self.filename, mode='r') as f:
                try:
                    self.values = json.load(f)
                except ValueError:
                    logger.warning("Unable to read preferences from %s",
                                   self.filename)
                    self.values = {}
        else:
            self.values = {}

    def SavePreferenceValues(self):
        """Save the preference values to disk."""

        folder = os.path.dirname(self.filename)
        if folder and not os.path.isdir(folder):
            os.makedirs(folder)
        with open(self.filename, mode='w') as f:
            json.dump(self.values, f, sort_keys=True, indent=4)

    def GetSetting(self, callback):
        """Return the template entry for the given setting."""

        for setting in self.preftemplate:
            if (setting['callback'] == callback):
                return setting
        return {'callback': callback, 'default': None}

    def Get(self, callback):
        """Return the saved or default value for the given setting."""

        return GetValue(self.values, self.GetSetting(callback))

    def GetPreferenceValue(self, msg):
        """Publish the requested value for a single preference setting."""

        pub.sendMessage(msg, msg=self.Get(msg))

    def GetPreferenceValues(self, msg):
        """Publish the requested values for preference setting group."""

        for setting in self.preftemplate:
            if setting['callback'].startswith(msg + '.'):
                pub.sendMessage(setting['callback'],
                                msg=GetValue(self.values, setting))

    def SetPreferenceValue(self, msg):
        """Set the preference value for the given preference setting."""

        for setting, value in msg.items():
            SetValue(self.values, setting, value)
        self.SavePreferenceValues()

############################ Get/Set Value Functions ###########################

def GetValue(values, setting):
    """Get the saved setting value."""

    # Look for the saved value and return it if it exists
    query = setting['callback'].split('.')
    value = setting['default']
    if query[0] in values:
        if query[1] in values[query[0]]:
            if query[2] in values[query[0]][query[1]]:
                value = values[query[0]][query[1]][query[2]]
    # Otherwise return the default value
    return value

def SetValue(values, setting, value):
    """Save the new setting value."""

    # Look if a prior value exists and replace it
    query = setting.split('.')
    if query[0] in values:
        if query[1] in values[query[0]]:
            values[query[0]][query[1]][query[2]] = value
        else:
            values[query[0]].update({query[1]:{query[2]:value}})
    else:
        values[query[0]] = {query[1]:{query[2]:value}}
