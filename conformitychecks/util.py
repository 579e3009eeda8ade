#!/usr/bin/env python
# -*- coding: utf-8 -*-
# util.py
"""Several utility functions that don't really belong anywhere."""
# Copyright (c) 2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.

import os, sys

def platform():
    if sys.platform.startswith('win'):
        return 'windows'
    elif sys.platform.startswith('darwin'):
        return 'mac'
    return 'linux'

def GetBasePluginsPath(resource):
    """Return the specified item from the base plugins folder."""

    if main_is_frozen():
        if (platform() == 'mac'):
            return os.path.join((os.path.join(get_main_dir(), '../PlugIns')), resource)
    return os.path.join((os.path.join(get_main_dir(), 'baseplugins')), resource)

def main_is_frozen():
    # pyinstaller and py2exe both set sys.frozen
    return hasattr(sys, "frozen")

def get_main_dir():
    if main_is_frozen():
        return os.path.dirname(sys.executable)
    return os.path.dirname(__file__)

def get_data_dir():
    """Returns the data location for the application.

    The location can be overridden with the CONFORMITYCHECKS_DATA
    environment variable."""

    datapath = os.environ.get('CONFORMITYCHECKS_DATA')
    if not datapath:
        if (platform() == 'windows') and ('APPDATA' in os.environ):
            datapath = os.path.join(os.environ['APPDATA'], 'conformitychecks')
        else:
            datapath = os.path.join(os.path.expanduser('~'), '.conformitychecks')
    return datapath

def make_data_dirs(datapath):
    """Create the data, plugin and log folders if they don't exist."""

    for folder in (datapath,
                   os.path.join(datapath, 'plugins'),
                   os.path.join(datapath, 'logs')):
        if not os.path.isdir(folder):
            os.makedirs(folder)
    return datapath
