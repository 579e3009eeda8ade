#!/usr/bin/env python
# -*- coding: utf-8 -*-
# plugin.py
"""Plugin manager for conformitychecks."""
# Copyright (c) 2010-2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.

import logging
logger = logging.getLogger('conformitychecks.plugin')
import importlib.util, os
from conformitychecks import util

def import_plugins(userpath=None, basepath=None):
    """Find and import available plugins."""

    # Get the base plugin path
    if (basepath == None):
        basepath = util.GetBasePluginsPath('')
    # Get the user plugin path if it has not been set
    if (userpath == None):
        userpath = os.path.join(util.get_data_dir(), 'plugins')
    # Get the list of possible plugins from both paths
    possibleplugins = []
    for location, path in (('user', userpath), ('base', basepath)):
        if not os.path.isdir(path):
            continue
        for i in sorted(os.listdir(path)):
            possibleplugins.append(
                {'plugin': i, 'location': location, 'path': path})

    modules = []
    plugins = []
    for p in possibleplugins:
        module = p['plugin'].split('.')[0]
        if module not in modules and not ((module == "__init__") or (module == "")):
            filename = find_module(module, p['path'])
            if filename is None:
                # Not able to find module so pass
                continue
            # only try to import the module once
            modules.append(module)
            spec = importlib.util.spec_from_file_location(module, filename)
            m = importlib.util.module_from_spec(spec)
            # Try to import the module if no exception occurred
            try:
                spec.loader.exec_module(m)
            except Exception:
                logger.exception("%s could not be loaded", module)
            else:
                plugins.append({'plugin': m,
                                'location': p['location']})
                logger.debug("%s loaded", module)
    return plugins

def find_module(module, path):
    """Return the source file for a single file or package plugin."""

    filename = os.path.join(path, module + '.py')
    if os.path.isfile(filename):
        return filename
    filename = os.path.join(path, module, '__init__.py')
    if os.path.isfile(filename):
        return filename
    return None

def get_plugin(plugins, name, pluginsDisabled=[]):
    """Return the plugin module with the given name if it is enabled."""

    for plugin in plugins:
        p = plugin['plugin']
        # Skip plugin if it doesn't contain the required dictionary
        # or actually is a proper Python module
        if not hasattr(p, 'pluginProperties'):
            continue
        if (p.__name__ in pluginsDisabled):
            continue
        props = p.pluginProperties()
        if (props['name'] == name) or (p.__name__ == name):
            return p
    return None
