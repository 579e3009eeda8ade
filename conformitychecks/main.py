#!/usr/bin/env python
# -*- coding: utf-8 -*-
# main.py
"""Main file for conformitychecks."""
# Copyright (c) 2009-2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.

import logging, logging.handlers
import argparse, os, sys
from conformitychecks import __version__
from conformitychecks import conformity, guidvh, patient, plugin, preferences, util

def parse_args(argv=None):
    """Parse the command line arguments."""

    parser = argparse.ArgumentParser(prog='conformitychecks',
        description="Calculate the R100 (conformity) and R50 (dose "
                    "gradient) statistics of a treatment plan")
    parser.add_argument("path", type=str,
        help="Folder with the RT Plan, RT Structure Set and RT Dose files")
    parser.add_argument("--plan", type=str, default=None,
        help="SOP Instance UID of the plan to use if there is more than one")
    parser.add_argument("--target", type=str, default=None,
        help="Target structure name or ROI number (default: plan target)")
    parser.add_argument("--reference", type=str, default=None,
        help="Reference structure name or ROI number (default: body)")
    parser.add_argument("--metric", action="append", default=None,
        type=str.upper, choices=list(conformity.METRICS),
        help="Metric to calculate, may be repeated (default: all)")
    parser.add_argument("--rxdose", type=float, default=None,
        help="Prescription dose in cGy overriding the plan prescription")
    parser.add_argument("--no-subfolders", action="store_true", default=False,
        help="Do not search the subfolders of the path")
    parser.add_argument("--plot", type=str, default=None,
        help="Save a DVH plot with the isodose volumes to this file")
    parser.add_argument("--gui", action="store_true", default=False,
        help="Show the results in a dialog instead of the console")
    parser.add_argument("--form", action="store_true", default=False,
        help="With --gui, show the structure and metric selection form")
    parser.add_argument("--datapath", type=str, default=None,
        help="Folder for the preferences, plugins and logs")
    parser.add_argument("--debug", action="store_true", default=False,
        help="Log debug messages to the console and log file")
    parser.add_argument("--version", action="version",
        version="%(prog)s " + __version__)
    return parser.parse_args(argv)

def setup_logging(datapath, debug=False):
    """Set up logging to the console and a rotating log file."""

    logger = logging.getLogger('conformitychecks')
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Enable logging to file
    logfile = os.path.join(datapath, 'logs', 'conformitychecks.log')
    fh = logging.handlers.RotatingFileHandler(
        logfile, maxBytes=524288, backupCount=7)
    fh.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    fh.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.addHandler(fh)

    # Enable logging to the console
    ch = logging.StreamHandler()
    ch.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    ch.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.addHandler(ch)

    return logger

def run_console(args, prefs):
    """Calculate the statistics and print them to the console."""

    metrics = args.metric or prefs.Get('general.calculation.metrics')
    limit = int(prefs.Get('general.calculation.dvh_limit'))
    try:
        context = patient.load_patient_directory(
            args.path, args.plan, args.rxdose, not args.no_subfolders)
        calculator = conformity.get_calculator(context, limit)
        result = conformity.calculate_conformity_statistics(
            context, calculator, args.target, args.reference, metrics,
            prefs.Get('general.calculation.reference_type'), limit)
    except conformity.ConformityError as e:
        print(e.message, file=sys.stderr)
        return 1
    except (IOError, ValueError) as e:
        print(str(e), file=sys.stderr)
        return 1

    print(conformity.format_statistics(result))

    if args.plot:
        guidvh.plot_conformity_dvh(calculator,
            context.structures[result.reference_roi],
            context.structures[result.target_roi],
            [conformity.METRICS[m] for m in result.metrics], args.plot)
    return 0

def run_gui(args, prefs, datapath):
    """Show the results using the conformity checks plugins."""

    import wx

    app = wx.App(False)
    app.SetAppName("conformitychecks")

    plugins = plugin.import_plugins(os.path.join(datapath, 'plugins'))
    name = 'Conformity Checks Form' if args.form else 'Conformity Checks'
    p = plugin.get_plugin(plugins, name,
                          prefs.Get('general.plugins.disabled_list') or [])
    if p is None:
        print("The " + name + " plugin could not be loaded.", file=sys.stderr)
        return 1
    # The plugin needs to exist before the patient data is published
    instance = p.plugin(None)

    try:
        patient.load_patient_directory(
            args.path, args.plan, args.rxdose, not args.no_subfolders)
    except (IOError, ValueError) as e:
        wx.MessageBox(str(e), "Conformity Checks", wx.OK|wx.ICON_ERROR)
        return 1

    instance.pluginMenu(None)
    return 0

def main(argv=None):
    """Run conformitychecks with the given command line arguments."""

    args = parse_args(argv)
    datapath = util.make_data_dirs(args.datapath or util.get_data_dir())
    prefs = preferences.PreferencesManager(datapath)
    logger = setup_logging(
        datapath, args.debug or prefs.Get('general.logging.debug'))
    logger.debug("conformitychecks %s using %s", __version__, datapath)

    if args.gui:
        return run_gui(args, prefs, datapath)
    return run_console(args, prefs)

def start():
    sys.exit(main())

if __name__ == '__main__':
    start()
