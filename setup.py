#!/usr/bin/env python
# -*- coding: utf-8 -*-
# setup.py
"""Setup script for conformitychecks."""
# Copyright (c) 2012-2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.

from setuptools import setup, find_packages

requires = [
    'matplotlib>=1.3.0',
    'numpy>=1.2.1',
    'dicompyler-core>=0.5.2',
    'pydicom>=1.0,<3',
    'pypubsub>=4.0.0']

setup(
    name="conformitychecks",
    version = "0.4.0",
    include_package_data = True,
    packages = find_packages(exclude=['test', 'test.*']),
    package_data = {'conformitychecks':
        ['*.txt', 'baseplugins/*.py']},
    zip_safe = False,
    python_requires = '>=3.6',
    install_requires = requires,
    extras_require = {
        'gui': ['wxPython>=4.0.0b2'],
        'test': ['pytest>=3.0']},
    entry_points={'console_scripts':['conformitychecks = conformitychecks.main:start']},

    # metadata for upload to PyPI
    author = "Aditya Panchal",
    author_email = "apanchal@bastula.org",
    description = "R100 and R50 conformity statistics for DICOM RT " + \
        "treatment plans.",
    license = "BSD License",
    keywords = "radiation therapy conformity index gradient dicom dicom-rt",
    classifiers = [
        "License :: OSI Approved :: BSD License",
        "Intended Audience :: Healthcare Industry",
        "Intended Audience :: Science/Research",
        "Development Status :: 4 - Beta",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "Topic :: Scientific/Engineering :: Medical Science Apps.",
        "Topic :: Scientific/Engineering :: Physics"],
    long_description = """
    conformitychecks
    ================

    conformitychecks calculates two plan quality metrics of a radiation
    therapy plan from its DICOM RT Plan, RT Structure Set and RT Dose:

    - R100, the ratio of the volume receiving the prescription dose to the
      target volume (basic conformity index)
    - R50, the ratio of the volume receiving half the prescription dose to
      the target volume (dose gradient)

    The results are shown on the console, in a dialog, or in a form where
    the target, the reference structure and the metrics can be selected.

    Requirements
    ============

    conformitychecks requires the following packages to run from source:

    - Python 3.6 or higher
    - matplotlib 1.3.0 or higher
    - numpy 1.2.1 or higher
    - dicompyler-core 0.5.2 or higher
    - pydicom 1.0 or higher
    - pypubsub 4.0.0 or higher
    - wxPython (Phoenix) 4.0.0b2 or higher for the dialogs""",
)
