#!/usr/bin/env python
# -*- coding: utf-8 -*-
# __init__.py
"""Package initialization for conformitychecks."""
# Copyright (c) 2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.

__author__ = 'Aditya Panchal'
__email__ = 'apanchal@bastula.org'
__version__ = '0.4.0'
__version_info__ = (0, 4, 0)
