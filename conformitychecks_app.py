#!/usr/bin/env python
# -*- coding: utf-8 -*-
# conformitychecks_app.py
"""Script to start conformitychecks without installing from source."""
# Copyright (c) 2009-2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.

import conformitychecks.main

conformitychecks.main.start()
