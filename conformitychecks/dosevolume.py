#!/usr/bin/env python
# -*- coding: utf-8 -*-
# dosevolume.py
"""Dose-volume queries for DICOM RT Structure / Dose data."""
# Copyright (c) 2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.
#
# It is assumed that the reference (prescription) dose is in cGy.

import logging
logger = logging.getLogger('conformitychecks.dosevolume')
from dicompylercore import dvhcalc

class DoseVolumeCalculator:
    """Calculates and caches the cumulative DVH of each structure and answers
        volume and volume-at-dose queries from them."""

    def __init__(self, rtss, rtdose, rxdose, limit=50000, callback=None):
        """Take the structure set and dose datasets and the rx dose in cGy.

        :param limit:       Upper DVH bin limit in cGy.
        :param callback:    Called with (plane, number of planes) while
                            calculating each DVH."""

        self.rtss = rtss
        self.rtdose = rtdose
        self.rxdose = rxdose
        self.limit = limit
        self.callback = callback
        self.dvhs = {}

    def get_dvh(self, roi):
        """Return the cumulative absolute DVH for the given ROI number."""

        if not roi in self.dvhs:
            logger.debug("Calculating DVH for ROI #%s", str(roi))
            dvh = dvhcalc.get_dvh(self.rtss, self.rtdose, roi,
                                  limit=self.limit, callback=self.callback)
            if self.rxdose:
                dvh.rx_dose = self.rxdose / 100
            self.dvhs[roi] = dvh
        return self.dvhs[roi]

    def structure_volume(self, roi):
        """Return the volume (in cc) of the given structure."""

        return float(self.get_dvh(roi).volume)

    def dose_threshold(self, percent):
        """Return the dose (in Gy) for the given percentage of the rx dose."""

        return percent * self.rxdose / 10000.

    def volume_at_dose(self, roi, dose, units='%'):
        """Return the volume (in cc) of the structure that receives at least
            a specific dose. i.e. V100, V50 or V20Gy.

        :param units:   '%' for a percentage of the rx dose, 'Gy' or 'cGy'
                        for an absolute dose."""

        if (units == '%'):
            dose = self.dose_threshold(dose)
        elif (units == 'cGy'):
            dose = dose / 100.
        elif not (units == 'Gy'):
            raise ValueError("Unknown dose units: %s" % units)

        dvh = self.get_dvh(roi)
        volume = dvh.volume_constraint(dose, dvh.dose_units)
        logger.debug("V%.2fGy for ROI #%s: %s", dose, str(roi), volume)
        return float(volume.value)
