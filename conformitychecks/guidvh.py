#!/usr/bin/env python
# -*- coding: utf-8 -*-
# guidvh.py
"""Draws the dose volume histograms used for the conformity statistics
    via matplotlib."""
# Copyright (c) 2009-2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.

from matplotlib.figure import Figure
from matplotlib.backends.backend_agg import FigureCanvasAgg
import numpy as np

def get_color(structure):
    """Convert the structure color to a matplotlib color."""

    if not 'color' in structure:
        return None
    colorarray = np.array(structure['color'], dtype=float)
    # Plot white as black so it is visible on the plot
    if np.size(np.nonzero(colorarray/255 - 1)):
        return colorarray/255
    return np.zeros(3)

def plot_conformity_dvh(calculator, reference, target, isodoses,
                        filename=None):
    """Plot the cumulative DVH of the reference and target structures and
        mark the volume of each isodose level within the reference.

    :param calculator:  DoseVolumeCalculator for the plan.
    :param isodoses:    Isodose levels in percent of the rx dose.
    :param filename:    Save the figure to this file if given.
    :return:            The matplotlib figure."""

    fig = Figure(figsize=(6, 4.5), dpi=100)
    FigureCanvasAgg(fig)
    fig.set_edgecolor('white')
    axes = fig.add_subplot(111)

    maxdose = 0
    for structure, linestyle in ((reference, '-'), (target, '--')):
        dvh = calculator.get_dvh(structure['id'])
        axes.plot(dvh.bincenters, dvh.counts,
                  label=structure['name'],
                  color=get_color(structure),
                  linewidth=2,
                  linestyle=linestyle)
        maxdose = max(maxdose, dvh.bincenters[-1])

    for isodose in isodoses:
        dose = calculator.dose_threshold(isodose)
        volume = calculator.volume_at_dose(reference['id'], isodose)
        axes.axvline(dose, color='gray', linestyle=':', linewidth=1)
        axes.plot(dose, volume, 'o', color='black')
        axes.annotate('%d%%' % isodose, (dose, volume),
                      textcoords='offset points', xytext=(4, 4))
        maxdose = max(maxdose, dose)

    # set the axes parameters
    axes.grid(True)
    axes.set_xlim(0, maxdose * 1.05 if maxdose else 1)
    axes.set_ylim(bottom=0)
    axes.set_xlabel('Dose (Gy)')
    axes.set_ylabel('Volume (cm³)')
    axes.set_title('DVH')
    axes.legend(fancybox=True, shadow=True)

    if filename:
        fig.savefig(filename)
    return fig
