#!/usr/bin/env python
# -*- coding: utf-8 -*-
# guiutil.py
"""Several GUI utility functions that don't really belong anywhere."""
# Copyright (c) 2009-2017 Aditya Panchal
# This file is part of conformitychecks, released under a BSD license.
#    See the file license.txt included with this distribution.

import wx

def IsMac():
    """Are we running on Mac

    @rtype: Bool"""
    return wx.Platform=='__WXMAC__'

def SetItemsList(wxCtrl, list = [], data = [], selection = 0):
    # Set the wxCtrlWithItems to the given list and store the data in the item
    wxCtrl.Clear()
    i = 0
    for item in list:
        wxCtrl.Append(item)
        # if no data has been given, no need to set the client data
        if not (data == []):
            wxCtrl.SetClientData(i, data[i])
        i = i + 1
    if not (wxCtrl.IsEmpty()):
        wxCtrl.SetSelection(selection)

def GetSelectedData(wxCtrl):
    # Return the client data of the selected item or None
    i = wxCtrl.GetSelection()
    if (i == wx.NOT_FOUND):
        return None
    return wxCtrl.GetClientData(i)

def adjust_control(control):
    """Adjust the control and font size on the Mac."""

    if IsMac():
        font = control.GetFont()
        font.SetPointSize(11)
        control.SetWindowVariant(wx.WINDOW_VARIANT_SMALL)
        control.SetFont(font)

def show_message(parent, message, title, style=wx.OK|wx.ICON_INFORMATION):
    """Show a modal message dialog."""

    dlg = wx.MessageDialog(parent, message, title, style)
    dlg.ShowModal()
    dlg.Destroy()
