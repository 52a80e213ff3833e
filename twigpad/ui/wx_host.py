# ui/wx_host.py
'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''

from __future__ import annotations

from typing import Optional

import wx

from twigpad.core.io_worker import IOWorker
from twigpad.core.log import Log
from twigpad.ui.constants import (
    KEY_ENTER, KEY_TAB, KEY_BACKSPACE, KEY_DELETE, KEY_ESCAPE,
    KEY_UP, KEY_DOWN, KEY_LEFT, KEY_RIGHT, KEY_HOME, KEY_END,
)
from twigpad.ui.types import KeyPress

__all__ = ["key_from_wx_event", "WxScheduler", "make_worker", "bind_outline"]

_WX_KEYS = {
    wx.WXK_RETURN: KEY_ENTER,
    wx.WXK_NUMPAD_ENTER: KEY_ENTER,
    wx.WXK_TAB: KEY_TAB,
    wx.WXK_BACK: KEY_BACKSPACE,
    wx.WXK_DELETE: KEY_DELETE,
    wx.WXK_ESCAPE: KEY_ESCAPE,
    wx.WXK_UP: KEY_UP,
    wx.WXK_NUMPAD_UP: KEY_UP,
    wx.WXK_DOWN: KEY_DOWN,
    wx.WXK_NUMPAD_DOWN: KEY_DOWN,
    wx.WXK_LEFT: KEY_LEFT,
    wx.WXK_NUMPAD_LEFT: KEY_LEFT,
    wx.WXK_RIGHT: KEY_RIGHT,
    wx.WXK_NUMPAD_RIGHT: KEY_RIGHT,
    wx.WXK_HOME: KEY_HOME,
    wx.WXK_END: KEY_END,
}

def key_from_wx_event(evt) -> Optional[KeyPress]:
    """Translate a wx key event; None for keys the outline does not use."""
    shift = evt.ShiftDown()
    ctrl = evt.ControlDown()

    name = _WX_KEYS.get(evt.GetKeyCode())
    if name is not None:
        return KeyPress(name, shift=shift, ctrl=ctrl)

    unicode_key = evt.GetUnicodeKey()
    if unicode_key == wx.WXK_NONE or unicode_key <= 31:
        return None

    char = chr(unicode_key)
    # EVT_CHAR_HOOK reports letters in upper case
    if char.isalpha() and not shift:
        char = char.lower()
    return KeyPress(char, shift=shift, ctrl=ctrl)

class WxScheduler:
    """Debounce timers on the wx event loop."""

    def call_later(self, delay_ms: int, fn):
        return _CallLaterHandle(wx.CallLater(delay_ms, fn))

class _CallLaterHandle:
    def __init__(self, call_later):
        self._call_later = call_later

    def cancel(self):
        if self._call_later.IsRunning():
            self._call_later.Stop()

def make_worker() -> IOWorker:
    """IO worker whose callbacks land on the wx main thread."""
    return IOWorker(post=wx.CallAfter)

def bind_outline(window, controller, on_consumed=None):
    """
    Feed the window's key presses to the input controller. on_consumed runs
    after each key the controller used, so the host can redraw the edit buffer.
    """
    def _on_char(evt):
        press = key_from_wx_event(evt)
        if press is not None and controller.handle_key(press):
            if on_consumed is not None:
                on_consumed()
            return
        evt.Skip()

    def _on_kill_focus(evt):
        Log.debug("outline lost focus", 10)
        controller.blur()
        evt.Skip()

    window.Bind(wx.EVT_CHAR_HOOK, _on_char)
    window.Bind(wx.EVT_KILL_FOCUS, _on_kill_focus)
