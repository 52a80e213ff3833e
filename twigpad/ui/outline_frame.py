# ui/outline_frame.py
'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.

This file holds the interactive outline window.
'''
from __future__ import annotations

from typing import List, Optional

import wx

from twigpad.core.log import Log
from twigpad.core.note import Note
from twigpad.core.note_store import NoteStore
from twigpad.core.renderer import Renderer
from twigpad.core.save_status import SaveStatus, ERROR
from twigpad.core.tree_editor import TreeEditor
from twigpad.ui.constants import MODE_EDIT
from twigpad.ui.keys import InputController
from twigpad.ui.flat_tree import visible_rows
from twigpad.ui.types import Row
from twigpad.ui.wx_host import WxScheduler, bind_outline, make_worker

if tuple(getattr(wx, 'VERSION', (0,0,0))[:3]) < (4, 2, 3):
    raise RuntimeError(f"TwigPad requires wxPython ≥ 4.2.3; found {wx.__version__}")

__all__ = ["OutlineFrame", "OutlineList", "WxRenderer", "row_text", "run_gui"]

def row_text(note: Note, editing_text: Optional[str] = None, cursor_pos: int = 0) -> str:
    """Text drawn for one row; the edit buffer with a caret while editing."""
    if editing_text is not None:
        return editing_text[:cursor_pos] + "|" + editing_text[cursor_pos:]
    return note.content

################################################################################################
class OutlineList(wx.VListBox):
    INDENT_W = 3
    PAD_Y    = 2

    def __init__(self, parent, store: NoteStore):
        self.store = store
        self.controller: Optional[InputController] = None
        self.rows: List[Row] = []
        self.char_w,self.char_h = 9,9
        super(OutlineList, self).__init__(parent, style=wx.WANTS_CHARS)
        self.fontinfo = wx.FontInfo(11).FaceName("Monospace")
        self.font = wx.Font(self.fontinfo)
        dc = wx.MemoryDC()
        dc.SetFont(self.font)
        self.char_w,self.char_h = dc.GetTextExtent("X")
        self.SetBackgroundColour((255,255,255))
        self.Bind(wx.EVT_LEFT_DOWN, self._on_left_down)
        self.refresh_rows()

    def refresh_rows(self):
        """Recompute the visible rows after any store change."""
        self.rows = visible_rows(self.store)
        self.SetItemCount(len(self.rows))
        self.Refresh()

    def _text_for(self, index: int) -> str:
        row = self.rows[index]
        note = self.store.find_by_id(row.note_id)
        if note is None:
            return ""
        ctl = self.controller
        if ctl is not None and ctl.focused_id == note.id and ctl.mode == MODE_EDIT:
            return row_text(note, ctl.edit.text, ctl.edit.cursor_pos)
        return row_text(note)

    def OnMeasureItem(self, index):
        if index >= len(self.rows):
            return self.char_h
        lines = self._text_for(index).count("\n") + 1
        return lines * self.char_h + 2 * self.PAD_Y

    def OnDrawItem(self, dc, rect, index):
        if index >= len(self.rows):
            return
        row = self.rows[index]
        note = self.store.find_by_id(row.note_id)
        if note is None:
            return
        dc.SetFont(self.font)
        focused = self.controller is not None and self.controller.focused_id == note.id
        if focused:
            dc.SetBrush(wx.Brush((225,235,255)))
            dc.SetPen(wx.Pen((225,235,255)))
            dc.DrawRectangle(rect[0], rect[1], rect[2], rect[3])

        x = rect[0] + (row.level * self.INDENT_W + 1) * self.char_w
        y = rect[1] + self.PAD_Y
        # Bullet shows a closed subtree.
        bullet = "+" if note.collapsed and self.store.children_of(note.id) else "-"
        dc.SetTextForeground((120,120,120))
        dc.DrawText(bullet, x, y)
        dc.SetTextForeground((0,0,0))
        dc.DrawText(self._text_for(index), x + 2 * self.char_w, y)

    def OnDrawSeparator(self, dc, rect, index):
        return

    def _on_left_down(self, event):
        index = self.VirtualHitTest(event.GetPosition().y)
        if index != wx.NOT_FOUND and index < len(self.rows) and self.controller is not None:
            self.controller.focus(self.rows[index].note_id, MODE_EDIT)
            self.Refresh()
        self.SetFocus()

class WxRenderer(Renderer):
    """Every visual change redraws the outline list; alerts pop a dialog."""

    def __init__(self, outline: OutlineList):
        self.outline = outline

    def _redraw(self, *args):
        self.outline.refresh_rows()

    add_note_element = _redraw
    move_note_element = _redraw
    remove_note_element = _redraw
    rename_note_element = _redraw
    update_note_element = _redraw
    switch_to_edit_mode = _redraw
    switch_to_rendered_mode = _redraw
    display_notes = _redraw

    def alert(self, message: str):
        Log.warn(message)
        wx.MessageBox(message, "TwigPad", wx.OK | wx.ICON_WARNING, self.outline.GetTopLevelParent())

################################################################################################
class OutlineFrame(wx.Frame):
    """Main window: one page outline, edited from the keyboard."""

    def __init__(self, gateway, page_id: str):
        super().__init__(None, title=f"TwigPad - {page_id}", size=(800, 600))
        self.SetMinSize((400, 300))
        self.page_id = page_id
        self.CreateStatusBar()
        self.SetStatusText("Loading...")

        self.store = NoteStore()
        self.status = SaveStatus()
        self.outline = OutlineList(self, self.store)
        self.renderer = WxRenderer(self.outline)
        self.io = make_worker()
        self.editor = TreeEditor(self.store, gateway, self.io, self.renderer, self.status)
        self.controller = InputController(self.store, self.editor, self.renderer,
                                          scheduler=WxScheduler())
        self.outline.controller = self.controller

        bind_outline(self.outline, self.controller, on_consumed=self.outline.refresh_rows)
        self.store.add_listener(self.outline.refresh_rows)
        self.status.add_listener(self._on_status)

        sizer = wx.BoxSizer(wx.VERTICAL)
        sizer.Add(self.outline, 1, wx.EXPAND)
        self.SetSizer(sizer)
        self.Bind(wx.EVT_CLOSE, self._on_close)

        self.editor.load_page(page_id, on_done=self._on_loaded)

    def _on_loaded(self, ok: bool):
        if not ok:
            self.SetStatusText(f"Could not load page {self.page_id}")
            return
        rows = visible_rows(self.store)
        if rows:
            first_id = rows[0].note_id
        else:
            first_id = self.editor.create_root(self.page_id)
        self.controller.focus(first_id, MODE_EDIT)
        self.outline.SetFocus()

    def _on_status(self, state: str, message: str):
        self.SetStatusText(message if state == ERROR else state.capitalize())

    def _on_close(self, event):
        # Push the text being typed before the window goes away.
        self.controller.blur()
        self.io.join()
        Log.debug("outline window closed", 1)
        event.Skip()

def run_gui(gateway, page_id: str) -> int:
    app = wx.App(False)

    frame = OutlineFrame(gateway, page_id)
    frame.Show()

    return app.MainLoop()
