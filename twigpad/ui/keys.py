# ui/keys.py
'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from twigpad.core.log import Log
from twigpad.core.note_store import NoteStore
from twigpad.core.renderer import Renderer
from twigpad.core.tree_editor import TreeEditor
from twigpad.ui.constants import (
    SAVE_DEBOUNCE_MS, MODE_EDIT, MODE_RENDERED,
    KEY_ENTER, KEY_TAB, KEY_BACKSPACE, KEY_DELETE, KEY_ESCAPE,
    KEY_UP, KEY_DOWN, KEY_LEFT, KEY_RIGHT, KEY_HOME, KEY_END,
)
from twigpad.ui.debounce import DebouncedSaver
from twigpad.ui.decorators import check_provisional
from twigpad.ui.edit_state import EditState
from twigpad.ui.flat_tree import neighbor_row
from twigpad.ui.snippets import expand_trigger
from twigpad.ui.types import KeyPress

__all__ = ["InputController"]

class InputController:
    """
    Keyboard state machine over the focused note.

    In rendered mode only Enter (start editing), Tab, and the vertical arrows
    do anything. In edit mode the text is buffered here and saved through a
    per-note debounce; structural keys flush the pending save first so the
    server sees the text before the tree changes.
    """

    def __init__(self, store: NoteStore, editor: TreeEditor, renderer: Optional[Renderer] = None,
                 *, scheduler, delay_ms: int = SAVE_DEBOUNCE_MS,
                 clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.editor = editor
        self.renderer = renderer or editor.renderer
        self.edit = EditState()
        self.saver = DebouncedSaver(scheduler, delay_ms, self._save)
        self._clock = clock

    # ------------ Focus ------------

    @property
    def focused_id(self) -> Optional[str]:
        """Id of the focused note, following a provisional id to its server id."""
        return self.editor.resolve(self.edit.note_id)

    @property
    def mode(self) -> str:
        return self.edit.mode

    def focused_is_provisional(self) -> bool:
        note = self.store.find_by_id(self.focused_id)
        return note is not None and note.provisional

    def focus(self, note_id: str, mode: str = MODE_RENDERED) -> bool:
        """Move focus to note_id; the previous note's pending save goes out first."""
        note = self.store.find_by_id(self.editor.resolve(note_id))
        if note is None:
            Log.warn(f"focus: note {note_id} not found")
            return False

        previous = self.focused_id
        if previous is not None and previous != note.id:
            self._flush()
            if self.edit.mode == MODE_EDIT:
                self.renderer.switch_to_rendered_mode(previous)

        self.edit.focus(note.id, note.content, mode)
        if mode == MODE_EDIT:
            self.renderer.switch_to_edit_mode(note.id)
        else:
            self.renderer.switch_to_rendered_mode(note.id)
        Log.debug(f"focus {note.id} ({mode})", 10)
        return True

    def blur(self):
        """Focus leaves the outline: save right away and drop out of edit mode."""
        note_id = self.focused_id
        if note_id is None:
            return
        self._flush(self.edit.text)
        if self.edit.mode == MODE_EDIT:
            self.renderer.switch_to_rendered_mode(note_id)
        self.edit.clear()

    # ------------ Saving ------------

    def _save(self, note_id: str, text: str):
        self.editor.save_content(note_id, text)

    def _flush(self, text: Optional[str] = None) -> bool:
        if self.edit.note_id is None:
            return False
        return self.saver.flush(self.edit.note_id, text)

    def _text_changed(self):
        self.saver.schedule(self.edit.note_id, self.edit.text)

    # ------------ Key routing ------------

    def handle_key(self, press: KeyPress) -> bool:
        """Route one key press. Returns True when the key was consumed."""
        if self.edit.note_id is None:
            return False
        if self.focused_id not in self.store:
            # the page was reloaded or the note was removed under us
            Log.debug(f"focused note {self.edit.note_id} is gone", 1)
            self.saver.cancel(self.edit.note_id)
            self.edit.clear()
            return False

        if self.edit.mode == MODE_EDIT:
            return self._handle_edit_mode_key(press)
        return self._handle_rendered_mode_key(press)

    def _handle_rendered_mode_key(self, press: KeyPress) -> bool:
        key = press.key

        if key == KEY_ENTER:
            return self.focus(self.focused_id, MODE_EDIT)

        if key == KEY_TAB:
            return self._handle_tab_key(press)

        if key in (KEY_UP, KEY_DOWN):
            return self._handle_vertical_keys(press)

        return False

    def _handle_edit_mode_key(self, press: KeyPress) -> bool:
        key = press.key

        if key == KEY_ESCAPE:
            return self._handle_escape_key()

        if key == KEY_ENTER:
            return self._handle_enter_key(press)

        if key == KEY_TAB:
            return self._handle_tab_key(press)

        if key in (KEY_UP, KEY_DOWN):
            return self._handle_vertical_keys(press)

        if key in (KEY_LEFT, KEY_RIGHT, KEY_HOME, KEY_END):
            return self._handle_cursor_keys(press)

        if key in (KEY_BACKSPACE, KEY_DELETE):
            return self._handle_delete_keys(press)

        return self._handle_text_input(press)

    # ------------ Edit key handlers ------------

    def _handle_escape_key(self) -> bool:
        """Leave edit mode, saving now."""
        self._flush(self.edit.text)
        self.edit.mode = MODE_RENDERED
        self.renderer.switch_to_rendered_mode(self.focused_id)
        return True

    def _handle_enter_key(self, press: KeyPress) -> bool:
        if press.shift:
            # Shift+Enter adds a line break
            self.edit.insert_text("\n")
            self._text_changed()
            return True
        return self._create_sibling()

    @check_provisional
    def _create_sibling(self) -> bool:
        self._flush()
        new_id = self.editor.create_sibling(self.focused_id)
        if new_id is None:
            return True
        self.focus(new_id, MODE_EDIT)
        return True

    @check_provisional
    def _handle_tab_key(self, press: KeyPress) -> bool:
        self._flush()
        if press.shift:
            self.editor.outdent(self.focused_id)
        else:
            self.editor.indent(self.focused_id)
        if self.edit.mode == MODE_EDIT:
            # the element was moved; put the editor back on it
            self.renderer.switch_to_edit_mode(self.focused_id)
        return True

    def _handle_vertical_keys(self, press: KeyPress) -> bool:
        step = -1 if press.key == KEY_UP else 1
        target = neighbor_row(self.store, self.focused_id, step)
        if target is None:
            return True
        self.focus(target, self.edit.mode)
        return True

    def _handle_cursor_keys(self, press: KeyPress) -> bool:
        key = press.key
        text = self.edit.text
        pos = self.edit.cursor_pos

        if key == KEY_LEFT:
            self.edit.move_cursor(-1)
        elif key == KEY_RIGHT:
            self.edit.move_cursor(1)
        elif key == KEY_HOME:
            # start of the current line
            self.edit.set_cursor(text.rfind("\n", 0, pos) + 1)
        elif key == KEY_END:
            end = text.find("\n", pos)
            self.edit.set_cursor(len(text) if end < 0 else end)
        return True

    def _handle_delete_keys(self, press: KeyPress) -> bool:
        if press.key == KEY_BACKSPACE:
            if self.edit.is_blank():
                return self._delete_focused()
            if self.edit.delete_before_cursor():
                self._text_changed()
            return True

        if self.edit.delete_after_cursor():
            self._text_changed()
        return True

    @check_provisional
    def _delete_focused(self) -> bool:
        note_id = self.focused_id
        # the store must see the blank text before the delete check
        self._flush(self.edit.text)
        result = self.editor.delete_if_empty(note_id)
        if not result.applied:
            return True

        self.saver.cancel(self.edit.note_id)
        self.edit.clear()
        if result.focus_id is not None:
            self.focus(result.focus_id, MODE_EDIT)
        return True

    def _handle_text_input(self, press: KeyPress) -> bool:
        """Regular printable character."""
        if press.ctrl or not press.is_char():
            return False

        self.edit.insert_text(press.key)

        if press.key == " ":
            now = self._clock() if self._clock else None
            expanded = expand_trigger(self.edit.text, self.edit.cursor_pos, now)
            if expanded is not None:
                self.edit.text, cursor = expanded
                self.edit.set_cursor(cursor)
                # snippets are persisted right away
                self._flush(self.edit.text)
                note = self.store.find_by_id(self.focused_id)
                if note is not None:
                    self.renderer.update_note_element(note)
                return True

        self._text_changed()
        return True
