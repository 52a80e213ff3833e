'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from twigpad.ui.constants import MODE_EDIT, MODE_RENDERED

__all__ = ["EditState"]

# ------------ Focused note state ------------

@dataclass
class EditState:
    """Focus, mode, and local text buffer of the note being edited."""

    note_id: Optional[str] = None
    mode: str = MODE_RENDERED
    text: str = ""
    cursor_pos: int = 0

    @property
    def active(self) -> bool:
        return self.note_id is not None and self.mode == MODE_EDIT

    def focus(self, note_id: str, text: str, mode: str, cursor_pos: Optional[int] = None):
        """Move focus to a note. The caret lands at the end unless given."""
        self.note_id = note_id
        self.mode = mode
        self.text = text
        self.cursor_pos = len(text) if cursor_pos is None else max(0, min(cursor_pos, len(text)))

    def clear(self):
        self.note_id = None
        self.mode = MODE_RENDERED
        self.text = ""
        self.cursor_pos = 0

    def insert_text(self, text: str):
        """Insert plain text at the caret."""
        if not text:
            return
        pos = self.cursor_pos
        self.text = self.text[:pos] + text + self.text[pos:]
        self.cursor_pos = pos + len(text)

    def delete_before_cursor(self) -> bool:
        if self.cursor_pos <= 0:
            return False
        pos = self.cursor_pos
        self.text = self.text[:pos - 1] + self.text[pos:]
        self.cursor_pos = pos - 1
        return True

    def delete_after_cursor(self) -> bool:
        if self.cursor_pos >= len(self.text):
            return False
        pos = self.cursor_pos
        self.text = self.text[:pos] + self.text[pos + 1:]
        return True

    def move_cursor(self, delta: int):
        self.cursor_pos = max(0, min(self.cursor_pos + delta, len(self.text)))

    def set_cursor(self, pos: int):
        self.cursor_pos = max(0, min(pos, len(self.text)))

    def text_before_cursor(self) -> str:
        return self.text[:self.cursor_pos]

    def is_blank(self) -> bool:
        return not self.text.strip()
