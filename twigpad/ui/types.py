'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class Row:
    """
    A single visible row of the page outline.

    • note_id  – id of the note this row shows
    • level    – nesting level (root = 0)
    """
    note_id: str
    level: int


@dataclass(slots=True, frozen=True)
class KeyPress:
    """
    A toolkit-neutral key event.

    • key    – a name from ui.constants (KEY_ENTER, ...) or one printable character
    • shift  – Shift held
    • ctrl   – Ctrl / Cmd held
    """
    key: str
    shift: bool = False
    ctrl: bool = False

    def is_char(self) -> bool:
        return len(self.key) == 1 and self.key.isprintable()
