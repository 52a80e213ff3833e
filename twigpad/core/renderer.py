# core/renderer.py
'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
from __future__ import annotations

from typing import List, Optional

from twigpad.core.note import Note

__all__ = ["Renderer", "NullRenderer"]

class Renderer:
    """
    Visual tree driven by the TreeEditor and InputController.

    Each call is issued in the same step as the matching NoteStore change, so
    the screen never drifts from the store. `container_id` is the parent note
    id (None for the page itself) and `before_id` the sibling element to
    insert in front of (None appends).

    The base class does nothing, which is all a headless host needs.
    """

    def add_note_element(self, note: Note, container_id: Optional[str], nesting_level: int,
                         before_id: Optional[str]) -> None:
        pass

    def move_note_element(self, note: Note, new_container_id: Optional[str], new_nesting_level: int,
                          before_id: Optional[str]) -> None:
        pass

    def remove_note_element(self, note_id: str) -> None:
        pass

    def rename_note_element(self, old_id: str, new_id: str) -> None:
        pass

    def update_note_element(self, note: Note) -> None:
        pass

    def switch_to_edit_mode(self, note_id: str) -> None:
        pass

    def switch_to_rendered_mode(self, note_id: str) -> None:
        pass

    def display_notes(self, notes: List[Note]) -> None:
        """Throw away the visual tree and rebuild it from notes."""
        pass

    def alert(self, message: str) -> None:
        pass

NullRenderer = Renderer
