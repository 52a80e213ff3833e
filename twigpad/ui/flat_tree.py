# ui/flat_tree.py
'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''

from __future__ import annotations
from typing import List, Optional

from twigpad.core.note_store import NoteStore
from twigpad.ui.types import Row

__all__ = ["flatten", "visible_rows", "neighbor_row"]

def flatten(store: NoteStore, include_collapsed: bool = False) -> List[Row]:
    """
    Depth-first document order of the page. Children of collapsed notes are
    left out unless include_collapsed is set.
    """
    rows: List[Row] = []
    seen = set()

    def _walk(parent_id: Optional[str], level: int):
        for note in store.children_of(parent_id):
            if note.id in seen:
                continue  # guards against a corrupted parent chain
            seen.add(note.id)
            rows.append(Row(note_id=note.id, level=level))
            if include_collapsed or not note.collapsed:
                _walk(note.id, level + 1)

    _walk(None, 0)
    return rows

def visible_rows(store: NoteStore) -> List[Row]:
    return flatten(store, include_collapsed=False)

def neighbor_row(store: NoteStore, note_id: str, step: int) -> Optional[str]:
    """The note step rows away from note_id in visible order, or None."""
    rows = visible_rows(store)
    for i, row in enumerate(rows):
        if row.note_id == note_id:
            j = i + step
            if 0 <= j < len(rows):
                return rows[j].note_id
            return None
    return None
