'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Dict, Iterable, List, Optional

from twigpad.core.errors import ValidationError
from twigpad.core.log import Log
from twigpad.core.note import Note
from twigpad.core.order_index import OrderUpdate, siblings_of

__all__ = ["NoteStore", "StoreSnapshot"]

_MUTABLE_FIELDS = {
    "parent_note_id",
    "order_index",
    "content",
    "collapsed",
    "created_at",
    "updated_at",
}

class StoreSnapshot:
    """Frozen copy of a store's notes, taken before a structural change."""

    __slots__ = ("page_id", "notes")

    def __init__(self, page_id: Optional[str], notes: Iterable[Note]):
        self.page_id = page_id
        self.notes = [n.copy() for n in notes]

    def structure(self) -> Dict[str, tuple]:
        """note id -> (parent_note_id, order_index)."""
        return {n.id: (n.parent_note_id, n.order_index) for n in self.notes}

class NoteStore:
    """
    In-memory outline of the page currently loaded.

    The store is the single source of truth for what the user sees. Only the
    TreeEditor mutates it (plus replace_all on page load); everyone else reads.

    Stale references never raise: updating or removing an id that is gone is
    logged and ignored, so a late callback cannot take the UI down.

    Listeners registered with add_listener() run once per logical change.
    Inside `with store.batch():` they are deferred until the outermost batch
    exits, so a reader never observes a half-applied move.
    """

    def __init__(self, page_id: Optional[str] = None):
        self.page_id = page_id
        self._notes: Dict[str, Note] = {}
        self._listeners: List[Callable[[], None]] = []
        self._batch_depth = 0
        self._batch_dirty = False

    # ------------------------------------------------------------------ #
    # reads
    # ------------------------------------------------------------------ #

    def __len__(self) -> int:
        return len(self._notes)

    def __contains__(self, note_id) -> bool:
        return note_id in self._notes

    def notes(self) -> List[Note]:
        return list(self._notes.values())

    def find_by_id(self, note_id: Optional[str]) -> Optional[Note]:
        if note_id is None:
            return None
        return self._notes.get(note_id)

    def children_of(self, parent_id: Optional[str]) -> List[Note]:
        return siblings_of(self._notes.values(), parent_id)

    def roots(self) -> List[Note]:
        return self.children_of(None)

    def ancestors(self, note_id: str) -> List[str]:
        """Ancestor ids from parent up to root (excluding note_id)."""
        ancestors = []
        seen = {note_id}
        note = self._notes.get(note_id)
        while note is not None and note.parent_note_id is not None:
            parent_id = note.parent_note_id
            if parent_id in seen:
                Log.warn(f"cycle detected above {note_id} at {parent_id}")
                break
            seen.add(parent_id)
            ancestors.append(parent_id)
            note = self._notes.get(parent_id)
        return ancestors

    def depth(self, note_id: str) -> int:
        """Nesting level; root notes are level 0."""
        return len(self.ancestors(note_id))

    # ------------------------------------------------------------------ #
    # snapshots
    # ------------------------------------------------------------------ #

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(self.page_id, self._notes.values())

    def restore(self, snapshot: StoreSnapshot) -> None:
        """Replace the whole outline with a snapshot taken earlier."""
        self.page_id = snapshot.page_id
        self._notes = {n.id: n.copy() for n in snapshot.notes}
        self._changed()

    def structure(self) -> Dict[str, tuple]:
        return self.snapshot().structure()

    # ------------------------------------------------------------------ #
    # mutations
    # ------------------------------------------------------------------ #

    def replace_all(self, page_id: str, notes: Iterable[Note]) -> None:
        """Load (or reload) a page."""
        self.page_id = page_id
        self._notes = {}
        for note in notes:
            if note.page_id != page_id:
                Log.warn(f"dropping note {note.id} from page {note.page_id} while loading {page_id}")
                continue
            self._notes[note.id] = note
        Log.debug(f"loaded page {page_id} with {len(self._notes)} notes", 1)
        self._changed()

    def add_note(self, note: Note) -> None:
        if self.page_id is None:
            self.page_id = note.page_id
        if note.page_id != self.page_id:
            raise ValidationError(f"note {note.id} belongs to page {note.page_id}, not {self.page_id}")
        if note.id in self._notes:
            Log.warn(f"add_note: {note.id} already present, ignored")
            return
        self._notes[note.id] = note
        self._changed()

    def remove_note_by_id(self, note_id: str) -> Optional[Note]:
        note = self._notes.pop(note_id, None)
        if note is None:
            Log.warn(f"remove_note_by_id: {note_id} not found")
            return None
        self._changed()
        return note

    def update_note(self, note_id: str, **fields) -> Optional[Note]:
        """Merge fields into the note with this id."""
        note = self._notes.get(note_id)
        if note is None:
            Log.warn(f"update_note: {note_id} not found")
            return None
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValidationError(f"update_note: unknown fields {sorted(unknown)}")
        for key, value in fields.items():
            setattr(note, key, value)
        self._changed()
        return note

    def apply_order_updates(self, updates: Iterable[OrderUpdate]) -> None:
        with self.batch():
            for upd in updates:
                self.update_note(upd.note_id, order_index=upd.order_index)

    def rename(self, old_id: str, new_id: str) -> Optional[Note]:
        """Swap a provisional id for the server's, re-pointing any children."""
        note = self._notes.get(old_id)
        if note is None:
            Log.warn(f"rename: {old_id} not found")
            return None
        if old_id == new_id:
            return note
        with self.batch():
            # Keep dict order so document order of ties stays stable.
            self._notes = {
                (new_id if k == old_id else k): v for k, v in self._notes.items()
            }
            note.id = new_id
            for child in self._notes.values():
                if child.parent_note_id == old_id:
                    child.parent_note_id = new_id
            self._changed()
        return note

    # ------------------------------------------------------------------ #
    # change notification
    # ------------------------------------------------------------------ #

    def add_listener(self, fn: Callable[[], None]) -> None:
        self._listeners.append(fn)

    def remove_listener(self, fn: Callable[[], None]) -> None:
        if fn in self._listeners:
            self._listeners.remove(fn)

    @contextmanager
    def batch(self):
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._batch_dirty:
                self._batch_dirty = False
                self._notify()

    def _changed(self):
        if self._batch_depth:
            self._batch_dirty = True
        else:
            self._notify()

    def _notify(self):
        for fn in list(self._listeners):
            fn()
