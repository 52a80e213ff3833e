'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from twigpad.core.errors import NotFoundError
from twigpad.core.gateway import PersistenceGateway
from twigpad.core.log import Log
from twigpad.core.note import Note, is_provisional, new_provisional_id
from twigpad.core.note_store import NoteStore, StoreSnapshot
from twigpad.core.order_index import (
    OrderUpdate,
    calculate_order_index,
    compact_order,
    open_slot_after,
)
from twigpad.core.save_status import SaveStatus
from twigpad.core.renderer import Renderer

__all__ = ["TreeEditor", "DeleteResult", "TASK_MARKERS"]

TASK_MARKERS = ("TODO ", "DOING ", "SOMEDAY ", "DONE ", "WAITING ", "CANCELLED ", "NLR ")

DoneCallback = Optional[Callable[[bool], None]]

@dataclass(slots=True, frozen=True)
class DeleteResult:
    applied: bool
    focus_id: Optional[str] = None

class TreeEditor:
    """
    All structural edits of the page outline.

    Every operation changes the NoteStore (and the renderer) synchronously and
    returns right away; the matching gateway calls run on the IO worker. When
    they finish, on_done(ok) is called on the UI thread, after the server's
    canonical fields were applied or the local change was rolled back:

      • indent / outdent / move_after restore the pre-operation snapshot, or
        reload the page when the move was saved but the renumbering was not
      • a failed create whose note already got children reloads the page
      • create_root / create_sibling / create_child drop only the new note
      • save_content keeps the text and leaves the save indicator in "error"
      • NotFoundError on a structural call reloads the page from the server
    """

    def __init__(self, store: NoteStore, gateway: PersistenceGateway, worker,
                 renderer: Optional[Renderer] = None, status: Optional[SaveStatus] = None):
        self.store = store
        self.gateway = gateway
        self.worker = worker
        self.renderer = renderer or Renderer()
        self.status = status or SaveStatus()
        # provisional id -> server id; written by worker tasks, read everywhere
        self._id_map: Dict[str, str] = {}
        # provisional notes whose content changed before the server knew them
        self._unsaved: set = set()

    # ------------------------------------------------------------------ #
    # id helpers
    # ------------------------------------------------------------------ #

    def resolve(self, note_id: Optional[str]) -> Optional[str]:
        """Map a provisional id to its server id once the create was acknowledged."""
        if note_id is None:
            return None
        return self._id_map.get(note_id, note_id)

    def _target(self, note_id: str, action: str) -> Optional[Note]:
        note = self.store.find_by_id(self.resolve(note_id))
        if note is None:
            Log.warn(f"{action}: note {note_id} not found")
            return None
        if note.provisional:
            Log.debug(f"{action}: note {note.id} is not saved yet, ignored", 1)
            return None
        return note

    def _element_before(self, note: Note) -> Optional[str]:
        """The sibling whose element the note's element goes in front of."""
        for sib in self.store.children_of(note.parent_note_id):
            if sib.id != note.id and sib.order_index > note.order_index:
                return sib.id
        return None

    # ------------------------------------------------------------------ #
    # persistence plumbing
    # ------------------------------------------------------------------ #

    def _persist(self, name: str, task, on_success, on_failure, on_done: DoneCallback):
        self.status.begin()

        def _callback(result, err):
            if err is None:
                self.status.succeed()
                on_success(result)
                ok = True
            else:
                exc, tb = err
                Log.error(f"{name} failed: {exc}")
                Log.debug(tb, 2)
                self.status.fail(f"{name} failed: {exc}")
                on_failure(exc)
                ok = False
            if on_done:
                on_done(ok)

        self.worker.submit(task, callback=_callback)

    def _push_order(self, updates: Sequence[OrderUpdate]) -> None:
        """Send sibling renumbering. Runs on the worker thread."""
        resolved = []
        for upd in updates:
            remote_id = self.resolve(upd.note_id)
            if is_provisional(remote_id):
                Log.warn(f"skipping reorder of unsaved note {remote_id}")
                continue
            resolved.append(OrderUpdate(remote_id, upd.order_index))
        if resolved:
            self.gateway.batch_update_order_indexes(resolved)

    def _reconcile(self, server_note: Optional[Note]) -> None:
        """Apply only server-canonical fields; local edits may be newer."""
        if server_note is None:
            return
        local = self.store.find_by_id(self.resolve(server_note.id))
        if local is None:
            Log.debug(f"ack for {server_note.id} arrived after it left the page", 1)
            return
        self.store.update_note(local.id, created_at=server_note.created_at or local.created_at,
                               updated_at=server_note.updated_at or local.updated_at)

    def _rollback(self, snapshot: StoreSnapshot, name: str, exc: Exception) -> None:
        if isinstance(exc, NotFoundError):
            self.renderer.alert(f"{name} failed: the page changed on the server. Reloading.")
            self.reload_page()
            return
        with self.store.batch():
            self.store.restore(snapshot)
            # creates acknowledged since the snapshot keep their server ids
            for temp_id, server_id in list(self._id_map.items()):
                if temp_id in self.store:
                    self.store.rename(temp_id, server_id)
        self.renderer.display_notes(self.store.notes())
        self.renderer.alert(f"{name} failed: {exc}. Reverting local changes.")

    # ------------------------------------------------------------------ #
    # creation
    # ------------------------------------------------------------------ #

    def create_root(self, page_id: str, on_done: DoneCallback = None) -> Optional[str]:
        """Append an empty root note to the page. Returns its provisional id."""
        roots = self.store.roots()
        order_index = len(roots)
        if roots and roots[-1].order_index >= order_index:
            order_index = roots[-1].order_index + 1

        note = Note(id=new_provisional_id(), page_id=page_id, order_index=order_index)
        self.store.add_note(note)
        self.renderer.add_note_element(note, None, 0, None)
        self._submit_create(note, [], "Add root note", on_done)
        return note.id

    def create_sibling(self, after_note_id: str, on_done: DoneCallback = None) -> Optional[str]:
        """
        Insert an empty note right after after_note_id at the same level.
        The after-note keeps its children.
        """
        after = self._target(after_note_id, "create sibling")
        if after is None:
            return None

        siblings = self.store.children_of(after.parent_note_id)
        pos = next(i for i, n in enumerate(siblings) if n.id == after.id)
        next_id = siblings[pos + 1].id if pos + 1 < len(siblings) else None
        placement = calculate_order_index(self.store.notes(), after.parent_note_id, after.id, next_id)

        note = Note(id=new_provisional_id(), page_id=after.page_id,
                    parent_note_id=after.parent_note_id, order_index=placement.target)
        with self.store.batch():
            self.store.apply_order_updates(placement.sibling_updates)
            self.store.add_note(note)
        self.renderer.add_note_element(note, note.parent_note_id, self.store.depth(note.id),
                                       self._element_before(note))

        self._submit_create(note, placement.sibling_updates, "Create sibling note", on_done)
        return note.id

    def create_child(self, parent_note_id: str, on_done: DoneCallback = None) -> Optional[str]:
        """Insert an empty note as the first child of parent_note_id."""
        parent = self._target(parent_note_id, "create child")
        if parent is None:
            return None

        children = self.store.children_of(parent.id)
        first_id = children[0].id if children else None
        placement = calculate_order_index(self.store.notes(), parent.id, None, first_id)

        note = Note(id=new_provisional_id(), page_id=parent.page_id,
                    parent_note_id=parent.id, order_index=placement.target)
        was_collapsed = parent.collapsed
        with self.store.batch():
            self.store.apply_order_updates(placement.sibling_updates)
            self.store.add_note(note)
            if was_collapsed:
                self.store.update_note(parent.id, collapsed=False)
        if was_collapsed:
            self.renderer.update_note_element(parent)
        self.renderer.add_note_element(note, parent.id, self.store.depth(note.id), first_id)

        self._submit_create(note, placement.sibling_updates, "Create child note", on_done)
        return note.id

    def _submit_create(self, note: Note, sibling_updates: List[OrderUpdate], name: str,
                       on_done: DoneCallback) -> None:
        temp_id = note.id
        page_id = note.page_id
        content = note.content
        parent_id = note.parent_note_id
        order_index = note.order_index

        def task():
            self._push_order(sibling_updates)
            created = self.gateway.create_note(page_id, content, self.resolve(parent_id), order_index)
            self._id_map[temp_id] = created.id
            return created

        self._persist(name, task,
                      lambda created: self._finalize(temp_id, created),
                      lambda exc: self._discard_new(temp_id, name, exc),
                      on_done)

    def _finalize(self, temp_id: str, created: Note) -> None:
        if temp_id not in self.store:
            Log.debug(f"created note {created.id} no longer on the page", 1)
            return
        with self.store.batch():
            self.store.rename(temp_id, created.id)
            self.store.update_note(created.id, created_at=created.created_at,
                                   updated_at=created.updated_at)
        self.renderer.rename_note_element(temp_id, created.id)
        Log.debug(f"finalized {temp_id} -> {created.id}", 1)

        if temp_id in self._unsaved:
            self._unsaved.discard(temp_id)
            note = self.store.find_by_id(created.id)
            if note.content != (created.content or ""):
                self._submit_content(note.id, note.content, None)

    def _discard_new(self, temp_id: str, name: str, exc: Exception) -> None:
        self._unsaved.discard(temp_id)
        orphans = [n.id for n in self.store.children_of(temp_id)]
        if self.store.remove_note_by_id(temp_id) is not None:
            self.renderer.remove_note_element(temp_id)
        if orphans:
            # notes were hung under the unsaved note; only the server knows where they are now
            Log.warn(f"{name}: {temp_id} was discarded with children {orphans}")
            self.renderer.alert(f"{name} failed: {exc}. Reloading the page.")
            self.reload_page()
        elif isinstance(exc, NotFoundError):
            self.renderer.alert(f"{name} failed: the page changed on the server. Reloading.")
            self.reload_page()
        else:
            self.renderer.alert(f"{name} failed: {exc}")

    # ------------------------------------------------------------------ #
    # moves
    # ------------------------------------------------------------------ #

    def indent(self, note_id: str, on_done: DoneCallback = None) -> bool:
        """Make the note the last child of its preceding sibling."""
        note = self._target(note_id, "indent")
        if note is None:
            return False

        siblings = self.store.children_of(note.parent_note_id)
        pos = next(i for i, n in enumerate(siblings) if n.id == note.id)
        if pos < 1:
            Log.debug(f"indent: {note.id} has no preceding sibling", 1)
            return False

        new_parent = siblings[pos - 1]
        if new_parent.provisional:
            Log.debug(f"indent: new parent {new_parent.id} is not saved yet, ignored", 1)
            return False
        children = self.store.children_of(new_parent.id)
        last_id = children[-1].id if children else None
        placement = calculate_order_index(self.store.notes(), new_parent.id, last_id, None)

        snapshot = self.store.snapshot()
        was_collapsed = new_parent.collapsed
        with self.store.batch():
            self.store.apply_order_updates(placement.sibling_updates)
            self.store.update_note(note.id, parent_note_id=new_parent.id,
                                   order_index=placement.target)
            if was_collapsed:
                self.store.update_note(new_parent.id, collapsed=False)
        if was_collapsed:
            self.renderer.update_note_element(new_parent)
        self.renderer.move_note_element(note, new_parent.id, self.store.depth(note.id), None)

        self._submit_move(note.id, snapshot, placement.sibling_updates, "Indent note", on_done)
        return True

    def outdent(self, note_id: str, on_done: DoneCallback = None) -> bool:
        """Move the note up one level, right after its old parent."""
        note = self._target(note_id, "outdent")
        if note is None:
            return False
        if note.parent_note_id is None:
            Log.debug(f"outdent: {note.id} is already a root note", 1)
            return False

        old_parent = self.store.find_by_id(note.parent_note_id)
        if old_parent is None:
            Log.warn(f"outdent: parent {note.parent_note_id} of {note.id} not found")
            return False

        placement = open_slot_after(self.store.notes(), old_parent.id)

        snapshot = self.store.snapshot()
        with self.store.batch():
            self.store.apply_order_updates(placement.sibling_updates)
            self.store.update_note(note.id, parent_note_id=old_parent.parent_note_id,
                                   order_index=placement.target)
        self.renderer.move_note_element(note, note.parent_note_id, self.store.depth(note.id),
                                        self._element_before(note))

        self._submit_move(note.id, snapshot, placement.sibling_updates, "Outdent note", on_done)
        return True

    def move_after(self, note_id: str, target_id: str, on_done: DoneCallback = None) -> bool:
        """Move the note (and its subtree) to sit right after target_id."""
        note = self._target(note_id, "move")
        target = self._target(target_id, "move")
        if note is None or target is None or note.id == target.id:
            return False
        if note.id in self.store.ancestors(target.id):
            Log.debug(f"move: {target.id} is inside the subtree of {note.id}", 1)
            return False

        others = [n for n in self.store.notes() if n.id != note.id]
        siblings = [n for n in self.store.children_of(target.parent_note_id) if n.id != note.id]
        pos = next(i for i, n in enumerate(siblings) if n.id == target.id)
        next_id = siblings[pos + 1].id if pos + 1 < len(siblings) else None
        placement = calculate_order_index(others, target.parent_note_id, target.id, next_id)

        snapshot = self.store.snapshot()
        with self.store.batch():
            self.store.apply_order_updates(placement.sibling_updates)
            self.store.update_note(note.id, parent_note_id=target.parent_note_id,
                                   order_index=placement.target)
        self.renderer.move_note_element(note, note.parent_note_id, self.store.depth(note.id),
                                        self._element_before(note))

        self._submit_move(note.id, snapshot, placement.sibling_updates, "Move note", on_done)
        return True

    def _submit_move(self, note_id: str, snapshot: StoreSnapshot,
                     sibling_updates: List[OrderUpdate], name: str, on_done: DoneCallback) -> None:
        note = self.store.find_by_id(note_id)
        parent_id = note.parent_note_id
        order_index = note.order_index
        # set on the worker thread once the server has taken the move itself
        moved = []

        def task():
            updated = self.gateway.update_note(self.resolve(note_id),
                                               parent_note_id=self.resolve(parent_id),
                                               order_index=order_index)
            moved.append(updated)
            self._push_order(sibling_updates)
            return updated

        def failed(exc):
            if moved:
                # the snapshot no longer matches the server; take the server's word
                self.renderer.alert(f"{name} failed: {exc}. Reloading the page.")
                self.reload_page()
                return
            self._rollback(snapshot, name, exc)

        self._persist(name, task, self._reconcile, failed, on_done)

    # ------------------------------------------------------------------ #
    # deletion
    # ------------------------------------------------------------------ #

    def delete_if_empty(self, note_id: str, on_done: DoneCallback = None) -> DeleteResult:
        """
        Remove an empty leaf note. Refused for notes with text or children and
        for the last note of the page. The result names the note that should
        get focus next: preceding sibling, else following sibling, else parent.
        """
        note = self._target(note_id, "delete")
        if note is None:
            return DeleteResult(False)
        if note.content.strip():
            return DeleteResult(False, note.id)
        if self.store.children_of(note.id):
            Log.debug(f"delete: {note.id} still has children", 1)
            return DeleteResult(False, note.id)
        if len(self.store) <= 1:
            Log.debug(f"delete: {note.id} is the last note on the page", 1)
            return DeleteResult(False, note.id)

        siblings = self.store.children_of(note.parent_note_id)
        pos = next(i for i, n in enumerate(siblings) if n.id == note.id)
        if pos > 0:
            focus_id = siblings[pos - 1].id
        elif pos + 1 < len(siblings):
            focus_id = siblings[pos + 1].id
        else:
            focus_id = note.parent_note_id

        with self.store.batch():
            self.store.remove_note_by_id(note.id)
            compact = compact_order(self.store.notes(), note.parent_note_id)
            self.store.apply_order_updates(compact)
        self.renderer.remove_note_element(note.id)

        deleted_id = note.id

        def task():
            self.gateway.delete_note(deleted_id)
            self._push_order(compact)

        def failed(exc):
            # The note is already gone locally; the server is the only copy left.
            self.renderer.alert(f"Delete note failed: {exc}. Reloading the page.")
            self.reload_page()

        self._persist("Delete note", task, lambda _: None, failed, on_done)
        return DeleteResult(True, focus_id)

    # ------------------------------------------------------------------ #
    # content and flags
    # ------------------------------------------------------------------ #

    def save_content(self, note_id: str, content: str, on_done: DoneCallback = None) -> bool:
        """Persist edited text. A failure never throws the text away."""
        note = self.store.find_by_id(self.resolve(note_id))
        if note is None:
            Log.warn(f"save: note {note_id} not found")
            return False
        if note.content == content and note.id not in self._unsaved:
            return False

        self.store.update_note(note.id, content=content)
        if note.provisional:
            # sent once the create is acknowledged
            self._unsaved.add(note.id)
            return True

        self._submit_content(note.id, content, on_done)
        return True

    def _submit_content(self, note_id: str, content: str, on_done: DoneCallback) -> None:
        def task():
            return self.gateway.update_note(self.resolve(note_id), content=content)

        def failed(exc):
            Log.warn(f"content of {note_id} kept locally after failed save")

        self._persist("Save note", task, self._reconcile, failed, on_done)

    def toggle_collapsed(self, note_id: str, on_done: DoneCallback = None) -> bool:
        note = self.store.find_by_id(self.resolve(note_id))
        if note is None:
            Log.warn(f"toggle collapsed: note {note_id} not found")
            return False

        collapsed = not note.collapsed
        self.store.update_note(note.id, collapsed=collapsed)
        self.renderer.update_note_element(note)
        if note.provisional:
            return True

        flagged_id = note.id

        def task():
            return self.gateway.update_note(self.resolve(flagged_id), collapsed=collapsed)

        def failed(exc):
            restored = self.store.update_note(self.resolve(flagged_id), collapsed=not collapsed)
            if restored is not None:
                self.renderer.update_note_element(restored)

        self._persist("Toggle collapsed", task, self._reconcile, failed, on_done)
        return True

    def toggle_task(self, note_id: str, on_done: DoneCallback = None) -> bool:
        """Cycle a leading task marker: DONE -> TODO, any other -> DONE, none -> TODO."""
        note = self._target(note_id, "toggle task")
        if note is None:
            return False

        old_content = note.content
        marker = next((m for m in TASK_MARKERS if old_content.upper().startswith(m)), None)
        if marker is None:
            new_content = "TODO " + old_content
        else:
            rest = old_content[len(marker):]
            new_content = ("TODO " if marker == "DONE " else "DONE ") + rest

        self.store.update_note(note.id, content=new_content)
        self.renderer.update_note_element(note)
        toggled_id = note.id

        def task():
            return self.gateway.update_note(self.resolve(toggled_id), content=new_content)

        def failed(exc):
            restored = self.store.update_note(self.resolve(toggled_id), content=old_content)
            if restored is not None:
                self.renderer.update_note_element(restored)

        self._persist("Toggle task", task, self._reconcile, failed, on_done)
        return True

    # ------------------------------------------------------------------ #
    # page loading
    # ------------------------------------------------------------------ #

    def load_page(self, page_id: str, on_done: DoneCallback = None) -> None:
        def loaded(notes):
            self._unsaved.clear()
            self.store.replace_all(page_id, notes)
            self.renderer.display_notes(self.store.notes())

        def failed(exc):
            self.renderer.alert(f"Could not load page {page_id}: {exc}")

        self._persist("Load page", lambda: self.gateway.list_notes(page_id), loaded, failed, on_done)

    def reload_page(self, on_done: DoneCallback = None) -> None:
        if self.store.page_id is None:
            Log.warn("reload requested with no page loaded")
            return
        self.load_page(self.store.page_id, on_done)