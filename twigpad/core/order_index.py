'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from twigpad.core.errors import ConcurrencyAnomaly, ValidationError
from twigpad.core.log import Log
from twigpad.core.note import Note

__all__ = [
    "OrderUpdate",
    "Placement",
    "siblings_of",
    "calculate_order_index",
    "open_slot_after",
    "compact_order",
]

@dataclass(slots=True, frozen=True)
class OrderUpdate:
    note_id: str
    order_index: int

@dataclass(slots=True, frozen=True)
class Placement:
    """Where a placed note goes, plus the sibling shifts needed to make room."""
    target: int
    sibling_updates: List[OrderUpdate] = field(default_factory=list)

def siblings_of(notes: Iterable[Note], parent_id: Optional[str]) -> List[Note]:
    """All notes under parent_id, ascending by order_index."""
    return sorted(
        (n for n in notes if n.parent_note_id == parent_id),
        key=lambda n: int(n.order_index),
    )

def _find_sibling(siblings: List[Note], note_id: str, role: str) -> int:
    for i, n in enumerate(siblings):
        if n.id == note_id:
            return i
    raise ValidationError(f"{role} sibling {note_id} is not a child of the target parent")

def _shift_from(siblings: List[Note], start: int) -> List[OrderUpdate]:
    return [OrderUpdate(n.id, int(n.order_index) + 1) for n in siblings[start:]]

def calculate_order_index(notes: Iterable[Note],
                          parent_id: Optional[str],
                          previous_id: Optional[str],
                          next_id: Optional[str]) -> Placement:
    """
    Compute the order_index for a note placed between previous_id and next_id
    under parent_id. Storage only holds integers, so a placement without room
    shifts the following siblings up by one instead of splitting the gap.

    Raises ValidationError when previous_id / next_id is not a sibling.
    """
    siblings = siblings_of(notes, parent_id)

    prev_pos = _find_sibling(siblings, previous_id, "previous") if previous_id is not None else None
    next_pos = _find_sibling(siblings, next_id, "next") if next_id is not None else None

    if prev_pos is None:
        # Head insert: everything already in the group moves up one.
        return Placement(0, _shift_from(siblings, 0))

    prev_index = int(siblings[prev_pos].order_index)

    if next_pos is None:
        return Placement(prev_index + 1)

    next_index = int(siblings[next_pos].order_index)
    gap = next_index - prev_index

    if next_pos == prev_pos + 1 and gap > 1:
        return Placement(prev_index + 1)

    if next_pos == prev_pos + 1 and gap == 1:
        return Placement(prev_index + 1, _shift_from(siblings, next_pos))

    # previous/next are not adjacent or are out of order
    return _append_fallback(siblings, previous_id, next_id)

def _append_fallback(siblings: List[Note], previous_id, next_id) -> Placement:
    target = int(siblings[-1].order_index) + 1 if siblings else 0
    Log.warn(
        f"{ConcurrencyAnomaly.__name__}: no slot between {previous_id} and {next_id}; "
        f"appending at {target}"
    )
    return Placement(target)

def open_slot_after(notes: Iterable[Note], anchor_id: str) -> Placement:
    """
    Claim anchor.order_index + 1 in the anchor's sibling group and shift every
    sibling after the anchor up by one.
    """
    notes = list(notes)
    anchor = next((n for n in notes if n.id == anchor_id), None)
    if anchor is None:
        raise ValidationError(f"anchor note {anchor_id} not found")

    siblings = siblings_of(notes, anchor.parent_note_id)
    updates = [
        OrderUpdate(n.id, int(n.order_index) + 1)
        for n in siblings
        if int(n.order_index) > int(anchor.order_index)
    ]
    return Placement(int(anchor.order_index) + 1, updates)

def compact_order(notes: Iterable[Note], parent_id: Optional[str]) -> List[OrderUpdate]:
    """Renumber a sibling group densely from 0, returning only real changes."""
    return [
        OrderUpdate(n.id, i)
        for i, n in enumerate(siblings_of(notes, parent_id))
        if int(n.order_index) != i
    ]
