'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from twigpad.core.note import Note
from twigpad.core.order_index import OrderUpdate

__all__ = ["PersistenceGateway", "UNSET"]

class _Unset:
    def __repr__(self):
        return "UNSET"

# parent_note_id=None means "move to root", so absence needs its own marker.
UNSET = _Unset()

class PersistenceGateway(ABC):
    """
    Remote store for the notes of a page.

    Every method blocks and is meant to run on the IOWorker thread. Failures
    raise NetworkError, NotFoundError or ValidationError.
    """

    @abstractmethod
    def list_notes(self, page_id: str) -> List[Note]:
        ...

    @abstractmethod
    def create_note(self, page_id: str, content: str, parent_note_id: Optional[str],
                    order_index: int) -> Note:
        ...

    @abstractmethod
    def update_note(self, note_id: str, content: Optional[str] = None,
                    parent_note_id=UNSET, order_index: Optional[int] = None,
                    collapsed: Optional[bool] = None) -> Note:
        ...

    @abstractmethod
    def delete_note(self, note_id: str) -> None:
        ...

    @abstractmethod
    def batch_update_order_indexes(self, updates: Sequence[OrderUpdate]) -> None:
        """Apply all updates or none of them."""
        ...
