'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

__all__ = ["Note", "PROVISIONAL_PREFIX", "new_provisional_id", "is_provisional"]

PROVISIONAL_PREFIX = "temp-"

def new_provisional_id() -> str:
    return f"{PROVISIONAL_PREFIX}{uuid.uuid4().hex[:12]}"

def is_provisional(note_id: Optional[str]) -> bool:
    return isinstance(note_id, str) and note_id.startswith(PROVISIONAL_PREFIX)

@dataclass
class Note:
    """
    One bullet of a page outline.

    • parent_note_id – None for root notes
    • order_index    – position among siblings, ascending
    • collapsed      – display only; hides the subtree
    • created_at / updated_at – server-canonical, None until acknowledged
    """
    id: str
    page_id: str
    parent_note_id: Optional[str] = None
    order_index: int = 0
    content: str = ""
    collapsed: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def copy(self) -> Note:
        return replace(self)

    @property
    def provisional(self) -> bool:
        return is_provisional(self.id)

    @classmethod
    def from_storage(cls, data: Dict[str, Any]) -> Note:
        """Create a note from the server's wire format."""
        parent = data.get("parent_note_id")
        return cls(
            id=str(data["id"]),
            page_id=str(data["page_id"]),
            parent_note_id=str(parent) if parent not in (None, "", 0) else None,
            order_index=int(data.get("order_index") or 0),
            content=data.get("content") or "",
            collapsed=bool(int(data.get("collapsed") or 0)),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    def to_storage(self) -> Dict[str, Any]:
        """Convert to the server's wire format."""
        item = {
            "id": self.id,
            "page_id": self.page_id,
            "parent_note_id": self.parent_note_id,
            "order_index": self.order_index,
            "content": self.content,
            "collapsed": 1 if self.collapsed else 0,
        }
        if self.created_at:
            item["created_at"] = self.created_at
        if self.updated_at:
            item["updated_at"] = self.updated_at
        return item
