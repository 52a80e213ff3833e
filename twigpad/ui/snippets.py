'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Tuple

from twigpad.ui.constants import SNIPPET_TAG, SNIPPET_DATE, SNIPPET_TIME

__all__ = ["expand_trigger", "iso_timestamp"]

def iso_timestamp(now: datetime) -> str:
    """UTC timestamp with millisecond precision and a trailing Z."""
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"

def expand_trigger(text: str, cursor: int,
                   now: Optional[datetime] = None) -> Optional[Tuple[str, int]]:
    """
    Replace a trigger sequence that ends right at the caret.

      ":t " -> "{tag::}"                     caret lands before the closing brace
      ":d " -> "{date::YYYY-MM-DD} "
      ":r " -> "{time::<ISO timestamp>} "

    Returns (new_text, new_cursor), or None when no trigger ends at the caret.
    """
    before = text[:cursor]
    after = text[cursor:]

    if before.endswith(SNIPPET_TAG):
        head = before[:-len(SNIPPET_TAG)]
        replacement = "{tag::}"
        return head + replacement + after, len(head) + len(replacement) - 1

    if before.endswith(SNIPPET_TIME) or before.endswith(SNIPPET_DATE):
        if now is None:
            now = datetime.now(timezone.utc)
        stamp = iso_timestamp(now)
        if before.endswith(SNIPPET_TIME):
            head = before[:-len(SNIPPET_TIME)]
            replacement = f"{{time::{stamp}}} "
        else:
            head = before[:-len(SNIPPET_DATE)]
            replacement = f"{{date::{stamp.split('T')[0]}}} "
        return head + replacement + after, len(head) + len(replacement)

    return None
