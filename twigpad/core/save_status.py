'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
from __future__ import annotations

from typing import Callable, List

__all__ = ["SaveStatus", "SAVED", "PENDING", "ERROR"]

SAVED = "saved"
PENDING = "pending"
ERROR = "error"

class SaveStatus:
    """
    Save indicator shown in the status bar.

    Tracks in-flight requests so the indicator stays "pending" while any call
    is outstanding. A failure sticks as "error" until the next success.
    """

    def __init__(self):
        self.state = SAVED
        self.message = ""
        self._in_flight = 0
        self._listeners: List[Callable[[str, str], None]] = []

    def add_listener(self, fn: Callable[[str, str], None]) -> None:
        self._listeners.append(fn)

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def begin(self) -> None:
        self._in_flight += 1
        if self.state != ERROR:
            self._set(PENDING, "")

    def succeed(self) -> None:
        self._in_flight = max(0, self._in_flight - 1)
        if self._in_flight == 0:
            self._set(SAVED, "")
        elif self.state == ERROR:
            self._set(PENDING, "")

    def fail(self, message: str) -> None:
        self._in_flight = max(0, self._in_flight - 1)
        self._set(ERROR, message)

    def _set(self, state: str, message: str) -> None:
        if (state, message) == (self.state, self.message):
            return
        self.state = state
        self.message = message
        for fn in list(self._listeners):
            fn(state, message)
