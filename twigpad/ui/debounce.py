'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
from __future__ import annotations

import threading
from typing import Callable, Dict, Optional, Tuple

from twigpad.core.io_worker import CallQueue
from twigpad.core.log import Log

__all__ = ["ThreadScheduler", "DebouncedSaver"]

class _TimerHandle:
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self):
        self._timer.cancel()

class ThreadScheduler:
    """
    call_later() on threading.Timer. The timer thread only hands the callback
    to `post` (wx.CallAfter under wxPython); without one it waits in `calls`
    for the UI loop to drain.
    """

    def __init__(self, post: Optional[Callable] = None):
        self.calls = None
        if post is None:
            self.calls = CallQueue()
            post = self.calls.post
        self._post = post

    def call_later(self, delay_ms: int, fn: Callable[[], None]):
        timer = threading.Timer(delay_ms / 1000.0, self._post, args=(fn,))
        timer.daemon = True
        timer.start()
        return _TimerHandle(timer)

class DebouncedSaver:
    """
    One pending save per note. Each schedule() cancels the note's previous
    task and starts the delay over; flush() saves now.

    save_fn(note_id, text) does the actual persistence.
    """

    def __init__(self, scheduler, delay_ms: int, save_fn: Callable[[str, str], None]):
        self._scheduler = scheduler
        self.delay_ms = delay_ms
        self._save_fn = save_fn
        # note_id -> (handle, text, token)
        self._pending: Dict[str, Tuple[object, str, object]] = {}

    def pending(self, note_id: str) -> bool:
        return note_id in self._pending

    def schedule(self, note_id: str, text: str):
        self.cancel(note_id)
        token = object()
        handle = self._scheduler.call_later(self.delay_ms, lambda: self._fire(note_id, token))
        self._pending[note_id] = (handle, text, token)
        Log.debug(f"save of {note_id} scheduled in {self.delay_ms}ms", 75)

    def cancel(self, note_id: str) -> bool:
        entry = self._pending.pop(note_id, None)
        if entry is None:
            return False
        entry[0].cancel()
        return True

    def flush(self, note_id: str, text: Optional[str] = None) -> bool:
        """
        Save right away, with text if given or else the pending text.
        Returns False when there was nothing to save.
        """
        entry = self._pending.pop(note_id, None)
        if entry is not None:
            entry[0].cancel()
            if text is None:
                text = entry[1]
        if text is None:
            return False
        self._save_fn(note_id, text)
        return True

    def flush_all(self):
        for note_id in list(self._pending):
            self.flush(note_id)

    def _fire(self, note_id: str, token):
        entry = self._pending.get(note_id)
        # A late timer from an already-replaced task must not save stale text.
        if entry is None or entry[2] is not token:
            return
        del self._pending[note_id]
        self._save_fn(note_id, entry[1])
