# core/io_worker.py
'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
import threading
import queue
import traceback

from twigpad.core.log import Log

class CallQueue:
    """
    Callbacks handed over by background threads. Nothing runs until the UI
    loop calls drain(), so the draining thread stays the only store writer.
    """

    def __init__(self):
        self._q = queue.Queue()

    def post(self, fn, *args):
        self._q.put((fn, args))

    def pending(self) -> int:
        return self._q.qsize()

    def drain(self) -> int:
        """Run every queued callback on the calling thread; returns how many ran."""
        ran = 0
        while True:
            try:
                fn, args = self._q.get_nowait()
            except queue.Empty:
                return ran
            try:
                fn(*args)
            except Exception:
                Log.error(f"posted callback failed:\n{traceback.format_exc()}")
            ran += 1

class IOWorker:
    """
    Single background thread for persistence calls. The UI thread stays the
    only writer of the note store: callbacks are handed to `post`, which under
    wxPython is wx.CallAfter. Without one they wait in `calls` until the
    owner drains it.

    Tasks run strictly in submission order, so requests reach the server in
    the order the user fired them.
    """

    def __init__(self, post=None, name: str = "IOWorker"):
        self.calls = None
        if post is None:
            self.calls = CallQueue()
            post = self.calls.post
        self._post = post
        self._q = queue.Queue()
        self._t = threading.Thread(target=self._run, name=name, daemon=True)
        self._t.start()

    def submit(self, fn, *args, callback=None, **kwargs):
        """Queue a task; callback(result, error) is delivered through post."""
        self._q.put((fn, args, kwargs, callback))

    def join(self):
        """Block until every queued task has run and its callback was posted."""
        self._q.join()

    def _run(self):
        """Background thread main loop."""
        while True:
            fn, args, kwargs, cb = self._q.get()
            result = None
            err = None

            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                err = (e, traceback.format_exc())

            try:
                if cb:
                    self._post(cb, result, err)
                elif err is not None:
                    # No callback provided; keep the traceback for debugging.
                    Log.error(f"IOWorker task {getattr(fn, '__name__', fn)} failed:\n{err[1]}")
            except Exception:
                Log.error(f"IOWorker callback failed:\n{traceback.format_exc()}")
            finally:
                self._q.task_done()

class InlineWorker:
    """Runs each task immediately on the calling thread. For scripts and tests."""

    def submit(self, fn, *args, callback=None, **kwargs):
        result = None
        err = None
        try:
            result = fn(*args, **kwargs)
        except Exception as e:
            err = (e, traceback.format_exc())
        if callback:
            callback(result, err)
        elif err is not None:
            Log.error(f"InlineWorker task {getattr(fn, '__name__', fn)} failed:\n{err[1]}")

    def join(self):
        pass
