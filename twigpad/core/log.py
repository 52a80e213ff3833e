################################################################################################

'''

Copyright 2025 Aaron Vose (avose@aaronvose.net)

Licensed under the LGPL v2.1; see the file 'LICENSE' for details.

This file holds the info / debug logger shared by the outline engine.

'''

################################################################################################

import inspect
import threading
from datetime import datetime

################################################################################################

def _now() -> str:
    return datetime.now().strftime("%m/%d/%Y %H:%M:%S")

def _caller_filename(depth: int) -> str:
    stack = inspect.stack()
    if len(stack) > depth:
        return stack[depth].filename.replace('\\', '/').split('/')[-1]
    return "unknown"

class LogManager():
    __log = None
    __lock = threading.Lock()

    def __init__(self, verbosity: int = 0):
        if LogManager.__log is None:
            LogManager.__log = [(_now(), "Begin TwigPad Log")]
        self.verbosity = verbosity

    def add(self, text: str):
        # The IO worker thread logs too.
        with LogManager.__lock:
            LogManager.__log.append((_now(), text))

    def debug(self, text: str, level: int = 0):
        if self.verbosity >= level:
            self.add(f"[{_caller_filename(2)}] {text}")

    def warn(self, text: str):
        """Record a recoverable anomaly regardless of verbosity."""
        self.add(f"[{_caller_filename(2)}] WARNING: {text}")

    def error(self, text: str):
        """Record a failure regardless of verbosity."""
        self.add(f"[{_caller_filename(2)}] ERROR: {text}")

    def get(self, index: int = None):
        with LogManager.__lock:
            if index is not None:
                return LogManager.__log[index]
            return LogManager.__log.copy()

    def find(self, needle: str):
        """Return the messages containing needle, oldest first."""
        return [msg for _, msg in self.get() if needle in msg]

    def count(self):
        return len(LogManager.__log)

    def set_verbosity(self, verbosity: int = 0):
        self.verbosity = verbosity

    def clear(self):
        """Clear all log entries."""
        with LogManager.__lock:
            LogManager.__log.clear()
            LogManager.__log.append((_now(), "Log cleared"))

    def write_to_file(self, filepath: str):
        """Write all log entries to a file."""
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                for timestamp, message in self.get():
                    f.write(f"[{timestamp}] {message}\n")
            self.add(f"Log written to file: {filepath}")
            return True
        except OSError as e:
            self.add(f"Failed to write log to file '{filepath}': {e}")
            return False

################################################################################################

Log = LogManager()

################################################################################################
