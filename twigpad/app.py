# app.py
'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
import sys
import traceback
from typing import Optional

from twigpad.core.api_client import HttpGateway
from twigpad.core.io_worker import InlineWorker
from twigpad.core.log import Log
from twigpad.core.note_store import NoteStore
from twigpad.core.renderer import Renderer
from twigpad.core.tree_editor import TreeEditor
from twigpad.ui.flat_tree import flatten

def on_exception(exc_type, exc_value, exc_traceback):
    """Record unhandled exceptions in the log instead of failing silently."""
    if issubclass(exc_type, KeyboardInterrupt):
        # Allow Ctrl+C to work normally
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return

    tb_text = ''.join(traceback.format_exception(exc_type, exc_value, exc_traceback))
    error_message = f"!ERROR! Unhandled Exception:\n{tb_text}"
    Log.debug(error_message, 0)
    print(error_message, file=sys.stderr)

class ConsoleRenderer(Renderer):
    """Alerts go to stderr; the outline itself is printed once loaded."""

    def alert(self, message: str):
        Log.warn(message)
        print(message, file=sys.stderr)

def format_outline(store: NoteStore) -> str:
    lines = []
    for row in flatten(store, include_collapsed=True):
        note = store.find_by_id(row.note_id)
        text = note.content.replace("\n", " ")
        marker = "+" if note.collapsed and store.children_of(note.id) else "-"
        lines.append(f"{'  ' * row.level}{marker} {text}")
    return "\n".join(lines)

def main(api_url: str, page_id: str, verbosity: int = 0, stdexp: bool = False,
         log_file: Optional[str] = None, gui: bool = False) -> int:
    # Install the exception handler
    if not stdexp:
        sys.excepthook = on_exception

    Log.set_verbosity(verbosity)
    Log.debug(f"TwigPad: loading page {page_id} from {api_url}", 1)

    if gui:
        # wx is only needed for the interactive window
        from twigpad.ui.outline_frame import run_gui
        status = run_gui(HttpGateway(api_url), page_id)
        _save_log(log_file)
        return status

    store = NoteStore()
    editor = TreeEditor(store, HttpGateway(api_url), InlineWorker(), renderer=ConsoleRenderer())

    loaded = []
    editor.load_page(page_id, on_done=loaded.append)

    status = 0
    if loaded and loaded[0]:
        print(format_outline(store))
    else:
        status = 1

    _save_log(log_file)
    return status

def _save_log(log_file: Optional[str]):
    if log_file and not Log.write_to_file(log_file):
        print(f"Could not write log to {log_file}", file=sys.stderr)
