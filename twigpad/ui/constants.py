'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''

# Delay between the last keystroke and the content save
SAVE_DEBOUNCE_MS = 1000

# Edit modes of the focused note
MODE_EDIT = "edit"
MODE_RENDERED = "rendered"

# Key names understood by the input controller
KEY_ENTER = "Enter"
KEY_TAB = "Tab"
KEY_BACKSPACE = "Backspace"
KEY_DELETE = "Delete"
KEY_ESCAPE = "Escape"
KEY_UP = "ArrowUp"
KEY_DOWN = "ArrowDown"
KEY_LEFT = "ArrowLeft"
KEY_RIGHT = "ArrowRight"
KEY_HOME = "Home"
KEY_END = "End"

# Typed right before the caret, then expanded by ui.snippets
SNIPPET_TAG = ":t "
SNIPPET_DATE = ":d "
SNIPPET_TIME = ":r "
