'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
import threading
import time
import unittest
from datetime import datetime, timezone

from twigpad.core.gateway import UNSET
from twigpad.core.io_worker import InlineWorker
from twigpad.core.log import Log
from twigpad.core.tree_editor import TreeEditor
from twigpad.ui.constants import (
    MODE_EDIT, MODE_RENDERED,
    KEY_ENTER, KEY_TAB, KEY_BACKSPACE, KEY_DELETE, KEY_ESCAPE,
    KEY_UP, KEY_DOWN, KEY_LEFT, KEY_HOME, KEY_END,
)
from twigpad.ui.debounce import ThreadScheduler
from twigpad.ui.keys import InputController
from twigpad.ui.types import KeyPress

from fakes import (
    DeferredWorker,
    FakeGateway,
    ManualScheduler,
    RecordingRenderer,
    loaded_store,
    sample_notes,
)

NOW = datetime(2025, 3, 4, 5, 6, 7, 890000, tzinfo=timezone.utc)

class InputControllerTestCase(unittest.TestCase):

    def setUp(self):
        Log.clear()
        self.build(InlineWorker())

    def build(self, worker, notes=None):
        notes = notes if notes is not None else sample_notes()
        self.gateway = FakeGateway(notes)
        self.store = loaded_store(notes)
        self.renderer = RecordingRenderer()
        self.worker = worker
        self.editor = TreeEditor(self.store, self.gateway, worker, self.renderer)
        self.scheduler = ManualScheduler()
        self.keys = InputController(self.store, self.editor, self.renderer,
                                    scheduler=self.scheduler, clock=lambda: NOW)

    def press(self, key, shift=False, ctrl=False):
        return self.keys.handle_key(KeyPress(key, shift=shift, ctrl=ctrl))

    def type(self, text):
        for ch in text:
            self.assertTrue(self.press(ch))

class ModeTest(InputControllerTestCase):

    def test_nothing_focused(self):
        self.assertFalse(self.press(KEY_ENTER))

    def test_enter_in_rendered_mode_starts_editing(self):
        self.keys.focus("B")
        self.assertTrue(self.press(KEY_ENTER))
        self.assertEqual(self.keys.mode, MODE_EDIT)
        self.assertEqual(len(self.store), 5)
        self.assertIn(("switch_to_edit_mode", "B"), self.renderer.calls)

    def test_typing_in_rendered_mode_is_not_consumed(self):
        self.keys.focus("B")
        self.assertFalse(self.press("x"))
        self.assertEqual(self.store.find_by_id("B").content, "b")

    def test_escape_saves_and_leaves_edit_mode(self):
        self.keys.focus("B", MODE_EDIT)
        self.type("ee")
        self.assertTrue(self.press(KEY_ESCAPE))
        self.assertEqual(self.keys.mode, MODE_RENDERED)
        self.assertEqual(self.gateway.notes["B"].content, "bee")
        self.assertEqual(self.scheduler.live(), [])

    def test_focused_note_removed_underneath(self):
        self.keys.focus("C")
        self.store.remove_note_by_id("C")
        self.assertFalse(self.press(KEY_ENTER))
        self.assertIsNone(self.keys.focused_id)

class EditingTest(InputControllerTestCase):

    def test_typing_is_debounced(self):
        self.keys.focus("B", MODE_EDIT)
        self.type("xy")
        self.assertEqual(len(self.scheduler.handles), 2)
        self.assertTrue(self.scheduler.handles[0].cancelled)
        self.assertEqual(self.gateway.calls, [])

        self.scheduler.fire_all()
        self.assertEqual(self.gateway.notes["B"].content, "bxy")
        self.assertEqual(self.gateway.names(), ["update_note"])

    def test_shift_enter_adds_soft_newline(self):
        self.keys.focus("B", MODE_EDIT)
        self.assertTrue(self.press(KEY_ENTER, shift=True))
        self.assertEqual(self.keys.edit.text, "b\n")
        self.assertEqual(len(self.store), 5)
        self.scheduler.fire_all()
        self.assertEqual(self.gateway.notes["B"].content, "b\n")

    def test_blur_saves_immediately(self):
        self.keys.focus("B", MODE_EDIT)
        self.type("z")
        self.keys.blur()
        self.assertEqual(self.gateway.notes["B"].content, "bz")
        self.assertEqual(self.scheduler.live(), [])
        self.assertIn(("switch_to_rendered_mode", "B"), self.renderer.calls)

    def test_backspace_and_delete_edit_text(self):
        self.keys.focus("B", MODE_EDIT)
        self.type("cd")
        self.press(KEY_LEFT)
        self.press(KEY_BACKSPACE)
        self.assertEqual(self.keys.edit.text, "bd")
        self.press(KEY_DELETE)
        self.assertEqual(self.keys.edit.text, "b")
        self.assertIn("B", self.store)

    def test_caret_movement(self):
        self.store.update_note("B", content="ab\ncd")
        self.keys.focus("B", MODE_EDIT)
        self.assertEqual(self.keys.edit.cursor_pos, 5)
        self.press(KEY_HOME)
        self.assertEqual(self.keys.edit.cursor_pos, 3)
        self.press(KEY_LEFT)
        self.press(KEY_HOME)
        self.assertEqual(self.keys.edit.cursor_pos, 0)
        self.press(KEY_END)
        self.assertEqual(self.keys.edit.cursor_pos, 2)

    def test_tag_trigger(self):
        self.keys.focus("B", MODE_EDIT)
        self.type(":t ")
        self.assertEqual(self.keys.edit.text, "b{tag::}")
        self.assertEqual(self.keys.edit.cursor_pos, len("b{tag::"))
        self.assertEqual(self.gateway.notes["B"].content, "b{tag::}")
        self.assertEqual(self.scheduler.live(), [])

    def test_date_and_time_triggers(self):
        self.keys.focus("B", MODE_EDIT)
        self.type(" :d ")
        self.assertEqual(self.gateway.notes["B"].content, "b {date::2025-03-04} ")
        self.type(":r ")
        self.assertEqual(self.keys.edit.text,
                         "b {date::2025-03-04} {time::2025-03-04T05:06:07.890Z} ")

class StructureKeysTest(InputControllerTestCase):

    def test_enter_creates_sibling_and_focuses_it(self):
        self.keys.focus("B", MODE_EDIT)
        self.assertTrue(self.press(KEY_ENTER))
        self.assertEqual(len(self.store), 6)
        new_id = self.keys.focused_id
        self.assertEqual([n.id for n in self.store.roots()], ["A", "B", new_id, "C"])
        self.assertEqual(self.keys.mode, MODE_EDIT)
        self.assertEqual(self.keys.edit.text, "")

    def test_enter_flushes_pending_text_first(self):
        self.keys.focus("B", MODE_EDIT)
        self.type("!")
        self.press(KEY_ENTER)
        self.assertEqual(self.gateway.names()[0], "update_note")
        self.assertEqual(self.gateway.notes["B"].content, "b!")

    def test_tab_flushes_then_indents(self):
        self.keys.focus("B", MODE_EDIT)
        self.type("!")
        self.assertTrue(self.press(KEY_TAB))
        self.assertEqual(self.gateway.calls[0], ("update_note", "B", "b!", UNSET, None, None))
        self.assertEqual(self.store.find_by_id("B").parent_note_id, "A")
        self.assertEqual(self.keys.focused_id, "B")

    def test_shift_tab_outdents(self):
        self.keys.focus("A2", MODE_EDIT)
        self.assertTrue(self.press(KEY_TAB, shift=True))
        self.assertIsNone(self.store.find_by_id("A2").parent_note_id)

    def test_backspace_on_empty_note_deletes_it(self):
        notes = sample_notes()
        notes[-1].content = ""
        self.build(InlineWorker(), notes)
        self.keys.focus("C", MODE_EDIT)
        self.assertTrue(self.press(KEY_BACKSPACE))
        self.assertNotIn("C", self.store)
        self.assertNotIn("C", self.gateway.notes)
        self.assertEqual(self.keys.focused_id, "B")
        self.assertEqual(self.keys.mode, MODE_EDIT)

    def test_backspace_on_whitespace_only_note_deletes_it(self):
        notes = sample_notes()
        notes[-1].content = "  "
        self.build(InlineWorker(), notes)
        self.keys.focus("C", MODE_EDIT)
        self.press(KEY_HOME)
        self.assertEqual(self.keys.edit.cursor_pos, 0)
        self.assertTrue(self.press(KEY_BACKSPACE))
        self.assertNotIn("C", self.store)
        self.assertNotIn("C", self.gateway.notes)
        self.assertEqual(self.keys.focused_id, "B")

    def test_backspace_on_empty_parent_keeps_it(self):
        self.store.update_note("A", content="")
        self.keys.focus("A", MODE_EDIT)
        self.assertTrue(self.press(KEY_BACKSPACE))
        self.assertIn("A", self.store)
        self.assertEqual(self.keys.focused_id, "A")

    def test_arrows_follow_visible_order(self):
        self.keys.focus("A")
        order = []
        for _ in range(4):
            self.press(KEY_DOWN)
            order.append(self.keys.focused_id)
        self.assertEqual(order, ["A1", "A2", "B", "C"])
        self.press(KEY_DOWN)
        self.assertEqual(self.keys.focused_id, "C")
        self.press(KEY_UP)
        self.assertEqual(self.keys.focused_id, "B")
        self.assertEqual(self.gateway.calls, [])

    def test_arrows_skip_collapsed_children(self):
        self.store.update_note("A", collapsed=True)
        self.keys.focus("A")
        self.press(KEY_DOWN)
        self.assertEqual(self.keys.focused_id, "B")

    def test_arrow_flushes_pending_save(self):
        self.keys.focus("A1", MODE_EDIT)
        self.type("!")
        self.press(KEY_DOWN)
        self.assertEqual(self.gateway.notes["A1"].content, "a1!")
        self.assertEqual(self.keys.focused_id, "A2")
        self.assertEqual(self.keys.edit.text, "a2")

class ProvisionalFocusTest(InputControllerTestCase):

    def setUp(self):
        Log.clear()
        self.build(DeferredWorker())

    def test_structural_keys_wait_for_the_server(self):
        self.keys.focus("B", MODE_EDIT)
        self.press(KEY_ENTER)
        temp_id = self.keys.focused_id
        self.assertTrue(self.keys.focused_is_provisional())

        self.assertTrue(self.press(KEY_ENTER))
        self.assertTrue(self.press(KEY_TAB))
        self.assertTrue(self.press(KEY_BACKSPACE))
        self.assertEqual(len(self.store), 6)
        self.assertIsNone(self.store.find_by_id(temp_id).parent_note_id)

        self.type("h")
        self.assertEqual(self.keys.edit.text, "h")

        self.worker.run_all()
        self.assertFalse(self.keys.focused_is_provisional())
        self.assertTrue(self.press(KEY_TAB))
        self.worker.run_all()
        self.assertEqual(self.store.find_by_id(self.keys.focused_id).parent_note_id, "B")

class TimerSaveTest(unittest.TestCase):

    def test_debounced_save_waits_for_the_ui_loop(self):
        Log.clear()
        notes = sample_notes()
        store = loaded_store(notes)
        gateway = FakeGateway(notes)
        writers = set()
        store.add_listener(lambda: writers.add(threading.current_thread().name))
        editor = TreeEditor(store, gateway, InlineWorker(), RecordingRenderer())
        scheduler = ThreadScheduler()
        keys = InputController(store, editor, scheduler=scheduler, delay_ms=10)

        keys.focus("B", MODE_EDIT)
        self.assertTrue(keys.handle_key(KeyPress("x")))
        deadline = time.monotonic() + 5
        while not scheduler.calls.pending() and time.monotonic() < deadline:
            time.sleep(0.01)
        self.assertEqual(store.find_by_id("B").content, "b")

        scheduler.calls.drain()
        self.assertEqual(store.find_by_id("B").content, "bx")
        self.assertEqual(gateway.notes["B"].content, "bx")
        self.assertEqual(writers, {threading.current_thread().name})

if __name__ == "__main__":
    unittest.main()
