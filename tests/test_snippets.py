'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
import unittest
from datetime import datetime, timedelta, timezone

from twigpad.ui.snippets import expand_trigger, iso_timestamp

NOW = datetime(2024, 12, 31, 23, 59, 58, 5000, tzinfo=timezone.utc)

class ExpandTriggerTest(unittest.TestCase):

    def test_tag_leaves_caret_inside(self):
        text, cursor = expand_trigger("see :t ", 7)
        self.assertEqual(text, "see {tag::}")
        self.assertEqual(text[cursor], "}")

    def test_date(self):
        self.assertEqual(expand_trigger(":d ", 3, NOW), ("{date::2024-12-31} ", 19))

    def test_time(self):
        text, cursor = expand_trigger("at :r ", 6, NOW)
        self.assertEqual(text, "at {time::2024-12-31T23:59:58.005Z} ")
        self.assertEqual(cursor, len(text))

    def test_text_after_caret_is_kept(self):
        text, cursor = expand_trigger("a :t  tail", 5)
        self.assertEqual(text, "a {tag::} tail")
        self.assertEqual(cursor, 8)

    def test_trigger_must_end_at_caret(self):
        self.assertIsNone(expand_trigger(":t x", 4))
        self.assertIsNone(expand_trigger(":t ", 2))
        self.assertIsNone(expand_trigger("plain text ", 11))

    def test_timestamp_is_utc(self):
        local = NOW.astimezone(timezone(timedelta(hours=-5)))
        self.assertEqual(iso_timestamp(local), "2024-12-31T23:59:58.005Z")

if __name__ == "__main__":
    unittest.main()
