'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
import unittest

from twigpad.core.save_status import ERROR, PENDING, SAVED, SaveStatus

class SaveStatusTest(unittest.TestCase):

    def setUp(self):
        self.status = SaveStatus()
        self.seen = []
        self.status.add_listener(lambda state, msg: self.seen.append(state))

    def test_pending_until_every_call_returns(self):
        self.status.begin()
        self.status.begin()
        self.status.succeed()
        self.assertEqual(self.status.state, PENDING)
        self.status.succeed()
        self.assertEqual(self.status.state, SAVED)
        self.assertEqual(self.seen, [PENDING, SAVED])

    def test_error_sticks_until_next_success(self):
        self.status.begin()
        self.status.fail("Save note failed: offline")
        self.status.begin()
        self.assertEqual(self.status.state, ERROR)
        self.assertEqual(self.status.message, "Save note failed: offline")
        self.status.succeed()
        self.assertEqual(self.status.state, SAVED)
        self.assertEqual(self.status.in_flight, 0)

if __name__ == "__main__":
    unittest.main()
