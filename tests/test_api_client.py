'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
import unittest
from unittest import mock

import requests

from twigpad.core.api_client import HttpGateway
from twigpad.core.errors import NetworkError, NotFoundError, ValidationError
from twigpad.core.order_index import OrderUpdate

def _response(status=200, payload=None, headers=None, text_only=False):
    response = mock.Mock()
    response.status_code = status
    response.headers = headers or {}
    response.reason = "Reason"
    if text_only:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response

NOTE = {"id": 7, "page_id": "p1", "parent_note_id": None, "order_index": 2,
        "content": "hi", "collapsed": "0", "created_at": "c", "updated_at": "u"}

class HttpGatewayTest(unittest.TestCase):

    def setUp(self):
        self.session = mock.Mock()
        self.session.headers = {}
        self.gateway = HttpGateway("http://example.test/api", session=self.session, backoff=0)
        sleeper = mock.patch.object(HttpGateway, "_sleep")
        self.sleep = sleeper.start()
        self.addCleanup(sleeper.stop)

    def reply(self, *responses):
        self.session.request.side_effect = list(responses)

    def sent(self, index=-1):
        args, kwargs = self.session.request.call_args_list[index]
        return args, kwargs

    def test_list_notes(self):
        self.reply(_response(payload={"status": "success", "data": [NOTE]}))
        notes = self.gateway.list_notes("p1")
        self.assertEqual(len(notes), 1)
        self.assertEqual(notes[0].id, "7")
        self.assertFalse(notes[0].collapsed)
        args, kwargs = self.sent()
        self.assertEqual(args, ("GET", "http://example.test/api/notes.php"))
        self.assertEqual(kwargs["params"], {"page_id": "p1"})

    def test_list_notes_inside_page_payload(self):
        self.reply(_response(payload={"success": True, "data": {"page": {}, "notes": [NOTE]}}))
        self.assertEqual([n.id for n in self.gateway.list_notes("p1")], ["7"])

    def test_create_note(self):
        self.reply(_response(payload={"status": "success", "data": NOTE}))
        note = self.gateway.create_note("p1", "hi", None, 2)
        self.assertEqual(note.order_index, 2)
        _, kwargs = self.sent()
        self.assertEqual(kwargs["json"], {"page_id": "p1", "content": "hi",
                                          "parent_note_id": None, "order_index": 2})

    def test_update_sends_only_given_fields(self):
        self.reply(_response(payload={"status": "success", "data": NOTE}),
                   _response(payload={"status": "success", "data": NOTE}))
        self.gateway.update_note("7", content="x")
        self.assertEqual(self.sent()[1]["json"], {"id": "7", "_method": "PUT", "content": "x"})
        self.gateway.update_note("7", parent_note_id=None, order_index=0, collapsed=True)
        self.assertEqual(self.sent()[1]["json"], {"id": "7", "_method": "PUT", "parent_note_id": None,
                                                  "order_index": 0, "collapsed": 1})

    def test_delete(self):
        self.reply(_response(payload={"status": "success", "data": None}))
        self.gateway.delete_note("7")
        self.assertEqual(self.sent()[1]["json"], {"id": "7", "_method": "DELETE"})

    def test_batch_reorder(self):
        results = {"results": [{"status": "success"}, {"status": "success"}]}
        self.reply(_response(payload={"status": "success", "data": results}))
        self.gateway.batch_update_order_indexes([OrderUpdate("1", 3), OrderUpdate("2", 4)])
        body = self.sent()[1]["json"]
        self.assertTrue(body["batch"])
        self.assertEqual(body["operations"][1], {"type": "update", "payload": {"id": "2", "order_index": 4}})

    def test_empty_batch_sends_nothing(self):
        self.gateway.batch_update_order_indexes([])
        self.session.request.assert_not_called()

    def test_batch_with_failed_operation(self):
        results = {"results": [{"status": "success"}, {"status": "error", "message": "nope"}]}
        self.reply(_response(payload={"status": "success", "data": results}))
        with self.assertRaises(NetworkError):
            self.gateway.batch_update_order_indexes([OrderUpdate("1", 3), OrderUpdate("2", 4)])

    def test_not_found(self):
        self.reply(_response(404, {"status": "error", "message": "Note not found"}))
        with self.assertRaises(NotFoundError) as ctx:
            self.gateway.update_note("7", content="x")
        self.assertEqual(ctx.exception.status_code, 404)

    def test_not_found_without_json(self):
        self.reply(_response(404, text_only=True))
        with self.assertRaises(NotFoundError):
            self.gateway.delete_note("7")

    def test_rejected_payload(self):
        self.reply(_response(400, {"status": "error", "message": "bad order_index"}))
        with self.assertRaises(ValidationError):
            self.gateway.create_note("p1", "", None, -1)

    def test_error_envelope_with_200(self):
        self.reply(_response(200, {"success": False, "error": {"message": "db locked"}}))
        with self.assertRaisesRegex(NetworkError, "db locked"):
            self.gateway.list_notes("p1")

    def test_server_errors_are_retried(self):
        self.reply(_response(503, headers={"Retry-After": "0"}),
                   _response(payload={"status": "success", "data": []}))
        self.assertEqual(self.gateway.list_notes("p1"), [])
        self.assertEqual(self.session.request.call_count, 2)
        self.sleep.assert_called_once_with(1, "0")

    def test_retries_run_out(self):
        self.reply(*[_response(500) for _ in range(3)])
        with self.assertRaises(NetworkError) as ctx:
            self.gateway.list_notes("p1")
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(self.session.request.call_count, 3)

    def test_timeouts_are_retried(self):
        self.reply(requests.exceptions.Timeout(), _response(payload={"status": "success", "data": []}))
        self.assertEqual(self.gateway.list_notes("p1"), [])

    def test_connection_failure(self):
        self.reply(requests.exceptions.ConnectionError("refused"))
        with self.assertRaises(NetworkError):
            self.gateway.list_notes("p1")

    def test_malformed_json(self):
        self.reply(_response(200, text_only=True))
        with self.assertRaises(NetworkError):
            self.gateway.list_notes("p1")

    def test_create_without_note_in_reply(self):
        self.reply(_response(payload={"status": "success", "data": {"ok": True}}))
        with self.assertRaises(NetworkError):
            self.gateway.create_note("p1", "", None, 0)

if __name__ == "__main__":
    unittest.main()
