'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.

HTTP implementation of the persistence gateway, talking to the notes.php API.
'''
from __future__ import annotations

import random
import time
from typing import Any, Dict, List, Optional, Sequence

import requests

from twigpad.core.errors import NetworkError, NotFoundError, ValidationError
from twigpad.core.gateway import PersistenceGateway, UNSET
from twigpad.core.log import Log
from twigpad.core.note import Note
from twigpad.core.order_index import OrderUpdate

__all__ = ["HttpGateway", "DEFAULT_TIMEOUT", "DEFAULT_MAX_RETRIES"]

DEFAULT_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 3
NOTES_ENDPOINT = "notes.php"

class HttpGateway(PersistenceGateway):
    """notes.php client with retry on 429 / 5xx / timeouts."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None,
                 timeout: float = DEFAULT_TIMEOUT, max_retries: int = DEFAULT_MAX_RETRIES,
                 backoff: float = 1.0):
        self.base_url = base_url.rstrip("/") + "/"
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff = backoff
        self.request_count = 0

    # ------------------------------------------------------------------ #
    # gateway contract
    # ------------------------------------------------------------------ #

    def list_notes(self, page_id: str) -> List[Note]:
        data = self._request("GET", NOTES_ENDPOINT, params={"page_id": page_id},
                             context=f"list page {page_id}")
        # Either a bare list or {"page": ..., "notes": [...]}
        items = data.get("notes", []) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise NetworkError(f"unexpected notes payload for page {page_id}")
        return [Note.from_storage(item) for item in items]

    def create_note(self, page_id: str, content: str, parent_note_id: Optional[str],
                    order_index: int) -> Note:
        body = {
            "page_id": page_id,
            "content": content,
            "parent_note_id": parent_note_id,
            "order_index": order_index,
        }
        return self._note_from(self._request("POST", NOTES_ENDPOINT, json=body, context="create"))

    def update_note(self, note_id: str, content: Optional[str] = None,
                    parent_note_id=UNSET, order_index: Optional[int] = None,
                    collapsed: Optional[bool] = None) -> Note:
        body: Dict[str, Any] = {"id": note_id, "_method": "PUT"}
        if content is not None:
            body["content"] = content
        if parent_note_id is not UNSET:
            body["parent_note_id"] = parent_note_id
        if order_index is not None:
            body["order_index"] = order_index
        if collapsed is not None:
            body["collapsed"] = 1 if collapsed else 0
        return self._note_from(
            self._request("POST", NOTES_ENDPOINT, json=body, context=f"update {note_id}")
        )

    def delete_note(self, note_id: str) -> None:
        self._request("POST", NOTES_ENDPOINT, json={"id": note_id, "_method": "DELETE"},
                      context=f"delete {note_id}")

    def batch_update_order_indexes(self, updates: Sequence[OrderUpdate]) -> None:
        if not updates:
            return
        body = {
            "batch": True,
            "operations": [
                {"type": "update", "payload": {"id": u.note_id, "order_index": u.order_index}}
                for u in updates
            ],
        }
        data = self._request("POST", NOTES_ENDPOINT, json=body,
                             context=f"batch reorder x{len(updates)}")
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise NetworkError("batch update did not return a results array")
        failed = [r for r in results if isinstance(r, dict) and r.get("status") == "error"]
        if failed:
            raise NetworkError(f"{len(failed)} of {len(results)} reorder operations failed on the server")

    # ------------------------------------------------------------------ #
    # transport
    # ------------------------------------------------------------------ #

    def _note_from(self, data) -> Note:
        if not isinstance(data, dict) or "id" not in data:
            raise NetworkError("server did not return a note")
        return Note.from_storage(data)

    def _request(self, method: str, endpoint: str, context: str = "", **kwargs):
        """Make an API request, unwrap the envelope, map failures to gateway errors."""
        url = self.base_url + endpoint
        self.request_count += 1

        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.exceptions.Timeout:
                Log.warn(f"timeout, retry {attempt}/{self.max_retries} [{context}]")
                self._sleep(attempt)
                continue
            except requests.exceptions.RequestException as e:
                raise NetworkError(f"request failed [{context}]: {e}") from e

            status = response.status_code
            if status == 429 or status >= 500:
                Log.warn(f"server returned {status}, retry {attempt}/{self.max_retries} [{context}]")
                if attempt < self.max_retries:
                    retry_after = response.headers.get("Retry-After")
                    self._sleep(attempt, retry_after)
                    continue
                raise NetworkError(f"server error {status} [{context}]", status)

            if status == 204:
                return None

            return self._unwrap(response, context)

        raise NetworkError(f"max retries exceeded [{context}]")

    def _unwrap(self, response: requests.Response, context: str):
        status = response.status_code
        try:
            payload = response.json()
        except ValueError as e:
            if status == 404:
                raise NotFoundError(f"not found [{context}]", status) from e
            raise NetworkError(f"invalid JSON from server (HTTP {status}) [{context}]", status) from e

        message = None
        if isinstance(payload, dict):
            if status >= 400 or payload.get("success") is False or payload.get("status") == "error":
                error = payload.get("error") or payload.get("message") or response.reason
                if isinstance(error, dict):
                    error = error.get("message") or str(error)
                message = str(error)

        if status == 404:
            raise NotFoundError(message or f"not found [{context}]", status)
        if status in (400, 409, 422):
            raise ValidationError(f"{message or 'rejected'} [{context}]")
        if message is not None:
            raise NetworkError(f"{message} [{context}]", status)

        Log.debug(f"HTTP {status} ok [{context}]", 3)
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    def _sleep(self, attempt: int, retry_after: Optional[str] = None):
        if retry_after:
            try:
                time.sleep(float(retry_after))
                return
            except ValueError:
                pass
        time.sleep(min(self.backoff * (2 ** (attempt - 1)) + random.uniform(0, self.backoff / 4), 30))
