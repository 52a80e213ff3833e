'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
from __future__ import annotations

__all__ = [
    "TwigPadError",
    "ValidationError",
    "GatewayError",
    "NetworkError",
    "NotFoundError",
    "ConcurrencyAnomaly",
]

class TwigPadError(Exception):
    """Base class for every error raised by the outline engine."""

class ValidationError(TwigPadError):
    """A caller passed a stale or inconsistent reference (programming error)."""

class GatewayError(TwigPadError):
    """The persistence service rejected or failed a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

class NetworkError(GatewayError):
    """Transient failure talking to the persistence service."""

class NotFoundError(GatewayError):
    """The server no longer has the entity; the page must be reloaded."""

class ConcurrencyAnomaly(TwigPadError):
    """
    An order_index could not be computed from the sibling set.

    Never raised out of the calculator; it names the anomaly in the log when
    the append fallback kicks in.
    """
