"""Delivery failure kinds.

Every send-level failure derives from DeliveryError so the orchestrator can
log it and move on to the next tick.
"""

from __future__ import annotations

INVALID_TOKEN_MESSAGE = "invalid token format: expected 'uuid--project' format"


class DeliveryError(Exception):
    """Base class for failures while delivering a report."""


class InvalidTokenError(DeliveryError):
    """The configured token does not carry a project identifier."""

    def __init__(self) -> None:
        super().__init__(INVALID_TOKEN_MESSAGE)


class SerializationError(DeliveryError):
    """The envelope could not be encoded as JSON."""


class TransportError(DeliveryError):
    """The request never completed: connect, DNS, timeout or bad URL."""


class RemoteRejectionError(DeliveryError):
    """The endpoint answered with a non-2xx status or ``success: false``."""

    def __init__(self, message: str, status_code: int, remote_error: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.remote_error = remote_error
