"""Delivery of discovery reports to the remote collection endpoint.

Exports:
    DeliveryClient   -- Authenticated POST of one report per call, tracking
                        whether the endpoint has ever confirmed a delivery.
    DeliveryStatus   -- Non-failing outcomes (skipped, delivered, accepted).
    DeliveryError    -- Base of every failure raised by ``send``.
    extract_project  -- Project part of a ``uuid--project`` token.
"""

from elchi_discovery.delivery.client import DeliveryClient, DeliveryStatus, extract_project
from elchi_discovery.delivery.errors import (
    DeliveryError,
    InvalidTokenError,
    RemoteRejectionError,
    SerializationError,
    TransportError,
)

__all__ = [
    "DeliveryClient",
    "DeliveryError",
    "DeliveryStatus",
    "InvalidTokenError",
    "RemoteRejectionError",
    "SerializationError",
    "TransportError",
    "extract_project",
]
