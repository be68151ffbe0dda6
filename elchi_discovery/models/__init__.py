"""Core data structures for elchi-discovery."""

from elchi_discovery.models.config import DiscoveryConfig
from elchi_discovery.models.discovery import (
    APIResponse,
    ClusterInfo,
    DeliveryEnvelope,
    DiscoveryReport,
    NodeRecord,
    NodeStatus,
)

__all__ = [
    "APIResponse",
    "ClusterInfo",
    "DeliveryEnvelope",
    "DiscoveryConfig",
    "DiscoveryReport",
    "NodeRecord",
    "NodeStatus",
]
