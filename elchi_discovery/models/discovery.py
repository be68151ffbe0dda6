"""Discovery report data structures.

Every type here is frozen: a report is built once per collection cycle and
handed to the delivery client unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any


class NodeStatus(StrEnum):
    """Readiness of a node as derived from its Ready condition."""

    READY = "Ready"
    NOT_READY = "NotReady"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class ClusterInfo:
    """Identity of the cluster being inventoried."""

    name: str
    version: str = "unknown"

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "version": self.version}


@dataclass(frozen=True)
class NodeRecord:
    """Normalized view of a single cluster node."""

    name: str
    roles: tuple[str, ...]
    status: NodeStatus
    version: str
    addresses: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze the address map so the record cannot change after construction.
        object.__setattr__(self, "addresses", MappingProxyType(dict(self.addresses)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "roles": list(self.roles),
            "status": self.status.value,
            "version": self.version,
            "addresses": dict(self.addresses),
        }


@dataclass(frozen=True)
class DiscoveryReport:
    """Snapshot of cluster and node state produced by one collection cycle."""

    timestamp: datetime
    cluster: ClusterInfo
    nodes: tuple[NodeRecord, ...]
    duration: str

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the ``data`` object of the wire payload."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "cluster_info": self.cluster.to_dict(),
            "node_count": self.node_count,
            "nodes": [node.to_dict() for node in self.nodes],
            "duration": self.duration,
        }


@dataclass(frozen=True)
class DeliveryEnvelope:
    """A report tagged with the tenant (project) it belongs to."""

    project: str
    data: DiscoveryReport

    def to_dict(self) -> dict[str, Any]:
        return {"project": self.project, "data": self.data.to_dict()}


@dataclass
class APIResponse:
    """Acknowledgement body returned by the collection endpoint."""

    success: bool = False
    result: Any = None
    message: str = ""
    error: str = ""
