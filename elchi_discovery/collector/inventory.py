"""Cluster inventory collection.

ClusterInventoryCollector performs two read-only queries per cycle (server
version, node list) and turns the result into an immutable DiscoveryReport.
The version lookup is best-effort; a failed node list aborts the cycle.

The kubernetes client is synchronous; its calls run in a worker thread so the
event loop stays free while a cycle is in flight.
"""

from __future__ import annotations

import asyncio
import time
from datetime import UTC, datetime
from typing import Any

import structlog

from elchi_discovery.collector.classifier import classify_node
from elchi_discovery.models.discovery import ClusterInfo, DiscoveryReport, NodeRecord

_log = structlog.get_logger(component="collector.inventory")

UNKNOWN_VERSION = "unknown"

_UNITS = (
    (1e-6, 1e9, "ns"),
    (1e-3, 1e6, "µs"),
    (1.0, 1e3, "ms"),
)


def _trim(value: float) -> str:
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return text or "0"


def format_duration(seconds: float) -> str:
    """Render an elapsed time compactly, e.g. ``850ns``, ``3.2ms``, ``2m3.5s``."""
    if seconds <= 0:
        return "0s"
    for limit, scale, unit in _UNITS:
        if seconds < limit:
            return f"{_trim(seconds * scale)}{unit}"
    if seconds < 60:
        return f"{_trim(seconds)}s"
    minutes, rest = divmod(seconds, 60)
    hours, minutes = divmod(int(minutes), 60)
    prefix = f"{hours}h{minutes}m" if hours else f"{minutes}m"
    return f"{prefix}{_trim(rest)}s"


def _node_record(node: Any) -> NodeRecord:
    roles, status = classify_node(node)
    metadata = getattr(node, "metadata", None)
    node_status = getattr(node, "status", None)
    node_info = getattr(node_status, "node_info", None)

    addresses: dict[str, str] = {}
    for address in getattr(node_status, "addresses", None) or []:
        # Duplicate address types: last one wins.
        addresses[str(address.type)] = address.address

    return NodeRecord(
        name=getattr(metadata, "name", None) or "",
        roles=tuple(roles),
        status=status,
        version=getattr(node_info, "kubelet_version", None) or "",
        addresses=addresses,
    )


class ClusterInventoryCollector:
    """Builds a DiscoveryReport from the live cluster.

    Args:
        core_v1:      ``kubernetes.client.CoreV1Api`` (node listing).
        version_api:  ``kubernetes.client.VersionApi`` (server version).
        cluster_name: Operator-supplied display name; validated upstream.
    """

    def __init__(self, core_v1: Any, version_api: Any, cluster_name: str) -> None:
        self._core_v1 = core_v1
        self._version_api = version_api
        self._cluster_name = cluster_name

    async def cluster_info(self) -> ClusterInfo:
        """Cluster name plus server git version, ``unknown`` on any failure."""
        version = UNKNOWN_VERSION
        try:
            info = await asyncio.to_thread(self._version_api.get_code)
            if info is not None and getattr(info, "git_version", None):
                version = info.git_version
        except Exception as exc:
            _log.warning("server_version_unavailable", error=str(exc))
        return ClusterInfo(name=self._cluster_name, version=version)

    async def collect(self) -> DiscoveryReport:
        """Query the cluster and return a fresh report.

        Raises whatever the node list call raises; zero nodes is a valid result.
        """
        started = time.monotonic()
        cluster = await self.cluster_info()

        node_list = await asyncio.to_thread(self._core_v1.list_node)
        nodes = tuple(_node_record(node) for node in (node_list.items or []))

        report = DiscoveryReport(
            timestamp=datetime.now(tz=UTC),
            cluster=cluster,
            nodes=nodes,
            duration=format_duration(time.monotonic() - started),
        )
        _log.debug(
            "inventory_collected",
            cluster_name=cluster.name,
            cluster_version=cluster.version,
            node_count=report.node_count,
            duration=report.duration,
        )
        return report
