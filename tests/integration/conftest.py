"""Shared fixtures for elchi-discovery integration tests.

Provides a mocked cluster (CoreV1Api / VersionApi stand-ins returning
V1Node-shaped objects) and a recording collection endpoint so the full
collect → deliver pipeline runs without a real cluster or network.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest

from elchi_discovery.collector import ClusterInventoryCollector
from elchi_discovery.models.config import DiscoveryConfig, ElchiConfig

TEST_TOKEN = "96688e4c-6737-4230-9591-6a3332115871--683b2148ff7e3ae67d825cfa"
TEST_ENDPOINT = "https://elchi.example.com/api/v1/discovery"

# ---------------------------------------------------------------------------
# Node factory helpers
# ---------------------------------------------------------------------------


def make_node(
    name: str,
    ready: str | None = "True",
    labels: dict[str, str] | None = None,
    taints: list[str] | None = None,
    addresses: dict[str, str] | None = None,
    kubelet_version: str = "v1.29.4",
) -> SimpleNamespace:
    """Create an object shaped like ``kubernetes.client.V1Node``."""
    conditions = [
        SimpleNamespace(type="MemoryPressure", status="False"),
        SimpleNamespace(type="DiskPressure", status="False"),
    ]
    if ready is not None:
        conditions.append(SimpleNamespace(type="Ready", status=ready))
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, labels=labels or {"kubernetes.io/os": "linux"}),
        spec=SimpleNamespace(taints=[SimpleNamespace(key=k, effect="NoSchedule") for k in taints or []]),
        status=SimpleNamespace(
            conditions=conditions,
            addresses=[SimpleNamespace(type=t, address=a) for t, a in (addresses or {}).items()],
            node_info=SimpleNamespace(kubelet_version=kubelet_version),
        ),
    )


def make_cluster(*nodes: SimpleNamespace, git_version: str = "v1.29.4") -> tuple[MagicMock, MagicMock]:
    """Return ``(core_v1, version_api)`` mocks serving *nodes*."""
    core_v1 = MagicMock()
    core_v1.list_node.return_value = SimpleNamespace(items=list(nodes))
    version_api = MagicMock()
    version_api.get_code.return_value = SimpleNamespace(git_version=git_version)
    return core_v1, version_api


class RecordingEndpoint:
    """httpx.MockTransport handler standing in for the collection API."""

    def __init__(self, body: dict | None = None, status_code: int = 200) -> None:
        self.body = {"success": True, "message": "discovery stored"} if body is None else body
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def discovery_config() -> DiscoveryConfig:
    return DiscoveryConfig(
        cluster_name="test-cluster",
        discovery_interval=30,
        elchi=ElchiConfig(token=TEST_TOKEN, api_endpoint=TEST_ENDPOINT),
    )


@pytest.fixture()
def endpoint() -> RecordingEndpoint:
    return RecordingEndpoint()


@pytest.fixture()
def two_node_collector() -> ClusterInventoryCollector:
    """Cluster with one Ready control-plane node and one NotReady worker."""
    core_v1, version_api = make_cluster(
        make_node(
            "cp-1",
            ready="True",
            labels={"node-role.kubernetes.io/control-plane": ""},
            taints=["node-role.kubernetes.io/control-plane"],
            addresses={"InternalIP": "10.0.0.10", "Hostname": "cp-1"},
        ),
        make_node(
            "worker-1",
            ready="False",
            addresses={"InternalIP": "10.0.0.11", "ExternalIP": "203.0.113.7", "Hostname": "worker-1"},
        ),
    )
    return ClusterInventoryCollector(core_v1, version_api, cluster_name="test-cluster")


@pytest.fixture()
def empty_collector() -> ClusterInventoryCollector:
    core_v1, version_api = make_cluster()
    return ClusterInventoryCollector(core_v1, version_api, cluster_name="empty")
