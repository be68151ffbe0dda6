"""Role and readiness classification for a single node.

Works on ``kubernetes`` ``V1Node`` objects (or anything with the same
attribute shape). Every nested field may be ``None``; a missing field is
treated as absent, never as an error.
"""

from __future__ import annotations

from typing import Any

from elchi_discovery.models.discovery import NodeStatus

_ROLE_LABEL_PREFIX = "node-role.kubernetes.io/"

LABEL_CONTROL_PLANE = _ROLE_LABEL_PREFIX + "control-plane"
LABEL_MASTER = _ROLE_LABEL_PREFIX + "master"
LABEL_WORKER = _ROLE_LABEL_PREFIX + "worker"
LABEL_ETCD = _ROLE_LABEL_PREFIX + "etcd"

_CONTROL_PLANE_TAINTS = frozenset({LABEL_CONTROL_PLANE, LABEL_MASTER})

DEFAULT_ROLE = "worker"


def _labels(node: Any) -> dict[str, str]:
    metadata = getattr(node, "metadata", None)
    return getattr(metadata, "labels", None) or {}


def _taint_keys(node: Any) -> list[str]:
    spec = getattr(node, "spec", None)
    taints = getattr(spec, "taints", None) or []
    return [getattr(taint, "key", None) or "" for taint in taints]


def node_roles(node: Any) -> list[str]:
    """Derive the ordered role list of *node*; never empty."""
    labels = _labels(node)
    roles: list[str] = []

    # control-plane suppresses the legacy master role
    if LABEL_CONTROL_PLANE in labels:
        roles.append("control-plane")
    elif LABEL_MASTER in labels:
        roles.append("master")

    if LABEL_WORKER in labels:
        roles.append("worker")
    if LABEL_ETCD in labels:
        roles.append("etcd")

    if not roles and any(key in _CONTROL_PLANE_TAINTS for key in _taint_keys(node)):
        roles.append("control-plane")

    return roles or [DEFAULT_ROLE]


def node_status(node: Any) -> NodeStatus:
    """Readiness from the first ``Ready`` condition; ``Unknown`` when absent."""
    status = getattr(node, "status", None)
    for condition in getattr(status, "conditions", None) or []:
        if getattr(condition, "type", None) != "Ready":
            continue
        if getattr(condition, "status", None) == "True":
            return NodeStatus.READY
        return NodeStatus.NOT_READY
    return NodeStatus.UNKNOWN


def classify_node(node: Any) -> tuple[list[str], NodeStatus]:
    """Return ``(roles, status)`` for *node*."""
    return node_roles(node), node_status(node)
