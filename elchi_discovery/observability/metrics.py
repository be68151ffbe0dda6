"""Prometheus metrics for the discovery pipeline."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, start_http_server

discovery_runs_total = Counter(
    "elchi_discovery_runs_total",
    "Node collection cycles by outcome.",
    ["outcome"],
)

deliveries_total = Counter(
    "elchi_discovery_deliveries_total",
    "Report deliveries to the collection endpoint by outcome.",
    ["outcome"],
)

discovered_nodes = Gauge(
    "elchi_discovery_nodes",
    "Number of nodes in the most recent report.",
)

collection_duration_seconds = Histogram(
    "elchi_discovery_duration_seconds",
    "Time spent collecting one report.",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)


def start_metrics_server(port: int) -> bool:
    """Expose the default registry on *port*. Returns False when disabled."""
    if port <= 0:
        return False
    start_http_server(port)
    return True
