"""Collector package for elchi-discovery.

Inventories the nodes of the cluster the service runs in.

Submodules
----------
classifier -- classify_node: role set and readiness status of one node.
inventory  -- ClusterInventoryCollector: cluster identity plus node list,
              assembled into a DiscoveryReport.
"""

from elchi_discovery.collector.classifier import classify_node
from elchi_discovery.collector.inventory import ClusterInventoryCollector, format_duration

__all__ = ["ClusterInventoryCollector", "classify_node", "format_duration"]
