"""Cluster node discovery and reporting service."""

__version__ = "0.3.0"
