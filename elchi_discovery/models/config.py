"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_DISCOVERY_INTERVAL = 30


@dataclass
class ElchiConfig:
    """Remote collection endpoint configuration."""

    token: str = ""
    api_endpoint: str = ""
    insecure_skip_verify: bool = False
    timeout_seconds: float = 15.0


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "text"
    output: str = "stdout"


@dataclass
class MetricsConfig:
    """Prometheus listener configuration. Port 0 disables the listener."""

    port: int = 0


@dataclass
class DiscoveryConfig:
    """Top-level service configuration."""

    cluster_name: str = ""
    discovery_interval: int = DEFAULT_DISCOVERY_INTERVAL
    elchi: ElchiConfig = field(default_factory=ElchiConfig)
    log: LogConfig = field(default_factory=LogConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)

    @property
    def interval_seconds(self) -> int:
        """Effective tick interval; non-positive values fall back to the default."""
        if self.discovery_interval <= 0:
            return DEFAULT_DISCOVERY_INTERVAL
        return self.discovery_interval
