"""Configuration loading.

Precedence, lowest to highest: built-in defaults, a YAML config file, then
environment variables. The config file is the first of ``$ELCHI_CONFIG``,
``~/.elchi/config.yaml`` and ``./config.yaml`` that applies.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from elchi_discovery.models.config import (
    DiscoveryConfig,
    ElchiConfig,
    LogConfig,
    MetricsConfig,
)

_TRUE = frozenset({"1", "t", "true", "yes"})
_FALSE = frozenset({"0", "f", "false", "no"})


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or is incomplete."""


def _env(key: str) -> str:
    return os.environ.get(key, "")


def _parse_bool(value: str) -> bool | None:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return None


def _file_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    parsed = _parse_bool(value) if isinstance(value, str) else None
    if parsed is None:
        raise ConfigError(f"invalid boolean for {key} in config file: {value!r}")
    return parsed


def _env_str(key: str, current: str) -> str:
    return _env(key) or current


def _env_int(key: str, current: int) -> int:
    val = _env(key)
    if not val:
        return current
    try:
        return int(val)
    except ValueError:
        return current


def _env_bool(key: str, current: bool) -> bool:
    val = _env(key)
    if not val:
        return current
    parsed = _parse_bool(val)
    return current if parsed is None else parsed


def config_path() -> Path | None:
    """Locate the config file, or None when there is none to read."""
    explicit = _env("ELCHI_CONFIG")
    if explicit:
        return Path(explicit)
    home_config = Path.home() / ".elchi" / "config.yaml"
    if home_config.is_file():
        return home_config
    local = Path("config.yaml")
    if local.is_file():
        return local
    return None


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return data


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"config section '{key}' must be a mapping")
    return section


def _apply_file(config: DiscoveryConfig, data: dict[str, Any]) -> None:
    elchi = _section(data, "elchi")
    log = _section(data, "log")
    metrics = _section(data, "metrics")
    try:
        if "cluster_name" in data:
            config.cluster_name = str(data["cluster_name"] or "")
        if "discovery_interval" in data:
            config.discovery_interval = int(data["discovery_interval"])
        if "token" in elchi:
            config.elchi.token = str(elchi["token"] or "")
        if "api_endpoint" in elchi:
            config.elchi.api_endpoint = str(elchi["api_endpoint"] or "")
        if "insecure_skip_verify" in elchi:
            config.elchi.insecure_skip_verify = _file_bool("elchi.insecure_skip_verify", elchi["insecure_skip_verify"])
        if "level" in log:
            config.log.level = str(log["level"])
        if "format" in log:
            config.log.format = str(log["format"])
        if "output" in log:
            config.log.output = str(log["output"])
        if "port" in metrics:
            config.metrics.port = int(metrics["port"])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid value in config file: {exc}") from exc


def _apply_env(config: DiscoveryConfig) -> None:
    config.cluster_name = _env_str("CLUSTER_NAME", config.cluster_name)
    config.discovery_interval = _env_int("DISCOVERY_INTERVAL", config.discovery_interval)
    config.log.level = _env_str("LOG_LEVEL", config.log.level)
    config.log.format = _env_str("LOG_FORMAT", config.log.format)
    config.log.output = _env_str("LOG_OUTPUT", config.log.output)
    config.elchi.token = _env_str("ELCHI_TOKEN", config.elchi.token)
    config.elchi.api_endpoint = _env_str("ELCHI_API_ENDPOINT", config.elchi.api_endpoint)
    config.elchi.insecure_skip_verify = _env_bool("ELCHI_INSECURE_SKIP_VERIFY", config.elchi.insecure_skip_verify)
    config.metrics.port = _env_int("METRICS_PORT", config.metrics.port)


def load_config() -> DiscoveryConfig:
    """Load configuration from defaults, the config file and the environment.

    Raises:
        ConfigError: the config file is missing (when named explicitly),
            unreadable, or not valid YAML.
    """
    config = DiscoveryConfig(
        elchi=ElchiConfig(),
        log=LogConfig(),
        metrics=MetricsConfig(),
    )
    path = config_path()
    if path is not None:
        _apply_file(config, _read_config_file(path))
    _apply_env(config)
    return config


def validate_config(config: DiscoveryConfig) -> None:
    """Reject configurations the service cannot start with."""
    if not config.cluster_name:
        raise ConfigError(
            "Cluster name is required. Please set cluster_name in config or CLUSTER_NAME environment variable"
        )
