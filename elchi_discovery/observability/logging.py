"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

_LEVEL_ALIASES = {"warn": "warning"}

# Log file opened for a path output; reused across setup_logging calls.
_log_file: TextIO | None = None


def _resolve_level(level: str) -> int:
    name = _LEVEL_ALIASES.get(level.lower(), level.lower())
    if name not in ("debug", "info", "warning", "error"):
        return logging.INFO
    return getattr(logging, name.upper())


def _resolve_output(output: str) -> TextIO:
    global _log_file
    if output in ("", "stdout", "stderr"):
        close_log_output()
        return sys.stderr if output == "stderr" else sys.stdout
    if _log_file is not None and _log_file.name == output:
        return _log_file
    close_log_output()
    _log_file = open(output, "a", encoding="utf-8")  # noqa: SIM115
    return _log_file


def close_log_output() -> None:
    """Close the log file opened by setup_logging, if any."""
    global _log_file
    if _log_file is not None:
        _log_file.close()
        _log_file = None


def setup_logging(level: str = "info", fmt: str = "text", output: str = "stdout") -> None:
    """Configure structlog.

    ``fmt="json"`` renders one JSON object per line; any other value renders
    key=value text. ``output`` is ``stdout``, ``stderr`` or a file path that is
    appended to. Unknown levels fall back to info.
    """
    renderer: structlog.types.Processor
    if fmt.lower() == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=_resolve_output(output)),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]
