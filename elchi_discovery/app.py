"""Application bootstrap for elchi-discovery.

Startup order: config → logging → metrics → K8s client → collector
              → delivery client

Once started, the app runs one discovery cycle immediately and then one per
interval. A cycle is collect → print payload → deliver; cycles never overlap
and no cycle failure stops the loop. A stop request prevents the next cycle
but lets an in-flight one finish.
"""

from __future__ import annotations

import asyncio
import json
import signal
import sys
from typing import TYPE_CHECKING, Any, TextIO

from elchi_discovery.collector import ClusterInventoryCollector
from elchi_discovery.config import ConfigError, load_config, validate_config
from elchi_discovery.delivery import DeliveryClient, DeliveryError, DeliveryStatus, RemoteRejectionError
from elchi_discovery.models.config import DiscoveryConfig
from elchi_discovery.observability.logging import close_log_output, get_logger, setup_logging
from elchi_discovery.observability.metrics import (
    collection_duration_seconds,
    deliveries_total,
    discovered_nodes,
    discovery_runs_total,
    start_metrics_server,
)

if TYPE_CHECKING:
    import structlog

_STATUS_OUTCOMES = {
    DeliveryStatus.SKIPPED: "skipped",
    DeliveryStatus.DELIVERED: "delivered",
    DeliveryStatus.ACCEPTED: "delivered",
}


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class DiscoveryApp:
    """Application root. Owns the collector and delivery client.

    Components may be injected (tests do this); anything left as None is
    built by ``start()``.
    """

    def __init__(
        self,
        config: DiscoveryConfig | None = None,
        collector: ClusterInventoryCollector | None = None,
        delivery: DeliveryClient | None = None,
        out: TextIO | None = None,
    ) -> None:
        self.config = config
        self._collector = collector
        self._delivery = delivery
        self._out = out or sys.stdout

        self._api_client: Any = None
        self._stop_requested = asyncio.Event()
        self._log: structlog.stdlib.BoundLogger = get_logger("app")

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Build every component that was not injected.

        Raises _ComponentError if a mandatory component cannot start.
        """
        # --- 1. Configuration -------------------------------------------
        if self.config is None:
            try:
                self.config = load_config()
            except ConfigError as exc:
                raise _ComponentError("config", exc) from exc
        try:
            validate_config(self.config)
        except ConfigError as exc:
            raise _ComponentError("config", exc) from exc

        # --- 2. Logging -------------------------------------------------
        log_cfg = self.config.log
        setup_logging(log_cfg.level, log_cfg.format, log_cfg.output)
        self._log = get_logger("app")
        self._log.info("elchi_discovery_starting", version=_version())

        # --- 3. Metrics -------------------------------------------------
        self._start_metrics()

        # --- 4. Kubernetes client + collector ----------------------------
        if self._collector is None:
            await self._start_collector()

        # --- 5. Delivery client ------------------------------------------
        if self._delivery is None:
            self._delivery = DeliveryClient(self.config.elchi)

        self._log.info(
            "configuration_loaded",
            token_configured=bool(self.config.elchi.token),
            api_endpoint=self.config.elchi.api_endpoint,
            discovery_interval=f"{self.config.interval_seconds}s",
            insecure_tls=self.config.elchi.insecure_skip_verify,
        )

    def _start_metrics(self) -> None:
        assert self.config is not None
        try:
            if start_metrics_server(self.config.metrics.port):
                self._log.info("metrics_server_started", port=self.config.metrics.port)
        except OSError as exc:
            # Metrics are optional; discovery keeps running without them.
            self._log.warning("metrics_server_failed", port=self.config.metrics.port, error=str(exc))

    async def _start_collector(self) -> None:
        """Configure the kubernetes client from the in-cluster service account."""
        assert self.config is not None
        self._log.debug("starting k8s client")
        try:
            # Import lazily so tests and local runs never touch cluster config.
            from kubernetes import client as k8s_client  # type: ignore[import-untyped]
            from kubernetes import config as k8s_config  # type: ignore[import-untyped]
            from kubernetes.config.config_exception import ConfigException  # type: ignore[import-untyped]

            try:
                k8s_config.load_incluster_config()
            except ConfigException as exc:
                raise ConfigError(
                    f"failed to get in-cluster config: {exc}. This service must run inside a Kubernetes cluster"
                ) from exc

            self._api_client = k8s_client.ApiClient()
            self._collector = ClusterInventoryCollector(
                core_v1=k8s_client.CoreV1Api(self._api_client),
                version_api=k8s_client.VersionApi(self._api_client),
                cluster_name=self.config.cluster_name,
            )
            self._log.info("k8s client configured from in-cluster service account")
        except Exception as exc:
            raise _ComponentError("k8s_client", exc) from exc

    # ------------------------------------------------------------------
    # Discovery cycle
    # ------------------------------------------------------------------

    async def run_once(self) -> None:
        """Run a single collect-and-deliver cycle. Never raises."""
        assert self._collector is not None
        assert self._delivery is not None

        try:
            with collection_duration_seconds.time():
                report = await self._collector.collect()
        except Exception as exc:
            discovery_runs_total.labels(outcome="error").inc()
            self._log.error("node_discovery_failed", error=str(exc))
            return
        discovery_runs_total.labels(outcome="success").inc()
        discovered_nodes.set(report.node_count)

        try:
            envelope = self._delivery.build_envelope(report)
        except DeliveryError as exc:
            self._log.error("discovery_payload_failed", error=str(exc))
            return

        print(json.dumps(envelope.to_dict(), indent=2, ensure_ascii=False), file=self._out, flush=True)

        try:
            status = await self._delivery.send(report)
            deliveries_total.labels(outcome=_STATUS_OUTCOMES[status]).inc()
        except DeliveryError as exc:
            deliveries_total.labels(outcome="rejected" if isinstance(exc, RemoteRejectionError) else "error").inc()
            self._log.error("discovery_send_failed", error=str(exc), error_type=type(exc).__name__)

        self._log.info(
            "discovery_completed",
            node_count=report.node_count,
            duration=report.duration,
            cluster_name=report.cluster.name,
            cluster_version=report.cluster.version,
        )

    async def run(self) -> None:
        """Run a cycle now, then once per interval until stop is requested."""
        assert self.config is not None
        interval = self.config.interval_seconds
        while not self._stop_requested.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(self._stop_requested.wait(), timeout=interval)
            except TimeoutError:
                continue
        self._log.info("shutdown_signal_received", reason="stopping discovery")

    def request_stop(self) -> None:
        """Prevent the next cycle; an in-flight cycle runs to completion."""
        self._stop_requested.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Release the HTTP and Kubernetes connection pools."""
        self.request_stop()
        if self._delivery is not None:
            try:
                await self._delivery.aclose()
            except Exception as exc:
                self._log.debug("delivery client close raised (non-fatal)", error=str(exc))
        if self._api_client is not None:
            try:
                self._api_client.close()
            except Exception as exc:
                self._log.debug("k8s client close raised (non-fatal)", error=str(exc))
            self._api_client = None
        self._log.info("elchi_discovery_stopped")
        close_log_output()


def _version() -> str:
    from elchi_discovery import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = DiscoveryApp()
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, app.request_stop)

    try:
        await app.start()
        await app.run()
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        raise SystemExit(1) from exc
    finally:
        await app.stop()


def cli() -> None:
    """Console-script entry point."""
    asyncio.run(main())
