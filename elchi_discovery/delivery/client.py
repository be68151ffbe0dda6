"""HTTP delivery of discovery reports to the collection endpoint.

The client POSTs a JSON envelope ``{"project": ..., "data": ...}`` and
interprets the acknowledgement body. It carries one piece of state across
sends: whether the endpoint has ever confirmed a delivery. Until it has, each
request is marked ``initial: true``; afterwards ``initial: false``. The flag
only moves forward and is never reset for the lifetime of the client.
"""

from __future__ import annotations

import asyncio
import json
import threading
from enum import StrEnum
from typing import Any

import httpx
import structlog

from elchi_discovery.delivery.errors import (
    InvalidTokenError,
    RemoteRejectionError,
    SerializationError,
    TransportError,
)
from elchi_discovery.models.config import ElchiConfig
from elchi_discovery.models.discovery import APIResponse, DeliveryEnvelope, DiscoveryReport

_log = structlog.get_logger(component="delivery.client")

TOKEN_SEPARATOR = "--"
_PREVIEW_LEN = 200


class DeliveryStatus(StrEnum):
    """Outcome of a send that did not raise."""

    SKIPPED = "skipped"  # no endpoint configured
    DELIVERED = "delivered"  # endpoint confirmed success
    ACCEPTED = "accepted"  # 2xx, acknowledgement body unreadable


def extract_project(token: str) -> str:
    """Return the project part of a ``uuid--project`` token, or ``""``.

    Only the first separator splits; ``"a--b--c"`` yields ``"b--c"``.
    """
    _, sep, project = token.partition(TOKEN_SEPARATOR)
    if not sep:
        return ""
    return project


def _decode_response(response: httpx.Response) -> APIResponse | None:
    try:
        body = response.json()
    except ValueError:
        return None
    # JSON null decodes to an empty acknowledgement, i.e. success=false.
    if body is None:
        return APIResponse()
    if not isinstance(body, dict):
        return None
    success = body.get("success", False)
    message = body.get("message") or ""
    error = body.get("error") or ""
    # A field of the wrong type makes the whole body unreadable.
    if not isinstance(success, bool) or not isinstance(message, str) or not isinstance(error, str):
        return None
    return APIResponse(success=success, result=body.get("result"), message=message, error=error)


def _preview(payload: bytes) -> str:
    text = payload[:_PREVIEW_LEN].decode("utf-8", errors="replace")
    if len(payload) > _PREVIEW_LEN:
        text += "..."
    return text


class DeliveryClient:
    """Sends DiscoveryReports to the configured endpoint.

    Args:
        config:    Endpoint, token and TLS settings.
        transport: Optional httpx transport, used by tests to mock the endpoint.
    """

    def __init__(
        self,
        config: ElchiConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._initial_completed = threading.Event()
        self._http = httpx.AsyncClient(
            verify=not config.insecure_skip_verify,
            timeout=config.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> DeliveryClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def initial_completed(self) -> bool:
        """True once the endpoint has confirmed at least one delivery."""
        return self._initial_completed.is_set()

    @property
    def endpoint(self) -> str:
        return self._config.api_endpoint

    def build_envelope(self, report: DiscoveryReport) -> DeliveryEnvelope:
        """Tag *report* with the project derived from the token."""
        project = extract_project(self._config.token)
        if not project:
            raise InvalidTokenError()
        return DeliveryEnvelope(project=project, data=report)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "from-elchi": "yes",
            "initial": "false" if self._initial_completed.is_set() else "true",
        }
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"
        return headers

    async def send(self, report: DiscoveryReport) -> DeliveryStatus:
        """Deliver *report* once; no retries.

        Returns the DeliveryStatus on success and raises a DeliveryError
        subclass on any failure.
        """
        endpoint = self._config.api_endpoint
        if not endpoint:
            _log.debug("delivery_skipped", reason="no api endpoint configured")
            return DeliveryStatus.SKIPPED

        envelope = self.build_envelope(report)
        _log.debug("project_extracted", project_id=envelope.project)

        try:
            payload = json.dumps(envelope.to_dict(), allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"failed to marshal discovery payload: {exc}") from exc

        _log.debug(
            "sending_discovery_payload",
            endpoint=endpoint,
            project=envelope.project,
            payload_size=len(payload),
            json_preview=_preview(payload),
        )

        try:
            request = self._http.build_request("POST", endpoint, content=payload, headers=self._headers())
        except (httpx.InvalidURL, UnicodeEncodeError) as exc:
            raise TransportError(f"failed to create request: {exc}") from exc

        # The timeout bounds the whole round trip, not each connect or read.
        timeout = self._config.timeout_seconds
        try:
            async with asyncio.timeout(timeout):
                response = await self._http.send(request)
        except TimeoutError as exc:
            raise TransportError(f"failed to send request: no complete response within {timeout}s") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"failed to send request: {exc}") from exc

        fields = {"status_code": response.status_code, "endpoint": endpoint, "project": envelope.project}

        if not response.is_success:
            body = _decode_response(response)
            if body is not None and body.error:
                _log.error("api_error_response", error=body.error, **fields)
                raise RemoteRejectionError(
                    f"API error (HTTP {response.status_code}): {body.error}",
                    status_code=response.status_code,
                    remote_error=body.error,
                )
            _log.error("api_non_success_status", **fields)
            raise RemoteRejectionError(
                f"API returned non-success status: {response.status_code}",
                status_code=response.status_code,
            )

        body = _decode_response(response)
        if body is None:
            _log.warning("api_response_unreadable", **fields)
            return DeliveryStatus.ACCEPTED

        if not body.success:
            _log.error("api_processing_failed", error=body.error, **fields)
            raise RemoteRejectionError(
                f"API processing failed: {body.error}",
                status_code=response.status_code,
                remote_error=body.error,
            )

        self._initial_completed.set()
        _log.info("discovery_result_accepted", message=body.message, **fields)
        return DeliveryStatus.DELIVERED
