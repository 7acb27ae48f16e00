"""HTTP 传输层：基于 httpx 的上游提供方异步客户端，支持流式读取。

HTTP transport to the upstream provider using httpx.

Provides:
- Streaming POST returning an UpstreamBody handle
- One-shot JSON POST
- Mapping of httpx failures onto the gateway error hierarchy
"""

from __future__ import annotations

import json as json_module
from typing import TYPE_CHECKING, Any

import httpx

from onemin_gateway.errors import RemoteError, TransportError, UpstreamReadError
from onemin_gateway.pipeline.cancel import UpstreamBody
from onemin_gateway.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from onemin_gateway.config import GatewaySettings

logger = get_logger("onemin_gateway.transport")

_UA_VERSION: str | None = None


def _get_ua_version() -> str:
    """Get package version for User-Agent (cached)."""
    global _UA_VERSION
    if _UA_VERSION is None:
        from importlib.metadata import PackageNotFoundError, version

        try:
            _UA_VERSION = version("onemin-gateway")
        except PackageNotFoundError:
            _UA_VERSION = "0.0.0"
    return _UA_VERSION


class UpstreamTransport:
    """HTTP transport for the upstream feature API.

    Example:
        >>> transport = UpstreamTransport(settings)
        >>> body = await transport.open_stream(payload, api_key="...")
        >>> async for chunk in body:
        ...     process(chunk)
        >>> await body.aclose()
    """

    def __init__(
        self,
        settings: GatewaySettings,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize HTTP transport.

        Args:
            settings: Gateway settings (URL, timeouts)
            client: Optional preconfigured httpx client
        """
        self._settings = settings
        self._url = settings.upstream_url
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    self._settings.timeout,
                    connect=self._settings.connect_timeout,
                ),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _build_headers(self, api_key: str, *, stream: bool) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "text/event-stream" if stream else "application/json",
            "User-Agent": f"onemin-gateway/{_get_ua_version()}",
            "API-KEY": api_key,
        }

    def _wrap_error(self, e: httpx.HTTPError) -> TransportError:
        if isinstance(e, httpx.ConnectError):
            message = f"Connection failed: {e}"
        elif isinstance(e, httpx.TimeoutException):
            message = f"Request timed out: {e}"
        else:
            message = f"HTTP error: {e}"
        return TransportError(message, url=self._url, cause=e)

    async def post(self, payload: dict[str, Any], *, api_key: str) -> dict[str, Any]:
        """Make a one-shot POST and return the decoded JSON body.

        Raises:
            TransportError: On network/connection errors
            RemoteError: On upstream error statuses
        """
        client = self._get_client()
        try:
            response = await client.post(
                self._url, json=payload, headers=self._build_headers(api_key, stream=False)
            )
        except httpx.HTTPError as e:
            raise self._wrap_error(e) from e

        if response.status_code >= 400:
            logger.error("Upstream API error", status=response.status_code, body=response.text)
            raise RemoteError.from_response(response.status_code, response.text)

        try:
            return response.json()
        except json_module.JSONDecodeError as e:
            raise TransportError("Upstream returned invalid JSON", url=self._url, cause=e) from e

    async def open_stream(self, payload: dict[str, Any], *, api_key: str) -> UpstreamBody:
        """Start a streaming POST.

        The returned body must be closed by its consumer; the pipeline does
        this on completion, failure or client disconnect.

        Raises:
            TransportError: On network/connection errors before streaming
            RemoteError: On upstream error statuses
        """
        client = self._get_client()
        request = client.build_request(
            "POST",
            self._url,
            json=payload,
            headers=self._build_headers(api_key, stream=True),
        )
        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise self._wrap_error(e) from e

        if response.status_code >= 400:
            try:
                body_text = (await response.aread()).decode("utf-8", errors="replace")
            except httpx.HTTPError:
                body_text = None
            finally:
                await response.aclose()
            logger.error("Upstream API error", status=response.status_code, body=body_text)
            raise RemoteError.from_response(response.status_code, body_text)

        return UpstreamBody(self._read(response), response.aclose)

    async def _read(self, response: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        except httpx.HTTPError as e:
            raise UpstreamReadError(f"Upstream read failed: {e}", url=self._url, cause=e) from e

    async def __aenter__(self) -> UpstreamTransport:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
