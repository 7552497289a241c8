"""
Async HTTP client for the notification gateway.
"""

import time
from typing import Any, Dict, Optional

import httpx

from techmarket.config.logging import get_logger
from techmarket.config.settings import settings
from techmarket.infrastructure.monitoring.metrics import record_gateway_request

logger = get_logger(__name__)

USER_AGENT = f"techmarket/{settings.APP_VERSION}"


class HTTPClient:
    """Short-lived ``httpx.AsyncClient`` that times and logs each call.

    Use it as an async context manager; the underlying connection pool is
    closed on exit.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.timeout = timeout
        self.transport = transport
        self.headers = {"User-Agent": USER_AGENT, **(headers or {})}
        self.client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "HTTPClient":
        self.client = httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport, headers=self.headers
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.client:
            await self.client.aclose()
            self.client = None

    async def post(
        self,
        url: str,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """POST ``data`` as JSON. Transport errors propagate; status is left to the caller."""
        if self.client is None:
            raise RuntimeError("HTTPClient must be used as an async context manager")

        start_time = time.perf_counter()
        try:
            response = await self.client.post(url, json=data, headers=headers)
        except httpx.HTTPError as e:
            elapsed = time.perf_counter() - start_time
            record_gateway_request("transport_error", elapsed)
            logger.warning(
                "Gateway request failed",
                url=url,
                error=str(e),
                error_type=type(e).__name__,
                elapsed_ms=round(elapsed * 1000, 1),
            )
            raise

        elapsed = time.perf_counter() - start_time
        record_gateway_request("ok" if response.is_success else "http_error", elapsed)
        logger.debug(
            "Gateway request completed",
            url=url,
            status_code=response.status_code,
            elapsed_ms=round(elapsed * 1000, 1),
        )
        return response
