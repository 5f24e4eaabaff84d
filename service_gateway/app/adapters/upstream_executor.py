"""
Deadline-bounded HTTP executor for third-party APIs.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Optional, TYPE_CHECKING

import httpx

from shared.logging import get_logger
from shared.errors import UpstreamConnectionError, UpstreamError, UpstreamTimeoutError

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class UpstreamExecutor:
    """Issues upstream calls under a hard deadline.

    The whole exchange, connect through body read, runs inside
    ``asyncio.wait_for``; when the deadline fires the in-flight request is
    cancelled and ``UpstreamTimeoutError`` is raised. Calls are never retried.
    """

    def __init__(
        self,
        *,
        default_timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.default_timeout = default_timeout
        self.metrics = metrics
        self.logger = get_logger("gateway.upstream")
        self._client = httpx.AsyncClient(timeout=default_timeout, transport=transport)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def call(
        self,
        method: str,
        url: str,
        *,
        upstream: str,
        timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Any] = None,
        json: Optional[Any] = None,
        data: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """Execute a single upstream request and return the 2xx response."""
        deadline = timeout if timeout is not None else self.default_timeout
        start_time = time.perf_counter()

        try:
            response = await asyncio.wait_for(
                self._client.request(
                    method,
                    url,
                    headers=headers,
                    params=params,
                    json=json,
                    data=data,
                    timeout=deadline,
                ),
                timeout=deadline,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            self._observe(upstream, "timeout", start_time)
            self.logger.warning(
                "Upstream request timed out",
                upstream=upstream,
                timeout_seconds=deadline,
            )
            raise UpstreamTimeoutError(details=f"{upstream} did not respond within {deadline}s") from exc
        except httpx.HTTPError as exc:
            self._observe(upstream, "connection_error", start_time)
            self.logger.error("Upstream request failed", upstream=upstream, error=str(exc))
            raise UpstreamConnectionError(
                f"Failed to communicate with {upstream}",
                details=str(exc),
            ) from exc

        if response.is_success:
            self._observe(upstream, "success", start_time)
            return response

        self._observe(upstream, "error", start_time)
        body = response.text
        self.logger.error(
            "Upstream API error",
            upstream=upstream,
            status_code=response.status_code,
            response=body[:500],
        )
        raise UpstreamError(upstream, response.status_code, body)

    def _observe(self, upstream: str, outcome: str, start_time: float) -> None:
        if self.metrics is None:
            return
        self.metrics.increment_counter("upstream_requests_total", upstream=upstream, outcome=outcome)
        self.metrics.observe_histogram(
            "upstream_request_duration_seconds",
            time.perf_counter() - start_time,
            upstream=upstream,
        )
