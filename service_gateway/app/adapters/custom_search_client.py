"""
Google Custom Search client for Gateway.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

from shared.config import GatewayConfig
from shared.logging import get_logger
from shared.errors import ShapeError, UpstreamConnectionError, UpstreamError, UpstreamTimeoutError

from service_gateway.app.adapters.upstream_executor import UpstreamExecutor


class CustomSearchClient:
    """Fetches the first page of web results for a query."""

    upstream = "google_cse"

    def __init__(self, config: GatewayConfig, executor: UpstreamExecutor) -> None:
        self.config = config
        self.executor = executor
        self.logger = get_logger("gateway.custom_search_client")

    def build_query(self, q: str, params: Dict[str, str]) -> List[Tuple[str, str]]:
        query = [
            ("key", self.config.google_cse_api_key or ""),
            ("cx", self.config.google_cse_cx or ""),
            ("q", q),
            ("num", "10"),
            ("start", "1"),
        ]
        if params.get("lr"):
            query.append(("lr", params["lr"]))
        if params.get("cr"):
            query.append(("cr", params["cr"]))
        return query

    async def search(self, q: str, params: Dict[str, str]) -> Any:
        """Run the search and return the decoded JSON body."""
        self.logger.info("Google CSE request", q=q, **params)

        try:
            response = await self.executor.call(
                "GET",
                self.config.google_cse_url,
                upstream=self.upstream,
                timeout=self.config.top_results_timeout_seconds,
                params=self.build_query(q, params),
            )
        except UpstreamError as exc:
            raise UpstreamError(
                self.upstream,
                exc.status_code,
                exc.body,
                message="Failed to fetch search results",
                details=_error_message(exc.body),
            ) from exc
        except UpstreamTimeoutError as exc:
            raise UpstreamTimeoutError("Request timed out. Please try again.") from exc
        except UpstreamConnectionError as exc:
            raise UpstreamConnectionError(
                "Failed to communicate with Google Custom Search API",
                details=exc.details,
            ) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ShapeError(
                "Failed to parse Google Custom Search API response",
                details="Invalid JSON response from Google Custom Search API",
            ) from exc


def _error_message(body: str) -> str:
    """Extract ``error.message`` from a Custom Search error body."""
    try:
        data = json.loads(body) if body else {}
    except ValueError:
        return "Unknown error"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return "Unknown error"
