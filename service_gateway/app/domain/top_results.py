"""
Top search results request handling.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, TYPE_CHECKING

from shared.config import GOOGLE_CSE_REQUIRED_SETTINGS
from shared.errors import ConfigError
from shared.logging import get_logger

from service_gateway.app.caching.response_cache import ResponseCache, make_cache_key
from service_gateway.app.domain.locales import resolve_search_params
from service_gateway.app.domain.models import TopResultsRequest, TopResultsResponse, parse_request_body
from service_gateway.app.domain.transformers import build_params_used, normalize_search_results

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from service_gateway.app.adapters.custom_search_client import CustomSearchClient
    from shared.metrics import MetricsCollector


def serp_cache_key(q: str, params: Dict[str, str]) -> str:
    return make_cache_key(q.strip().lower(), params.get("lr", ""), params.get("cr", ""))


class TopResultsHandler:
    """Orchestrates a ``/top-results`` call.

    The cache holds only ``results`` and ``params``; ``q``, ``paramsUsed`` and
    ``serpKey`` are rebuilt from each request.
    """

    def __init__(
        self,
        cache: ResponseCache,
        search_client: "CustomSearchClient",
        *,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.cache = cache
        self.search_client = search_client
        self.metrics = metrics
        self.logger = get_logger("gateway.top_results")

    @property
    def _secrets(self):
        config = self.search_client.config
        return (config.google_cse_api_key, config.google_cse_cx)

    def _reply(self, q: str, cached: Dict[str, Any], serp_key: str) -> Dict[str, Any]:
        response = TopResultsResponse(
            results=cached["results"],
            params=cached["params"],
            q=q,
            paramsUsed=build_params_used(q, cached["params"], self._secrets),
            serpKey=serp_key,
        )
        return response.model_dump(exclude_none=True)

    async def handle(self, body: Any) -> Dict[str, Any]:
        request = parse_request_body(TopResultsRequest, body, "q", 'Query parameter "q" is required')
        q = request.q.strip()

        params = resolve_search_params(request.languageId, request.regionId)
        serp_key = serp_cache_key(q, params)

        cached = self.cache.lookup(serp_key)
        if cached is not None:
            self.logger.debug("Top results served from cache", serp_key=serp_key)
            return self._reply(q, cached, serp_key)

        missing = self.search_client.config.missing_settings(GOOGLE_CSE_REQUIRED_SETTINGS)
        if missing:
            self.logger.error(
                "Missing Google CSE environment variables",
                missing=[name.upper() for name in missing],
            )
            raise ConfigError("Google Custom Search API not configured")

        raw = await self.search_client.search(q, params)
        page = normalize_search_results(raw)
        if page.recovered and self.metrics is not None:
            self.metrics.increment_counter(
                "records_recovered_total", amount=page.recovered, upstream="google_cse"
            )

        entry = {"results": page.results, "params": dict(params)}
        self.cache.store(serp_key, entry)
        self.logger.info("Top results fetched", serp_key=serp_key, result_count=len(page.results))
        return self._reply(q, entry, serp_key)
