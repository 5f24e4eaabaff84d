"""
Keyword ideas request handling.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional, TYPE_CHECKING

from shared.errors import ConfigError, RateLimitError
from shared.logging import get_logger

from service_gateway.app.caching.response_cache import ResponseCache, make_cache_key
from service_gateway.app.domain.models import (
    KeywordIdeasRequest,
    KeywordIdeasResponse,
    parse_request_body,
)
from service_gateway.app.domain.transformers import normalize_keyword_ideas
from service_gateway.app.ratelimit.fixed_window import FixedWindowRateLimiter

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from service_gateway.app.adapters.google_ads_auth import GoogleAdsCredentialBroker
    from service_gateway.app.adapters.google_ads_client import KeywordPlannerClient
    from shared.metrics import MetricsCollector


def keyword_ideas_cache_key(request: KeywordIdeasRequest) -> str:
    return make_cache_key(
        request.keyword.strip().lower(),
        request.regionId or "any",
        request.languageId or "any",
        request.pageSize,
    )


class KeywordIdeasHandler:
    """Orchestrates a ``/keyword-ideas`` call.

    Order: rate limit, validation, cache, configuration, token, upstream,
    normalization, cache write.
    """

    endpoint = "/keyword-ideas"

    def __init__(
        self,
        rate_limiter: FixedWindowRateLimiter,
        cache: ResponseCache,
        credential_broker: "GoogleAdsCredentialBroker",
        planner_client: "KeywordPlannerClient",
        *,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.cache = cache
        self.credential_broker = credential_broker
        self.planner_client = planner_client
        self.metrics = metrics
        self.logger = get_logger("gateway.keyword_ideas")

    async def handle(self, client_id: str, body: Any) -> Dict[str, Any]:
        start_time = time.perf_counter()

        decision = self.rate_limiter.check(client_id)
        if not decision.allowed:
            if self.metrics is not None:
                self.metrics.increment_counter("rate_limit_hits_total", endpoint=self.endpoint)
            raise RateLimitError(retry_after=decision.reset_in_seconds)

        request = parse_request_body(KeywordIdeasRequest, body, "keyword", "Keyword is required")

        cache_key = keyword_ideas_cache_key(request)
        cached = self.cache.lookup(cache_key)
        if cached is not None:
            self.logger.debug("Keyword ideas served from cache", cache_key=cache_key)
            return cached

        if not self.credential_broker.validate_config():
            raise ConfigError("Google Ads API not configured")

        access_token = await self.credential_broker.get_fresh_access_token()

        raw = await self.planner_client.generate_keyword_ideas(
            access_token,
            request.keyword.strip(),
            page_size=request.pageSize,
            region_id=request.regionId,
            language_id=request.languageId,
        )

        page = normalize_keyword_ideas(raw)
        if page.recovered and self.metrics is not None:
            self.metrics.increment_counter(
                "records_recovered_total", amount=page.recovered, upstream="google_ads"
            )

        response = KeywordIdeasResponse(
            elapsedMs=int((time.perf_counter() - start_time) * 1000),
            results=page.results,
            nextPageToken=page.next_page_token,
        ).model_dump()

        self.cache.store(cache_key, response)
        self.logger.info(
            "Keyword ideas fetched",
            cache_key=cache_key,
            result_count=len(page.results),
            recovered=page.recovered,
            elapsed_ms=response["elapsedMs"],
        )
        return response
