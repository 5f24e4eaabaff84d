"""
API Gateway service fronting the keyword planner and web search APIs.
"""

import math
import time
from typing import Callable, Dict, Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import GatewayConfig, get_config
from shared.errors import GatewayError, RateLimitError
from shared.logging import set_client_context

from service_gateway.app.adapters import (
    CustomSearchClient,
    GoogleAdsCredentialBroker,
    KeywordPlannerClient,
    UpstreamExecutor,
)
from service_gateway.app.caching import ResponseCache
from service_gateway.app.domain import KeywordIdeasHandler, TopResultsHandler
from service_gateway.app.ratelimit import FixedWindowRateLimiter, get_client_id


class GatewayService(BaseService):
    """API Gateway service implementation.

    Owns the rate limiter, the response caches and the upstream clients for
    the lifetime of the process and hands them to the route handlers. All of
    that state is process-local.
    """

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__("gateway", config or get_config())

        self.executor = UpstreamExecutor(
            default_timeout=self.config.keyword_ideas_timeout_seconds,
            transport=transport,
            metrics=self.metrics,
        )
        self.rate_limiter = FixedWindowRateLimiter(
            self.config.rate_limit_requests,
            self.config.rate_limit_window_seconds,
            max_clients=self.config.rate_limit_max_clients,
            clock=clock,
        )
        self.keyword_ideas_cache = ResponseCache(
            "keyword_ideas",
            self.config.keyword_ideas_cache_ttl_seconds,
            clock=clock,
            metrics=self.metrics,
        )
        self.top_results_cache = ResponseCache(
            "top_results",
            self.config.top_results_cache_ttl_seconds,
            clock=clock,
            metrics=self.metrics,
        )
        self.credential_broker = GoogleAdsCredentialBroker(
            self.config,
            self.executor,
            clock=clock,
            metrics=self.metrics,
        )
        self.planner_client = KeywordPlannerClient(self.config, self.executor)
        self.search_client = CustomSearchClient(self.config, self.executor)

        self.keyword_ideas_handler = KeywordIdeasHandler(
            self.rate_limiter,
            self.keyword_ideas_cache,
            self.credential_broker,
            self.planner_client,
            metrics=self.metrics,
        )
        self.top_results_handler = TopResultsHandler(
            self.top_results_cache,
            self.search_client,
            metrics=self.metrics,
        )

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.executor.close()

        self._setup_gateway_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.gateway_service = self

    async def _check_dependencies(self) -> Dict[str, str]:
        """Report whether each upstream has its secrets configured."""
        return {
            "google_ads": "configured" if self.config.google_ads_configured else "missing",
            "google_cse": "configured" if self.config.google_cse_configured else "missing",
        }

    def _keyword_error_response(self, exc: GatewayError) -> JSONResponse:
        self.metrics.record_error(exc.code)
        headers = None
        if isinstance(exc, RateLimitError) and exc.retry_after is not None:
            headers = {"Retry-After": str(max(1, math.ceil(exc.retry_after)))}
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response().model_dump(exclude_none=True),
            headers=headers,
        )

    def _top_results_error_response(self, exc: GatewayError) -> JSONResponse:
        self.metrics.record_error(exc.code)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_simple_response().model_dump(exclude_none=True),
        )

    def _setup_gateway_routes(self):
        """Set up gateway-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "gateway",
                "message": "Keyword Gateway - API Gateway",
                "version": "1.0.0"
            }

        @self.app.post("/keyword-ideas")
        async def keyword_ideas(request: Request):
            """Keyword ideas with monthly search volume, highest volume first."""
            client_id = get_client_id(request)
            set_client_context(client_id)

            try:
                payload = await self.keyword_ideas_handler.handle(client_id, await request.body())
                return JSONResponse(content=payload)
            except GatewayError as exc:
                self.logger.warning(
                    "Keyword ideas request failed",
                    code=exc.code,
                    status_code=exc.status_code,
                    message=exc.message,
                )
                return self._keyword_error_response(exc)
            except Exception as exc:
                self.logger.error("Keyword ideas API error", error=str(exc), exc_info=True)
                self.metrics.record_error("INTERNAL_ERROR")
                return JSONResponse(
                    status_code=500,
                    content={"error": {"code": 500, "message": "Internal server error", "details": str(exc)}},
                )

        @self.app.post("/top-results")
        async def top_results(request: Request):
            """Top ten web results for a query."""
            try:
                payload = await self.top_results_handler.handle(await request.body())
                return JSONResponse(content=payload)
            except GatewayError as exc:
                self.logger.warning(
                    "Top results request failed",
                    code=exc.code,
                    status_code=exc.status_code,
                    message=exc.message,
                )
                return self._top_results_error_response(exc)
            except Exception as exc:
                self.logger.error("Top results API error", error=str(exc), exc_info=True)
                self.metrics.record_error("INTERNAL_ERROR")
                return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(config: Optional[GatewayConfig] = None):
    """Create FastAPI application."""
    service = GatewayService(config)
    return service.app


if __name__ == "__main__":
    service = GatewayService()
    service.run()
