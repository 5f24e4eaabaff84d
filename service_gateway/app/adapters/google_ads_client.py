"""
Google Ads keyword planner client for Gateway.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from shared.config import GatewayConfig
from shared.logging import get_logger
from shared.errors import ShapeError, UpstreamConnectionError, UpstreamError

from service_gateway.app.adapters.google_ads_auth import AccessToken
from service_gateway.app.adapters.upstream_executor import UpstreamExecutor
from service_gateway.app.domain.transformers import mask_secret


class KeywordPlannerClient:
    """Calls ``customers/{id}:generateKeywordIdeas`` and returns the raw JSON."""

    upstream = "google_ads"

    def __init__(self, config: GatewayConfig, executor: UpstreamExecutor) -> None:
        self.config = config
        self.executor = executor
        self.logger = get_logger("gateway.google_ads_client")

    @property
    def endpoint(self) -> str:
        base = self.config.google_ads_api_url.rstrip("/")
        return (
            f"{base}/{self.config.google_ads_api_version}"
            f"/customers/{self.config.google_ads_customer_id}:generateKeywordIdeas"
        )

    @staticmethod
    def build_payload(
        keyword: str,
        page_size: int,
        region_id: Optional[str] = None,
        language_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "keywordSeed": {"keywords": [keyword]},
            "keywordPlanNetwork": "GOOGLE_SEARCH",
            "pageSize": page_size,
        }
        if region_id:
            payload["geoTargetConstants"] = [f"geoTargetConstants/{region_id}"]
        if language_id:
            payload["language"] = f"languageConstants/{language_id}"
        return payload

    async def generate_keyword_ideas(
        self,
        access_token: AccessToken,
        keyword: str,
        *,
        page_size: int,
        region_id: Optional[str] = None,
        language_id: Optional[str] = None,
    ) -> Any:
        """Request keyword ideas for a single seed keyword."""
        customer_id = self.config.google_ads_customer_id
        developer_token = self.config.google_ads_developer_token
        payload = self.build_payload(keyword, page_size, region_id, language_id)

        self.logger.info(
            "Google Ads API request",
            url=self.endpoint,
            customer_id=customer_id,
            developer_token=mask_secret(developer_token),
            access_token=mask_secret(access_token.value, visible=8),
            payload=payload,
        )

        try:
            response = await self.executor.call(
                "POST",
                self.endpoint,
                upstream=self.upstream,
                timeout=self.config.keyword_ideas_timeout_seconds,
                headers={
                    "Authorization": f"Bearer {access_token.value}",
                    "developer-token": developer_token or "",
                    "login-customer-id": customer_id or "",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
        except UpstreamError as exc:
            raise UpstreamError(
                self.upstream,
                exc.status_code,
                exc.body,
                message=f"Google Ads API error: {exc.status_code}",
            ) from exc
        except UpstreamConnectionError as exc:
            raise UpstreamConnectionError(
                "Failed to communicate with Google Ads API",
                details=exc.details,
            ) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise ShapeError(
                "Failed to parse Google Ads API response",
                details="Invalid JSON response from Google Ads API",
            ) from exc

        self.logger.debug(
            "Google Ads API response",
            result_count=len(data["results"]) if isinstance(data, dict) and isinstance(data.get("results"), list) else None,
            has_next_page=bool(isinstance(data, dict) and data.get("nextPageToken")),
        )
        return data
