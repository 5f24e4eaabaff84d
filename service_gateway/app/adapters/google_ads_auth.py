"""
OAuth2 credential broker for the Google Ads API.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Callable, Optional, TYPE_CHECKING

from shared.config import GOOGLE_ADS_REQUIRED_SETTINGS, GatewayConfig
from shared.logging import get_logger
from shared.errors import (
    AuthConfigError,
    UpstreamAuthError,
    UpstreamConnectionError,
    UpstreamError,
)

from service_gateway.app.adapters.upstream_executor import UpstreamExecutor

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


@dataclass(frozen=True)
class AccessToken:
    """Short-lived bearer token returned by the token endpoint."""

    value: str
    expires_in: Optional[float]
    obtained_at: float

    def is_fresh(self, now: float, margin: float) -> bool:
        if self.expires_in is None:
            return False
        return now < self.obtained_at + self.expires_in - margin


class GoogleAdsCredentialBroker:
    """Exchanges the long-lived refresh token for an access token.

    By default every call performs a new exchange. With
    ``reuse_access_tokens`` enabled the last token is handed out until it is
    within ``token_refresh_margin_seconds`` of its stated expiry.
    """

    def __init__(
        self,
        config: GatewayConfig,
        executor: UpstreamExecutor,
        *,
        clock: Callable[[], float] = time.monotonic,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.config = config
        self.executor = executor
        self.clock = clock
        self.metrics = metrics
        self.logger = get_logger("gateway.google_ads_auth")
        self._cached: Optional[AccessToken] = None

    def validate_config(self) -> bool:
        """Return True when every Google Ads secret is present."""
        missing = self.config.missing_settings(GOOGLE_ADS_REQUIRED_SETTINGS)
        if missing:
            self.logger.error(
                "Missing Google Ads environment variables",
                missing=[name.upper() for name in missing],
            )
            return False
        return True

    async def get_fresh_access_token(self) -> AccessToken:
        """Return a bearer token for the Google Ads API."""
        if self.config.reuse_access_tokens and self._cached is not None:
            if self._cached.is_fresh(self.clock(), self.config.token_refresh_margin_seconds):
                return self._cached

        client_id = self.config.google_ads_client_id
        client_secret = self.config.google_ads_client_secret
        refresh_token = self.config.google_ads_refresh_token
        if not client_id or not client_secret or not refresh_token:
            raise AuthConfigError()

        form = {
            "client_id": client_id,
            "client_secret": client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }

        try:
            response = await self.executor.call(
                "POST",
                self.config.google_oauth_token_url,
                upstream="google_oauth",
                timeout=self.config.token_exchange_timeout_seconds,
                data=form,
            )
        except UpstreamError as exc:
            self._record("error")
            error, description = _oauth_error_fields(exc)
            raise UpstreamAuthError(
                details=f"OAuth token refresh failed: {error} - {description}",
            ) from exc
        except UpstreamConnectionError as exc:
            self._record("error")
            raise UpstreamAuthError(details=exc.details) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            self._record("error")
            raise UpstreamAuthError(details="Token endpoint returned invalid JSON") from exc

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            self._record("error")
            raise UpstreamAuthError(details="No access token received from Google OAuth")

        expires_in = payload.get("expires_in")
        try:
            expires_in = float(expires_in) if expires_in is not None else None
        except (TypeError, ValueError):
            expires_in = None

        token = AccessToken(value=access_token, expires_in=expires_in, obtained_at=self.clock())
        self._record("success")
        self.logger.debug("Obtained Google Ads access token", expires_in=expires_in)

        if self.config.reuse_access_tokens:
            self._cached = token
        return token

    def _record(self, status: str) -> None:
        if self.metrics is not None:
            self.metrics.increment_counter("token_exchanges_total", status=status)


def _oauth_error_fields(exc: UpstreamError):
    """Pull ``error`` and ``error_description`` out of an OAuth error body."""
    try:
        body = json.loads(exc.body) if exc.body else {}
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    return body.get("error", "unknown_error"), body.get("error_description", exc.body or "")
