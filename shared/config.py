"""
Shared configuration management for the Keyword Gateway.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


GOOGLE_ADS_REQUIRED_SETTINGS = (
    "google_ads_customer_id",
    "google_ads_developer_token",
    "google_ads_client_id",
    "google_ads_client_secret",
    "google_ads_refresh_token",
)

GOOGLE_CSE_REQUIRED_SETTINGS = (
    "google_cse_api_key",
    "google_cse_cx",
)


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias="GATEWAY_ENV")
    log_level: str = Field(default="info", validation_alias="GATEWAY_LOG_LEVEL")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "gateway"
    port: int = 8000
    host: str = "0.0.0.0"


class GatewayConfig(ServiceConfig):
    """Configuration for the keyword and search gateway."""

    # Google Ads keyword planner secrets
    google_ads_customer_id: Optional[str] = None
    google_ads_developer_token: Optional[str] = None
    google_ads_client_id: Optional[str] = None
    google_ads_client_secret: Optional[str] = None
    google_ads_refresh_token: Optional[str] = None

    # Google Custom Search secrets
    google_cse_api_key: Optional[str] = None
    google_cse_cx: Optional[str] = None

    # Upstream endpoints
    google_ads_api_url: str = "https://googleads.googleapis.com"
    google_ads_api_version: str = "v19"
    google_oauth_token_url: str = "https://oauth2.googleapis.com/token"
    google_cse_url: str = "https://www.googleapis.com/customsearch/v1"

    # Rate limiting (keyword ideas route)
    rate_limit_requests: int = Field(default=3, ge=1)
    rate_limit_window_seconds: float = Field(default=5.0, gt=0)
    rate_limit_max_clients: int = Field(default=10000, ge=1)

    # Response caching
    keyword_ideas_cache_ttl_seconds: float = Field(default=120.0, ge=0)
    top_results_cache_ttl_seconds: float = Field(default=120.0, ge=0)

    # Upstream timeouts
    keyword_ideas_timeout_seconds: float = Field(default=10.0, gt=0)
    top_results_timeout_seconds: float = Field(default=8.0, gt=0)
    token_exchange_timeout_seconds: float = Field(default=10.0, gt=0)

    # Access token reuse (off: one exchange per gateway call)
    reuse_access_tokens: bool = False
    token_refresh_margin_seconds: float = Field(default=60.0, ge=0)

    def missing_settings(self, names: tuple) -> List[str]:
        """Return the names of required settings that are unset or blank."""
        missing = []
        for name in names:
            value = getattr(self, name, None)
            if value is None or not str(value).strip():
                missing.append(name)
        return missing

    @property
    def google_ads_configured(self) -> bool:
        return not self.missing_settings(GOOGLE_ADS_REQUIRED_SETTINGS)

    @property
    def google_cse_configured(self) -> bool:
        return not self.missing_settings(GOOGLE_CSE_REQUIRED_SETTINGS)


def get_config(**overrides) -> GatewayConfig:
    """Get configuration for the gateway service."""
    return GatewayConfig(**overrides)
