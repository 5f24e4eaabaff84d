"""
Unit tests for request parsing, locale mapping and configuration.
"""

import pytest

from service_gateway.app.domain.keyword_ideas import keyword_ideas_cache_key
from service_gateway.app.domain.locales import resolve_search_params
from service_gateway.app.domain.models import (
    KeywordIdeasRequest,
    TopResultsRequest,
    parse_request_body,
)
from shared.config import GOOGLE_ADS_REQUIRED_SETTINGS, GatewayConfig
from shared.errors import ValidationError


class TestParseRequestBody:
    """Test cases for parse_request_body."""

    def test_decodes_bytes(self):
        request = parse_request_body(KeywordIdeasRequest, b'{"keyword": "seo"}', "keyword", "Keyword is required")

        assert request.keyword == "seo"
        assert request.pageSize == 15
        assert request.regionId is None

    def test_numeric_identifiers_become_strings(self):
        request = parse_request_body(
            KeywordIdeasRequest,
            {"keyword": "seo", "regionId": 2840, "languageId": " "},
            "keyword",
            "Keyword is required",
        )

        assert request.regionId == "2840"
        assert request.languageId is None

    def test_extra_fields_ignored(self):
        request = parse_request_body(TopResultsRequest, {"q": "seo", "foo": 1}, "q", "q required")

        assert request.q == "seo"

    @pytest.mark.parametrize("body,message", [
        (b"", "Request body must be a JSON object"),
        (b"[1, 2]", "Request body must be a JSON object"),
        (b"{oops", "Request body must be valid JSON"),
        ({"keyword": 5}, "Invalid request body"),
        ({"keyword": None}, "Keyword is required"),
    ])
    def test_rejections(self, body, message):
        with pytest.raises(ValidationError) as exc_info:
            parse_request_body(KeywordIdeasRequest, body, "keyword", "Keyword is required")

        assert exc_info.value.message == message
        assert exc_info.value.status_code == 400


class TestCacheKeys:

    def test_keyword_normalized(self):
        a = KeywordIdeasRequest(keyword="  SEO Tools ")
        b = KeywordIdeasRequest(keyword="seo tools")

        assert keyword_ideas_cache_key(a) == keyword_ideas_cache_key(b) == "seo tools|any|any|15"

    def test_targeting_part_of_key(self):
        a = KeywordIdeasRequest(keyword="seo", regionId="2840")
        b = KeywordIdeasRequest(keyword="seo", languageId="2840")

        assert keyword_ideas_cache_key(a) != keyword_ideas_cache_key(b)


class TestResolveSearchParams:

    def test_known_names(self):
        assert resolve_search_params("Spanish", "Spain") == {"lr": "lang_es", "cr": "countryES"}

    def test_unknown_and_missing_names(self):
        assert resolve_search_params("english", None) == {}
        assert resolve_search_params(None, "Germany") == {"cr": "countryDE"}


class TestGatewayConfig:

    def test_defaults(self):
        config = GatewayConfig(google_ads_customer_id=None)

        assert config.rate_limit_requests == 3
        assert config.rate_limit_window_seconds == 5.0
        assert config.keyword_ideas_cache_ttl_seconds == 120
        assert config.reuse_access_tokens is False

    def test_missing_settings_treats_blank_as_missing(self):
        config = GatewayConfig(
            google_ads_customer_id="123",
            google_ads_developer_token=" ",
            google_ads_client_id="id",
            google_ads_client_secret="secret",
            google_ads_refresh_token=None,
        )

        assert config.missing_settings(GOOGLE_ADS_REQUIRED_SETTINGS) == [
            "google_ads_developer_token",
            "google_ads_refresh_token",
        ]
        assert config.google_ads_configured is False

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_CSE_API_KEY", "env-key")
        monkeypatch.setenv("GOOGLE_CSE_CX", "env-cx")
        monkeypatch.setenv("GATEWAY_ENV", "production")

        config = GatewayConfig()

        assert config.google_cse_api_key == "env-key"
        assert config.google_cse_configured is True
        assert config.env == "production"
