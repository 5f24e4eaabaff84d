"""
Tests for the top results endpoint.
"""

import asyncio
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient

from service_gateway.app.main import GatewayService
from shared.test_helpers import (
    FakeClock,
    TEST_SECRETS,
    TestDataFactory,
    TestEnvironment,
    UpstreamRecorder,
    json_response,
)


CSE_HOST = "www.googleapis.com"


class TestTopResultsEndpoint:
    """Test cases for POST /top-results."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def recorder(self):
        return UpstreamRecorder({CSE_HOST: json_response(TestDataFactory.search_payload(10))})

    @pytest.fixture
    def gateway_service(self, recorder, clock):
        return GatewayService(
            TestEnvironment.get_mock_config(),
            transport=recorder.transport(),
            clock=clock,
        )

    @pytest.fixture
    def client(self, gateway_service):
        return TestClient(gateway_service.app)

    def test_returns_results_with_locale(self, client):
        response = client.post(
            "/top-results",
            json={"q": " running shoes ", "languageId": "English", "regionId": "United States"},
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data["results"]) == 10
        assert data["results"][0] == {
            "title": "Result 0",
            "link": "https://example0.com/page",
            "displayLink": "example0.com",
        }
        assert data["q"] == "running shoes"
        assert data["params"] == {"lr": "lang_en", "cr": "countryUS"}
        assert data["serpKey"] == "running shoes|lang_en|countryUS"

    def test_upstream_query(self, client, recorder):
        client.post("/top-results", json={"q": "seo tools", "languageId": "Portuguese", "regionId": "Brazil"})

        request = recorder.calls_to(CSE_HOST)[0]
        assert request.method == "GET"
        assert request.url.path == "/customsearch/v1"
        query = parse_qs(request.url.query.decode())
        assert query == {
            "key": [TEST_SECRETS["google_cse_api_key"]],
            "cx": [TEST_SECRETS["google_cse_cx"]],
            "q": ["seo tools"],
            "num": ["10"],
            "start": ["1"],
            "lr": ["lang_pt"],
            "cr": ["countryBR"],
        }

    def test_credentials_never_returned(self, client):
        """Test the API key and engine id are redacted from the response."""
        response = client.post("/top-results", json={"q": "seo"})

        assert TEST_SECRETS["google_cse_api_key"] not in response.text
        assert TEST_SECRETS["google_cse_cx"] not in response.text
        params_used = parse_qs(response.json()["paramsUsed"])
        assert params_used["key"] == ["REDACTED"]
        assert params_used["cx"] == ["REDACTED"]

    def test_unknown_locale_names_are_dropped(self, client, recorder):
        response = client.post("/top-results", json={"q": "seo", "languageId": "Klingon", "regionId": "Atlantis"})

        data = response.json()
        assert data["params"] == {}
        assert data["serpKey"] == "seo||"
        query = parse_qs(recorder.calls_to(CSE_HOST)[0].url.query.decode())
        assert "lr" not in query
        assert "cr" not in query

    def test_cache_shared_across_case(self, client, recorder):
        first = client.post("/top-results", json={"q": "Running Shoes"})
        second = client.post("/top-results", json={"q": "running shoes "})

        assert len(recorder.calls_to(CSE_HOST)) == 1
        assert second.json()["results"] == first.json()["results"]
        assert second.json()["q"] == "running shoes"
        assert first.json()["q"] == "Running Shoes"

    def test_cache_expires_after_ttl(self, client, recorder, clock):
        client.post("/top-results", json={"q": "seo"})
        clock.advance(120)
        client.post("/top-results", json={"q": "seo"})
        clock.advance(0.5)
        client.post("/top-results", json={"q": "seo"})

        assert len(recorder.calls_to(CSE_HOST)) == 2

    def test_not_rate_limited(self, client):
        statuses = [client.post("/top-results", json={"q": f"seo {i}"}).status_code for i in range(6)]

        assert statuses == [200] * 6

    @pytest.mark.parametrize("body", [{}, {"q": ""}, {"q": "  "}])
    def test_missing_query(self, client, recorder, body):
        response = client.post("/top-results", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": 'Query parameter "q" is required'}
        assert recorder.requests == []

    def test_missing_configuration_fails_fast(self, recorder, clock):
        service = GatewayService(
            TestEnvironment.get_mock_config(google_cse_cx=None),
            transport=recorder.transport(),
            clock=clock,
        )
        client = TestClient(service.app)

        response = client.post("/top-results", json={"q": "seo"})

        assert response.status_code == 500
        assert response.json() == {"error": "Google Custom Search API not configured"}
        assert recorder.requests == []

    def test_upstream_error(self, client, recorder):
        recorder.routes[CSE_HOST] = json_response(
            {"error": {"code": 403, "message": "API key not valid. Please pass a valid API key."}},
            status_code=403,
        )

        response = client.post("/top-results", json={"q": "seo"})

        assert response.status_code == 403
        assert response.json() == {
            "error": "Failed to fetch search results",
            "details": "API key not valid. Please pass a valid API key.",
        }

    def test_upstream_error_without_message(self, client, recorder):
        recorder.routes[CSE_HOST] = lambda request: httpx.Response(502, text="Bad Gateway")

        response = client.post("/top-results", json={"q": "seo"})

        assert response.status_code == 502
        assert response.json()["details"] == "Unknown error"

    def test_timeout(self, recorder, clock):
        async def slow(request):
            await asyncio.sleep(1)
            return httpx.Response(200, json={})

        recorder.routes[CSE_HOST] = slow
        service = GatewayService(
            TestEnvironment.get_mock_config(top_results_timeout_seconds=0.05),
            transport=recorder.transport(),
            clock=clock,
        )
        client = TestClient(service.app)

        response = client.post("/top-results", json={"q": "seo"})

        assert response.status_code == 408
        assert response.json() == {"error": "Request timed out. Please try again."}
        assert len(service.top_results_cache) == 0

    def test_no_items(self, client, recorder):
        recorder.routes[CSE_HOST] = json_response({"searchInformation": {"totalResults": "0"}})

        response = client.post("/top-results", json={"q": "zzzzqqq"})

        assert response.status_code == 200
        assert response.json()["results"] == []
