"""
Unit tests for Gateway main service.
"""

import pytest
from fastapi.testclient import TestClient

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_gateway.app.main import GatewayService, create_app
from shared.test_helpers import FakeClock, TestEnvironment, UpstreamRecorder


class TestGatewayService:
    """Test cases for GatewayService."""

    @pytest.fixture
    def gateway_service(self):
        """Create GatewayService instance."""
        return GatewayService(
            TestEnvironment.get_mock_config(),
            transport=UpstreamRecorder().transport(),
            clock=FakeClock(),
        )

    @pytest.fixture
    def client(self, gateway_service):
        """Create test client."""
        return TestClient(gateway_service.app)

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "gateway"
        assert data["message"] == "Keyword Gateway - API Gateway"
        assert data["version"] == "1.0.0"

    def test_health_endpoint(self, client):
        """Test health endpoint reports configured upstreams."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "gateway"
        assert data["status"] == "ok"
        assert data["dependencies"] == {"google_ads": "configured", "google_cse": "configured"}

    def test_health_reports_missing_secrets(self):
        service = GatewayService(
            TestEnvironment.get_mock_config(google_cse_api_key=""),
            transport=UpstreamRecorder().transport(),
        )
        response = TestClient(service.app).get("/health")

        assert response.json()["dependencies"]["google_cse"] == "missing"
        assert response.json()["dependencies"]["google_ads"] == "configured"

    def test_metrics_endpoint(self, client):
        """Test metrics endpoint."""
        client.get("/")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text
        assert "cache_hits_total" in response.text

    def test_request_id_propagated(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, client):
        response = client.get("/")

        assert response.headers["X-Request-ID"]

    def test_http_requests_recorded(self, client, gateway_service):
        client.post("/top-results", json={})

        assert gateway_service.metrics.get_sample_value(
            "http_requests_total",
            {"method": "POST", "endpoint": "/top-results", "status_code": "400"},
        ) == 1

    def test_service_state(self, gateway_service):
        assert gateway_service.app.state.gateway_service is gateway_service
        assert gateway_service.rate_limiter.limit == 3
        assert gateway_service.rate_limiter.window_seconds == 5.0
        assert gateway_service.keyword_ideas_cache.ttl_seconds == 120
        assert gateway_service.top_results_cache.ttl_seconds == 120

    def test_create_app(self):
        app = create_app(TestEnvironment.get_mock_config())

        assert app.state.gateway_service.service_name == "gateway"
