"""Tests for the HTTP application."""

import pytest
from fastapi.testclient import TestClient

from pgpool_exporter.config import WebConfig
from pgpool_exporter.exporter import create_registry
from pgpool_exporter.server import create_app


@pytest.fixture
def http_client(client, config):
    config.web = WebConfig(telemetry_path="/pgpool/metrics")
    app = create_app(config, create_registry(client, config))
    return TestClient(app)


class TestApp:
    """Tests for the exporter endpoints."""

    def test_landing_page_links_metrics(self, http_client):
        response = http_client.get("/")
        assert response.status_code == 200
        assert "pgpool2_exporter" in response.text
        assert "href='/pgpool/metrics'" in response.text

    def test_metrics(self, http_client):
        response = http_client.get("/pgpool/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "pgpool2_node_count 3.0" in response.text
        assert 'pgpool2_frontend_active_connections{database="app_db"} 2.0' in response.text

    def test_default_metrics_path_not_served(self, http_client):
        assert http_client.get("/metrics").status_code == 404

    def test_health(self, http_client):
        response = http_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
