"""Integration tests for health, metrics and CORS."""

import pytest


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["tools"] == 5
        assert body["provider_configured"] is True


class TestMetricsEndpoint:
    @pytest.mark.asyncio
    async def test_metrics_exposed(self, client):
        await client.get("/api/health")

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "http_requests_total" in response.text


class TestCors:
    @pytest.mark.asyncio
    async def test_preflight(self, client):
        response = await client.options(
            "/api/agent",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization,content-type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
