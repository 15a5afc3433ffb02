# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for health check endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.routes import health
from src.infrastructure.cache import RedisError


@pytest.fixture
def client():
    """Create test client."""
    app = FastAPI()
    app.include_router(health.router)
    return TestClient(app)


def _redis(ping: bool) -> MagicMock:
    redis = MagicMock()
    redis.ping = AsyncMock(return_value=ping)
    return redis


class TestHealth:
    """Tests for /health."""

    def test_healthy(self, client):
        with (
            patch.object(health, "check_database_connection", AsyncMock(return_value=True)),
            patch.object(health, "get_redis", return_value=_redis(True)),
        ):
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_redis_down_is_degraded(self, client):
        with (
            patch.object(health, "check_database_connection", AsyncMock(return_value=True)),
            patch.object(health, "get_redis", side_effect=RedisError("not initialized")),
        ):
            response = client.get("/health")

        body = response.json()
        assert body["status"] == "degraded"
        assert body["components"]["redis"]["status"] == "unavailable"

    def test_database_down_is_unhealthy(self, client):
        with (
            patch.object(health, "check_database_connection", AsyncMock(return_value=False)),
            patch.object(health, "get_redis", return_value=_redis(True)),
        ):
            response = client.get("/health")

        assert response.json()["status"] == "unhealthy"


class TestProbes:
    """Tests for liveness and readiness probes."""

    def test_liveness(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_readiness_ignores_redis(self, client):
        with patch.object(health, "check_database_connection", AsyncMock(return_value=True)):
            response = client.get("/health/ready")

        assert response.json() == {"ready": True, "checks": {"database": "healthy"}}
