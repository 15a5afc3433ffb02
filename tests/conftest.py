# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.domains.grading import Actor
from src.infrastructure.events import reset_event_bus


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_environment() -> dict[str, str]:
    """Provide test environment variables.

    Returns:
        Dictionary of environment variables for testing.
    """
    return {
        "ENVIRONMENT": "development",
        "DEBUG": "true",
        "LOG_LEVEL": "DEBUG",
        "DATABASE_HOST": "localhost",
        "DATABASE_PORT": "5432",
        "DATABASE_USER": "sabana",
        "DATABASE_PASSWORD": "sabana_password",
        "REDIS_HOST": "localhost",
        "REDIS_PORT": "6379",
        "GRADE_SHEET_CACHE_TTL_SECONDS": "3600",
    }


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


@pytest.fixture(autouse=True)
def _fresh_event_bus():
    """Give every test its own event bus singleton."""
    reset_event_bus()
    yield
    reset_event_bus()


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_tenant_id() -> str:
    """Provide a sample institution ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def sample_teacher_id() -> str:
    """Provide a sample teacher ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440010"


@pytest.fixture
def make_actor(sample_tenant_id: str) -> Callable[..., Actor]:
    """Factory for actors in the sample institution."""

    def _make(
        user_id: str = "550e8400-e29b-41d4-a716-446655440099",
        roles: tuple[str, ...] = ("teacher",),
        tenant_id: str | None = None,
    ) -> Actor:
        return Actor.build(id=user_id, tenant_id=tenant_id or sample_tenant_id, roles=roles)

    return _make


@pytest.fixture
def fake_redis() -> MagicMock:
    """Dict-backed stand-in for RedisClient.

    Values go through a JSON round trip like the real client. The
    backing dict is exposed as `store`.
    """
    store: dict[str, Any] = {}

    async def _set(key: str, value: Any, expire_seconds: int | None = None) -> None:
        store[key] = json.loads(json.dumps(value))

    async def _get(key: str) -> Any:
        return store.get(key)

    async def _delete(key: str) -> bool:
        return store.pop(key, None) is not None

    async def _incr(key: str) -> int:
        store[key] = int(store.get(key) or 0) + 1
        return store[key]

    async def _set_if_counter(
        key: str,
        value: Any,
        counter_key: str,
        expected: int,
        expire_seconds: int | None = None,
    ) -> bool:
        if int(store.get(counter_key) or 0) != expected:
            return False
        await _set(key, value, expire_seconds)
        return True

    redis = MagicMock()
    redis.get = AsyncMock(side_effect=_get)
    redis.delete = AsyncMock(side_effect=_delete)
    redis.incr = AsyncMock(side_effect=_incr)
    redis.set_if_counter = AsyncMock(side_effect=_set_if_counter)
    redis.store = store
    return redis
