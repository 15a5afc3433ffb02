# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

The cache is optional for correctness, so a Redis outage degrades the
status instead of failing readiness.
"""

import logging
import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src.core.config import get_settings
from src.infrastructure.cache import RedisError, get_redis
from src.infrastructure.database import check_database_connection
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    components: dict[str, ComponentHealth] = Field(default_factory=dict)


class ReadinessResponse(BaseModel):
    """Readiness check response model."""
    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_database() -> ComponentHealth:
    """Check PostgreSQL database connection."""
    start = time.time()
    healthy = await check_database_connection()
    latency = (time.time() - start) * 1000
    if healthy:
        return ComponentHealth(status="healthy", latency_ms=round(latency, 2))
    return ComponentHealth(status="unhealthy", message="Database unreachable")


async def check_redis() -> ComponentHealth:
    """Check Redis connection."""
    try:
        client = get_redis()
    except RedisError as e:
        return ComponentHealth(status="unavailable", message=str(e))
    start = time.time()
    healthy = await client.ping()
    latency = (time.time() - start) * 1000
    if healthy:
        return ComponentHealth(status="healthy", latency_ms=round(latency, 2))
    return ComponentHealth(status="unhealthy", message="Redis ping failed")


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Report component health."""
    database = await check_database()
    redis = await check_redis()

    if database.status != "healthy":
        overall = "unhealthy"
    elif redis.status != "healthy":
        overall = "degraded"
    else:
        overall = "healthy"

    return HealthResponse(
        status=overall,
        timestamp=utc_now(),
        environment=get_settings().environment,
        uptime_seconds=int(time.time() - _server_start_time),
        components={"database": database, "redis": redis},
    )


@router.get("/health/live")
async def liveness() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "alive"}


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness() -> ReadinessResponse:
    """Readiness probe. Only the database is required."""
    database = await check_database()
    return ReadinessResponse(
        ready=database.status == "healthy",
        checks={"database": database.status},
    )
