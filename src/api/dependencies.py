# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get the authenticated actor
- Get service instances

Example:
    @router.get("/levels")
    async def list_levels(
        actor: Actor = Depends(require_actor),
        service: GradeSheetService = Depends(get_grade_sheet_service),
    ):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.actor import get_actor_from_request
from src.core.config import get_settings
from src.domains.grading import Actor, GradeSheetService
from src.infrastructure.cache import RedisClient, RedisError, get_redis
from src.infrastructure.database import get_session
from src.infrastructure.events import get_event_bus
from src.infrastructure.notifications import get_notification_service

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Yields:
        AsyncSession for the school database.
    """
    async with get_session() as session:
        yield session


def require_actor(request: Request) -> Actor:
    """Require an authenticated actor.

    Args:
        request: HTTP request.

    Returns:
        Actor set by the actor middleware.

    Raises:
        HTTPException: If not authenticated.
    """
    actor = get_actor_from_request(request)
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return actor


def get_optional_redis() -> RedisClient | None:
    """Get the Redis client, or None when the cache is unavailable."""
    try:
        return get_redis()
    except RedisError:
        logger.warning("Redis not initialized, grade sheet cache disabled")
        return None


async def get_grade_sheet_service(
    db: AsyncSession = Depends(get_db),
    redis: RedisClient | None = Depends(get_optional_redis),
) -> GradeSheetService:
    """Get grade sheet service instance.

    Args:
        db: Database session.
        redis: Redis client for the sheet cache.

    Returns:
        Configured GradeSheetService instance.
    """
    settings = get_settings()
    return GradeSheetService(
        db,
        redis=redis,
        settings=settings.grade_sheet,
        notifications=get_notification_service(
            settings.grade_sheet.notification_expiration_days
        ),
        event_bus=get_event_bus(),
    )


# Type aliases for cleaner dependency injection
DB = Annotated[AsyncSession, Depends(get_db)]
CurrentActor = Annotated[Actor, Depends(require_actor)]
GradeSheets = Annotated[GradeSheetService, Depends(get_grade_sheet_service)]
