# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade sheet service.

Entry point for the grade sheet engine. Wires the repository, cache,
assembler, writer and publication workflow for one database session.

Example:
    service = GradeSheetService(db, redis=get_redis())
    sheet = await service.get_sheet(level_id, cycle_id, tenant_id, actor)
    await service.write_grade(class_id, student_id, "p2", 85, actor)
    summary = await service.publish_class(class_id, cycle_id, actor)
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import GradeSheetSettings
from src.domains.grading.actor import Actor
from src.domains.grading.assembler import SheetAssembler
from src.domains.grading.cache import SheetCache
from src.domains.grading.exceptions import ForbiddenError, NotFoundError
from src.domains.grading.fields import GradeField
from src.domains.grading.publication import PublicationWorkflow
from src.domains.grading.repository import GradeRepository
from src.domains.grading.schemas import (
    CycleSummary,
    GradeWriteResult,
    LevelSummary,
    PublicationSummary,
    Sheet,
)
from src.domains.grading.writer import GradeWriter
from src.infrastructure.cache import RedisClient
from src.infrastructure.events import EventBus, get_event_bus
from src.infrastructure.notifications import NotificationService

logger = logging.getLogger(__name__)


class GradeSheetService:
    """Service for viewing, editing and publishing grade sheets.

    Attributes:
        repository: Database access for this session.
        cache: Fail-open sheet cache.
    """

    def __init__(
        self,
        db: AsyncSession,
        redis: RedisClient | None = None,
        settings: GradeSheetSettings | None = None,
        notifications: NotificationService | None = None,
        event_bus: EventBus | None = None,
    ):
        """Initialize the grade sheet service.

        Args:
            db: Async database session.
            redis: Redis client for the sheet cache. Caching is disabled if None.
            settings: Grade sheet settings.
            notifications: Notification service for publication notices.
            event_bus: Event bus for real-time fan-out.
        """
        settings = settings or GradeSheetSettings()
        self.repository = GradeRepository(db)
        self.cache = SheetCache(
            redis,
            ttl_seconds=settings.cache_ttl_seconds,
            timeout_seconds=settings.cache_timeout_seconds,
        )
        self._assembler = SheetAssembler(self.repository)
        self._writer = GradeWriter(self.repository, self.cache)
        self._publication = PublicationWorkflow(
            self.repository,
            self.cache,
            notifications or NotificationService(settings.notification_expiration_days),
            event_bus or get_event_bus(),
        )

    async def get_sheet(
        self,
        level_id: str,
        cycle_id: str,
        tenant_id: str,
        actor: Actor,
    ) -> Sheet:
        """Get the grade sheet of a level for a cycle.

        Serves from the cache when possible; on a miss the sheet is
        assembled from the database and cached, unless a write
        invalidated it while it was being assembled.

        Raises:
            NotFoundError: Level or cycle not visible to the tenant.
            ForbiddenError: Actor is not teaching or administrative staff.
        """
        if actor.tenant_id != tenant_id:
            raise NotFoundError("Grade level", level_id)
        if not actor.is_staff:
            raise ForbiddenError("Only staff can view grade sheets")

        level, cycle = await self._assembler.load_scope(level_id, cycle_id, tenant_id)

        cached = await self.cache.get(level_id, cycle_id)
        if cached is not None:
            logger.debug("Sheet cache hit for level %s cycle %s", level_id, cycle_id)
            return cached

        # Read before the build so a write landing mid-build voids the put
        generation = await self.cache.generation(level_id, cycle_id)
        sheet = await self._assembler.build(level, cycle)
        await self.cache.put(level_id, cycle_id, sheet, generation)
        return sheet

    async def write_grade(
        self,
        class_id: str,
        student_id: str,
        field: str | GradeField,
        value: Any,
        actor: Actor,
        competency_code: str | None = None,
    ) -> GradeWriteResult:
        """Write one grade cell. See GradeWriter.write."""
        return await self._writer.write(
            class_id, student_id, field, value, actor, competency_code=competency_code
        )

    async def publish_class(
        self, class_id: str, cycle_id: str, actor: Actor
    ) -> PublicationSummary:
        """Publish a class's draft grades. See PublicationWorkflow.publish."""
        return await self._publication.publish(class_id, cycle_id, actor)

    async def list_levels(self, tenant_id: str, actor: Actor) -> list[LevelSummary]:
        """Grade levels the actor can open a sheet for.

        Directors see every level, coordinators the levels they
        coordinate, teachers the levels where they teach a class.
        """
        teacher_id = None
        coordinator_id = None
        if not actor.is_director:
            if actor.is_coordinator:
                coordinator_id = actor.id
            elif actor.is_teacher:
                teacher_id = actor.id
            else:
                raise ForbiddenError("Only staff can view grade sheets")

        rows = await self.repository.list_levels(
            tenant_id, teacher_id=teacher_id, coordinator_id=coordinator_id
        )
        return [
            LevelSummary(
                id=level.id,
                name=level.name,
                grade_number=level.grade_number,
                sheet_format=level.sheet_format,
                cycle_group_id=level.cycle_group_id,
                cycle_group_name=level.cycle_group.name if level.cycle_group else None,
                class_count=class_count,
            )
            for level, class_count in rows
        ]

    async def list_cycles(self, tenant_id: str) -> list[CycleSummary]:
        """Academic cycles of the institution, active first."""
        cycles = await self.repository.list_cycles(tenant_id)
        return [
            CycleSummary(
                id=c.id,
                name=c.name,
                start_date=c.start_date,
                end_date=c.end_date,
                is_active=c.is_active,
                is_closed=c.is_closed,
            )
            for c in cycles
        ]
