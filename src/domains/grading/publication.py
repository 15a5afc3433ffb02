# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade publication workflow.

Publishing flips every draft general and competency row of a class in
one cycle to published. Published is terminal; there is no unpublish.
After the commit, the sheet cache is invalidated and actively enrolled
students are notified. Notification failures are logged and never undo
or fail the publication.
"""

import logging

from src.domains.grading.actor import Actor
from src.domains.grading.cache import SheetCache
from src.domains.grading.exceptions import CycleLockedError, ForbiddenError, NotFoundError
from src.domains.grading.repository import GradeRepository
from src.domains.grading.schemas import PublicationSummary
from src.infrastructure.database.models import ClassSection
from src.infrastructure.events import EventBus, EventTypes
from src.infrastructure.notifications import NotificationService
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

NOTIFICATION_TYPE = "grades_published"
NOTIFICATION_TITLE = "Calificaciones publicadas"


class PublicationWorkflow:
    """Moves a class's grades from draft to published."""

    def __init__(
        self,
        repository: GradeRepository,
        cache: SheetCache,
        notifications: NotificationService,
        event_bus: EventBus,
    ):
        self._repo = repository
        self._cache = cache
        self._notifications = notifications
        self._event_bus = event_bus

    async def publish(self, class_id: str, cycle_id: str, actor: Actor) -> PublicationSummary:
        """Publish all draft grades of a class in a cycle.

        Args:
            class_id: Class section ID.
            cycle_id: Academic cycle ID.
            actor: The user publishing.

        Returns:
            Counts of newly published general and competency rows.

        Raises:
            NotFoundError: Class or cycle not visible to the actor.
            CycleLockedError: The cycle is closed.
            ForbiddenError: Actor is not the class teacher, a coordinator or a director.
        """
        section = await self._repo.get_class(class_id, actor.tenant_id)
        if section is None:
            raise NotFoundError("Class", class_id)
        cycle = await self._repo.get_cycle(cycle_id, actor.tenant_id)
        if cycle is None:
            raise NotFoundError("Academic cycle", cycle_id)

        if cycle.is_closed:
            raise CycleLockedError(cycle.id, "closed")

        if not (section.teacher_id == actor.id or actor.is_coordinator or actor.is_director):
            raise ForbiddenError("Only the class teacher, a coordinator or a director can publish")

        published_at = utc_now()
        general_count = await self._repo.publish_general(class_id, cycle_id, actor.id, published_at)
        competency_count = await self._repo.publish_competency(
            class_id, cycle_id, actor.id, published_at
        )
        await self._repo.commit()

        await self._cache.invalidate(section.grade_level_id, cycle_id)

        summary = PublicationSummary(
            class_id=class_id,
            cycle_id=cycle_id,
            general_count=general_count,
            competency_count=competency_count,
            published_at=published_at,
        )
        logger.info(
            "Published class %s cycle %s by %s: general=%d competency=%d",
            class_id,
            cycle_id,
            actor.id,
            general_count,
            competency_count,
        )

        if summary.total > 0:
            await self._notify_students(section, summary, actor)
        return summary

    async def _notify_students(
        self,
        section: ClassSection,
        summary: PublicationSummary,
        actor: Actor,
    ) -> None:
        """Notify enrolled students; failures are logged and absorbed."""
        subject_name = section.subject.name if section.subject else "tu clase"
        message = (
            f"Se han publicado nuevas calificaciones en {subject_name}. Revisa tu boletín."
        )
        data = {"class_id": summary.class_id, "cycle_id": summary.cycle_id}

        try:
            student_ids = await self._repo.list_active_student_ids(section.id)
            await self._notifications.notify_users(
                self._repo.session,
                user_ids=student_ids,
                notification_type=NOTIFICATION_TYPE,
                title=NOTIFICATION_TITLE,
                message=message,
                data=data,
            )
            await self._event_bus.publish(
                EventTypes.Grades.PUBLISHED,
                {
                    **data,
                    "recipient_ids": student_ids,
                    "title": NOTIFICATION_TITLE,
                    "message": message,
                    "published_at": summary.published_at.isoformat(),
                },
                tenant_code=actor.tenant_id,
            )
        except Exception as e:
            logger.error(
                "Failed to notify students of publication for class %s: %s",
                section.id,
                str(e),
                exc_info=True,
            )
            await self._rollback_quietly()

    async def _rollback_quietly(self) -> None:
        try:
            await self._repo.rollback()
        except Exception as e:
            logger.error("Rollback after notification failure failed: %s", str(e))
