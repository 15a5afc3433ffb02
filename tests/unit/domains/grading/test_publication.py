# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the grade publication workflow."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.domains.grading.exceptions import CycleLockedError, ForbiddenError, NotFoundError
from src.domains.grading.publication import (
    NOTIFICATION_TITLE,
    NOTIFICATION_TYPE,
    PublicationWorkflow,
)
from src.infrastructure.events import EventBus, EventTypes
from src.infrastructure.notifications import NotificationDeliveryError

LEVEL_ID = "level-4s"
CYCLE_ID = "cycle-2025"
MATH_CLASS_ID = "class-math"
LANG_CLASS_ID = "class-lang"
TEACHER_ID = "teacher-ana"


@pytest.fixture
def cache():
    cache = MagicMock()
    cache.invalidate = AsyncMock(return_value=True)
    return cache


@pytest.fixture
def notifications():
    notifications = MagicMock()
    notifications.notify_users = AsyncMock()
    return notifications


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def workflow(repository, cache, notifications, event_bus) -> PublicationWorkflow:
    return PublicationWorkflow(repository, cache, notifications, event_bus)


@pytest.fixture
def teacher(make_actor):
    return make_actor(user_id=TEACHER_ID, roles=("teacher",))


async def _seed_drafts(repository, count: int) -> None:
    """Create draft rows for the math class: general first, then competencies."""
    students = ["student-1", "student-2"]
    for i in range(count):
        student = students[i % 2]
        if i < 2:
            await repository.upsert_general(student, MATH_CLASS_ID, CYCLE_ID, {"p1": 80})
        else:
            competency = ["COMUNICATIVA", "LOGICO", "CIENTIFICO", "ETICO", "DESARROLLO"][
                (i - 2) // 2
            ]
            await repository.upsert_competency(
                student, MATH_CLASS_ID, CYCLE_ID, competency, {"p1": 80}
            )


class TestPublishGuards:
    """Tests for publication guards."""

    @pytest.mark.asyncio
    async def test_unknown_class(self, workflow, teacher):
        with pytest.raises(NotFoundError):
            await workflow.publish("class-missing", CYCLE_ID, teacher)

    @pytest.mark.asyncio
    async def test_unknown_cycle(self, workflow, teacher):
        with pytest.raises(NotFoundError) as exc_info:
            await workflow.publish(MATH_CLASS_ID, "cycle-missing", teacher)

        assert exc_info.value.resource == "Academic cycle"

    @pytest.mark.asyncio
    async def test_closed_cycle(self, workflow, teacher, school):
        school.cycle.is_closed = True

        with pytest.raises(CycleLockedError):
            await workflow.publish(MATH_CLASS_ID, CYCLE_ID, teacher)

    @pytest.mark.asyncio
    async def test_inactive_open_cycle_can_be_published(self, workflow, teacher, school, repository):
        school.cycle.is_active = False
        await _seed_drafts(repository, 1)

        summary = await workflow.publish(MATH_CLASS_ID, CYCLE_ID, teacher)

        assert summary.general_count == 1

    @pytest.mark.asyncio
    async def test_other_teacher_forbidden(self, workflow, teacher):
        with pytest.raises(ForbiddenError):
            await workflow.publish(LANG_CLASS_ID, CYCLE_ID, teacher)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", ["coordinator", "academic_coordinator", "director"])
    async def test_staff_roles_allowed(self, workflow, make_actor, role):
        actor = make_actor(user_id="staff-1", roles=(role,))

        summary = await workflow.publish(LANG_CLASS_ID, CYCLE_ID, actor)

        assert summary.total == 0


class TestPublish:
    """Tests for the publication itself."""

    @pytest.mark.asyncio
    async def test_publishes_drafts_then_nothing(self, workflow, teacher, repository):
        await _seed_drafts(repository, 12)

        first = await workflow.publish(MATH_CLASS_ID, CYCLE_ID, teacher)
        second = await workflow.publish(MATH_CLASS_ID, CYCLE_ID, teacher)

        assert first.general_count == 2
        assert first.competency_count == 10
        assert first.total == 12
        assert second.total == 0
        assert all(row.published for row in repository.general.values())
        assert all(row.published_by == TEACHER_ID for row in repository.competency.values())

    @pytest.mark.asyncio
    async def test_already_published_rows_are_skipped(self, workflow, teacher, repository):
        for n in range(30):
            await repository.upsert_general(f"student-{n}", MATH_CLASS_ID, CYCLE_ID, {"p1": 75})
        earlier = list(repository.general.values())[:18]
        for row in earlier:
            row.published = True
            row.published_by = "director-1"

        first = await workflow.publish(MATH_CLASS_ID, CYCLE_ID, teacher)
        second = await workflow.publish(MATH_CLASS_ID, CYCLE_ID, teacher)

        assert first.general_count == 12
        assert first.competency_count == 0
        assert second.total == 0
        assert all(row.published for row in repository.general.values())
        assert all(row.published_by == "director-1" for row in earlier)

    @pytest.mark.asyncio
    async def test_other_classes_untouched(self, workflow, teacher, repository):
        await repository.upsert_general("student-1", LANG_CLASS_ID, CYCLE_ID, {"p1": 70})

        await workflow.publish(MATH_CLASS_ID, CYCLE_ID, teacher)

        assert repository.general[("student-1", LANG_CLASS_ID, CYCLE_ID)].published is False

    @pytest.mark.asyncio
    async def test_commits_and_invalidates(self, workflow, teacher, repository, cache):
        await _seed_drafts(repository, 2)

        await workflow.publish(MATH_CLASS_ID, CYCLE_ID, teacher)

        assert repository.commits == 1
        cache.invalidate.assert_awaited_once_with(LEVEL_ID, CYCLE_ID)

    @pytest.mark.asyncio
    async def test_notifies_active_students(
        self, workflow, teacher, repository, notifications, event_bus
    ):
        events = []

        async def capture(event):
            events.append(event)

        event_bus.subscribe(EventTypes.Grades.PUBLISHED, capture)
        await _seed_drafts(repository, 2)

        summary = await workflow.publish(MATH_CLASS_ID, CYCLE_ID, teacher)

        notifications.notify_users.assert_awaited_once()
        kwargs = notifications.notify_users.await_args.kwargs
        assert kwargs["user_ids"] == ["student-1", "student-2"]
        assert kwargs["notification_type"] == NOTIFICATION_TYPE
        assert kwargs["title"] == NOTIFICATION_TITLE
        assert "Matemática" in kwargs["message"]
        assert kwargs["data"] == {"class_id": MATH_CLASS_ID, "cycle_id": CYCLE_ID}

        assert len(events) == 1
        assert events[0].tenant_code == teacher.tenant_id
        assert events[0].payload["recipient_ids"] == ["student-1", "student-2"]
        assert events[0].payload["published_at"] == summary.published_at.isoformat()

    @pytest.mark.asyncio
    async def test_no_notification_when_nothing_published(self, workflow, teacher, notifications):
        summary = await workflow.publish(MATH_CLASS_ID, CYCLE_ID, teacher)

        assert summary.total == 0
        notifications.notify_users.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_publication(
        self, workflow, teacher, repository, notifications
    ):
        notifications.notify_users.side_effect = NotificationDeliveryError("inbox unavailable")
        await _seed_drafts(repository, 2)

        summary = await workflow.publish(MATH_CLASS_ID, CYCLE_ID, teacher)

        assert summary.general_count == 2
        assert all(row.published for row in repository.general.values())
        assert repository.rollbacks == 1
