# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fixtures for grading domain tests.

Provides a small in-memory school (one level, one cycle, two subjects)
and a repository double that behaves like GradeRepository over it.
"""

from datetime import date, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest

LEVEL_ID = "level-4s"
CYCLE_ID = "cycle-2025"
MATH_CLASS_ID = "class-math"
LANG_CLASS_ID = "class-lang"
TEACHER_ID = "teacher-ana"
OTHER_TEACHER_ID = "teacher-luis"

_GENERAL_COLUMNS = (
    "p1", "p2", "p3", "p4", "rp1", "rp2", "rp3", "rp4",
    "cpc_score", "cpex_score", "promoted_grade", "situation", "observations",
)
_COMPETENCY_COLUMNS = ("p1", "p2", "p3", "p4", "rp1", "rp2", "rp3", "rp4")


def _user(user_id: str, first: str, last: str, second_last: str | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        id=user_id,
        first_name=first,
        middle_name=None,
        last_name=last,
        second_last_name=second_last,
        photo_url=None,
        display_name=f"{first} {last}",
    )


class InMemoryGradeRepository:
    """Repository double keeping grade rows in dictionaries."""

    def __init__(self, school: SimpleNamespace):
        self.school = school
        self.session = MagicMock(name="session")
        self.general: dict[tuple[str, str, str], SimpleNamespace] = {}
        self.competency: dict[tuple[str, str, str, str], SimpleNamespace] = {}
        self.technical: dict[tuple[str, str, str], SimpleNamespace] = {}
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    async def get_level(self, level_id: str, tenant_id: str):
        level = self.school.level
        if level.id == level_id and level.institution_id == tenant_id:
            return level
        return None

    async def get_cycle(self, cycle_id: str, tenant_id: str):
        cycle = self.school.cycle
        if cycle.id == cycle_id and cycle.institution_id == tenant_id:
            return cycle
        return None

    async def get_class(self, class_id: str, tenant_id: str):
        section = self.school.classes.get(class_id)
        if section is None or section.grade_level.institution_id != tenant_id:
            return None
        return section

    async def list_level_classes(self, level_id: str, cycle_id: str):
        return [
            c for c in self.school.classes.values()
            if c.grade_level_id == level_id and c.academic_cycle_id == cycle_id
        ]

    async def has_active_enrollment(self, class_id: str, student_id: str) -> bool:
        section = self.school.classes.get(class_id)
        return section is not None and any(
            e.student_id == student_id and e.is_active for e in section.enrollments
        )

    async def list_active_student_ids(self, class_id: str) -> list[str]:
        return [e.student_id for e in self.school.classes[class_id].enrollments if e.is_active]

    async def list_levels(
        self, tenant_id: str, teacher_id: str | None = None, coordinator_id: str | None = None
    ):
        level = self.school.level
        if level.institution_id != tenant_id:
            return []
        classes = [c for c in self.school.classes.values() if c.grade_level_id == level.id]
        if coordinator_id is not None and level.coordinator_id != coordinator_id:
            return []
        if teacher_id is not None and not any(c.teacher_id == teacher_id for c in classes):
            return []
        return [(level, len(classes))]

    async def list_cycles(self, tenant_id: str):
        cycle = self.school.cycle
        return [cycle] if cycle.institution_id == tenant_id else []

    async def list_general_grades(self, class_ids: list[str], cycle_id: str):
        return [
            r for r in self.general.values()
            if r.class_id in class_ids and r.academic_cycle_id == cycle_id
        ]

    async def list_competency_grades(self, class_ids: list[str], cycle_id: str):
        return [
            r for r in self.competency.values()
            if r.class_id in class_ids and r.academic_cycle_id == cycle_id
        ]

    async def list_technical_grades(self, class_ids: list[str]):
        return [r for r in self.technical.values() if r.class_id in class_ids]

    async def upsert_general(
        self, student_id: str, class_id: str, cycle_id: str, values: dict[str, Any]
    ) -> dict[str, Any]:
        key = (student_id, class_id, cycle_id)
        row = self.general.get(key)
        if row is None:
            row = SimpleNamespace(
                student_id=student_id,
                class_id=class_id,
                academic_cycle_id=cycle_id,
                published=False,
                **{c: None for c in _GENERAL_COLUMNS},
            )
            self.general[key] = row
        for column, value in values.items():
            setattr(row, column, value)
        return dict(vars(row))

    async def upsert_competency(
        self,
        student_id: str,
        class_id: str,
        cycle_id: str,
        competency: str,
        values: dict[str, Any],
    ) -> dict[str, Any]:
        key = (student_id, class_id, cycle_id, competency)
        row = self.competency.get(key)
        if row is None:
            row = SimpleNamespace(
                student_id=student_id,
                class_id=class_id,
                academic_cycle_id=cycle_id,
                competency=competency,
                published=False,
                **{c: None for c in _COMPETENCY_COLUMNS},
            )
            self.competency[key] = row
        for column, value in values.items():
            setattr(row, column, value)
        return dict(vars(row))

    async def upsert_technical(
        self, student_id: str, class_id: str, outcome_code: str, values: dict[str, Any]
    ) -> dict[str, Any]:
        key = (student_id, class_id, outcome_code)
        row = self.technical.get(key)
        if row is None:
            row = SimpleNamespace(
                student_id=student_id,
                class_id=class_id,
                outcome_code=outcome_code,
                score=None,
                rp1=None,
                rp2=None,
            )
            self.technical[key] = row
        for column, value in values.items():
            setattr(row, column, value)
        return dict(vars(row))

    async def delete_technical(self, student_id: str, class_id: str, outcome_code: str) -> int:
        return 1 if self.technical.pop((student_id, class_id, outcome_code), None) else 0

    async def publish_general(
        self, class_id: str, cycle_id: str, published_by: str, published_at: datetime
    ) -> int:
        return self._publish(self.general.values(), class_id, cycle_id, published_by, published_at)

    async def publish_competency(
        self, class_id: str, cycle_id: str, published_by: str, published_at: datetime
    ) -> int:
        return self._publish(
            self.competency.values(), class_id, cycle_id, published_by, published_at
        )

    @staticmethod
    def _publish(rows, class_id, cycle_id, published_by, published_at) -> int:
        count = 0
        for row in rows:
            if row.class_id == class_id and row.academic_cycle_id == cycle_id and not row.published:
                row.published = True
                row.published_by = published_by
                row.published_at = published_at
                count += 1
        return count


@pytest.fixture
def school(sample_tenant_id: str) -> SimpleNamespace:
    """A secondary level with math and language classes in an open cycle."""
    institution = SimpleNamespace(
        id=sample_tenant_id, name="Liceo Duarte", country="DO", national_system="DO"
    )
    level = SimpleNamespace(
        id=LEVEL_ID,
        institution_id=sample_tenant_id,
        name="4to Secundaria",
        grade_number=4,
        sheet_format="SECUNDARIA_DO",
        cycle_group_id=None,
        coordinator_id="coord-1",
        cycle_group=None,
        institution=institution,
    )
    cycle = SimpleNamespace(
        id=CYCLE_ID,
        institution_id=sample_tenant_id,
        name="2025-2026",
        start_date=date(2025, 8, 18),
        end_date=date(2026, 6, 19),
        is_active=True,
        is_closed=False,
    )
    teacher = _user(TEACHER_ID, "Ana", "Pérez")
    other_teacher = _user(OTHER_TEACHER_ID, "Luis", "Santos")
    students = {
        "student-1": _user("student-1", "Juan", "Martínez", "Gómez"),
        "student-2": _user("student-2", "Ana", "Álvarez"),
        "student-3": _user("student-3", "Pedro", "Zapata"),
    }
    math = SimpleNamespace(
        id="subject-math", name="Matemática", code="MAT", is_official=True,
        display_order=2, kind="GENERAL",
    )
    lang = SimpleNamespace(
        id="subject-lang", name="Lengua Española", code="LEN", is_official=True,
        display_order=1, kind="GENERAL",
    )

    def section(class_id, subject, owner, enrolled):
        return SimpleNamespace(
            id=class_id,
            subject_id=subject.id,
            subject=subject,
            grade_level_id=level.id,
            grade_level=level,
            academic_cycle_id=cycle.id,
            academic_cycle=cycle,
            teacher_id=owner.id,
            teacher=owner,
            enrollments=[
                SimpleNamespace(student_id=sid, student=students[sid], is_active=active)
                for sid, active in enrolled
            ],
        )

    classes = {
        MATH_CLASS_ID: section(
            MATH_CLASS_ID,
            math,
            teacher,
            [("student-1", True), ("student-2", True), ("student-3", False)],
        ),
        LANG_CLASS_ID: section(
            LANG_CLASS_ID, lang, other_teacher, [("student-1", True), ("student-2", True)]
        ),
    }
    return SimpleNamespace(
        institution=institution,
        level=level,
        cycle=cycle,
        classes=classes,
        students=students,
        subjects={"math": math, "lang": lang},
    )


@pytest.fixture
def repository(school: SimpleNamespace) -> InMemoryGradeRepository:
    return InMemoryGradeRepository(school)
