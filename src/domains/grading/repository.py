# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database access for the grading domain.

Grade rows are written with PostgreSQL INSERT ... ON CONFLICT DO UPDATE
against their natural unique keys, so repeated writes to one cell never
create duplicate rows. Publication is a single bulk UPDATE per table.
"""

import logging
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.infrastructure.database.models import (
    AcademicCycle,
    ClassSection,
    CompetencyGrade,
    Enrollment,
    GeneralGrade,
    GradeLevel,
    TechnicalGrade,
)
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class GradeRepository:
    """Queries and mutations used by the grade sheet services.

    The repository never commits on its own except through commit();
    transaction boundaries belong to the calling service.
    """

    def __init__(self, db: AsyncSession):
        self._db = db

    @property
    def session(self) -> AsyncSession:
        return self._db

    async def commit(self) -> None:
        await self._db.commit()

    async def rollback(self) -> None:
        await self._db.rollback()

    # =========================================================================
    # School structure
    # =========================================================================

    async def get_level(self, level_id: str, tenant_id: str) -> GradeLevel | None:
        """Get a grade level with its institution and cycle group, scoped to a tenant."""
        result = await self._db.execute(
            select(GradeLevel)
            .options(
                selectinload(GradeLevel.institution),
                selectinload(GradeLevel.cycle_group),
            )
            .where(
                GradeLevel.id == level_id,
                GradeLevel.institution_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_cycle(self, cycle_id: str, tenant_id: str) -> AcademicCycle | None:
        result = await self._db.execute(
            select(AcademicCycle).where(
                AcademicCycle.id == cycle_id,
                AcademicCycle.institution_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_class(self, class_id: str, tenant_id: str) -> ClassSection | None:
        """Get a class section whose grade level belongs to the tenant."""
        result = await self._db.execute(
            select(ClassSection)
            .join(GradeLevel, ClassSection.grade_level_id == GradeLevel.id)
            .options(
                selectinload(ClassSection.subject),
                selectinload(ClassSection.academic_cycle),
            )
            .where(
                ClassSection.id == class_id,
                GradeLevel.institution_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_level_classes(self, level_id: str, cycle_id: str) -> Sequence[ClassSection]:
        """Class sections of a level in a cycle with subject, teacher and roster."""
        result = await self._db.execute(
            select(ClassSection)
            .options(
                selectinload(ClassSection.subject),
                selectinload(ClassSection.teacher),
                selectinload(ClassSection.enrollments).selectinload(Enrollment.student),
            )
            .where(
                ClassSection.grade_level_id == level_id,
                ClassSection.academic_cycle_id == cycle_id,
            )
        )
        return result.scalars().all()

    async def has_active_enrollment(self, class_id: str, student_id: str) -> bool:
        result = await self._db.execute(
            select(Enrollment.id).where(
                Enrollment.class_id == class_id,
                Enrollment.student_id == student_id,
                Enrollment.is_active.is_(True),
            )
        )
        return result.first() is not None

    async def list_active_student_ids(self, class_id: str) -> list[str]:
        result = await self._db.execute(
            select(Enrollment.student_id).where(
                Enrollment.class_id == class_id,
                Enrollment.is_active.is_(True),
            )
        )
        return list(result.scalars().all())

    async def list_levels(
        self,
        tenant_id: str,
        teacher_id: str | None = None,
        coordinator_id: str | None = None,
    ) -> list[tuple[GradeLevel, int]]:
        """Grade levels with their class counts.

        Args:
            tenant_id: Institution ID.
            teacher_id: Restrict to levels where this teacher has a class.
            coordinator_id: Restrict to levels this user coordinates.

        Returns:
            (level, class_count) pairs ordered by grade number then name.
        """
        class_count = (
            select(func.count(ClassSection.id))
            .where(ClassSection.grade_level_id == GradeLevel.id)
            .correlate(GradeLevel)
            .scalar_subquery()
        )
        query = (
            select(GradeLevel, class_count.label("class_count"))
            .options(selectinload(GradeLevel.cycle_group))
            .where(GradeLevel.institution_id == tenant_id)
        )
        if teacher_id is not None:
            query = query.where(
                GradeLevel.id.in_(
                    select(ClassSection.grade_level_id).where(
                        ClassSection.teacher_id == teacher_id
                    )
                )
            )
        if coordinator_id is not None:
            query = query.where(GradeLevel.coordinator_id == coordinator_id)

        query = query.order_by(GradeLevel.grade_number.asc().nulls_last(), GradeLevel.name.asc())
        result = await self._db.execute(query)
        return [(level, count or 0) for level, count in result.all()]

    async def list_cycles(self, tenant_id: str) -> Sequence[AcademicCycle]:
        """Academic cycles, the active one first, then newest first."""
        result = await self._db.execute(
            select(AcademicCycle)
            .where(AcademicCycle.institution_id == tenant_id)
            .order_by(AcademicCycle.is_active.desc(), AcademicCycle.start_date.desc())
        )
        return result.scalars().all()

    # =========================================================================
    # Grade rows (read)
    # =========================================================================

    async def list_general_grades(
        self, class_ids: list[str], cycle_id: str
    ) -> Sequence[GeneralGrade]:
        if not class_ids:
            return []
        result = await self._db.execute(
            select(GeneralGrade).where(
                GeneralGrade.class_id.in_(class_ids),
                GeneralGrade.academic_cycle_id == cycle_id,
            )
        )
        return result.scalars().all()

    async def list_competency_grades(
        self, class_ids: list[str], cycle_id: str
    ) -> Sequence[CompetencyGrade]:
        if not class_ids:
            return []
        result = await self._db.execute(
            select(CompetencyGrade).where(
                CompetencyGrade.class_id.in_(class_ids),
                CompetencyGrade.academic_cycle_id == cycle_id,
            )
        )
        return result.scalars().all()

    async def list_technical_grades(self, class_ids: list[str]) -> Sequence[TechnicalGrade]:
        if not class_ids:
            return []
        result = await self._db.execute(
            select(TechnicalGrade).where(TechnicalGrade.class_id.in_(class_ids))
        )
        return result.scalars().all()

    # =========================================================================
    # Grade rows (write)
    # =========================================================================

    async def upsert_general(
        self,
        student_id: str,
        class_id: str,
        cycle_id: str,
        values: dict[str, Any],
    ) -> dict[str, Any]:
        """Insert or update the general grade row of a student in a class."""
        stmt = (
            pg_insert(GeneralGrade)
            .values(
                student_id=student_id,
                class_id=class_id,
                academic_cycle_id=cycle_id,
                **values,
            )
            .on_conflict_do_update(
                constraint="uq_general_grades_student_class_cycle",
                set_={**values, "updated_at": utc_now()},
            )
            .returning(*GeneralGrade.__table__.c)
        )
        result = await self._db.execute(stmt)
        return dict(result.mappings().one())

    async def upsert_competency(
        self,
        student_id: str,
        class_id: str,
        cycle_id: str,
        competency: str,
        values: dict[str, Any],
    ) -> dict[str, Any]:
        """Insert or update one competency row of a student in a class."""
        stmt = (
            pg_insert(CompetencyGrade)
            .values(
                student_id=student_id,
                class_id=class_id,
                academic_cycle_id=cycle_id,
                competency=competency,
                **values,
            )
            .on_conflict_do_update(
                constraint="uq_competency_grades_student_class_cycle_competency",
                set_={**values, "updated_at": utc_now()},
            )
            .returning(*CompetencyGrade.__table__.c)
        )
        result = await self._db.execute(stmt)
        return dict(result.mappings().one())

    async def upsert_technical(
        self,
        student_id: str,
        class_id: str,
        outcome_code: str,
        values: dict[str, Any],
    ) -> dict[str, Any]:
        """Insert or update one outcome row of a student in a class."""
        stmt = (
            pg_insert(TechnicalGrade)
            .values(
                student_id=student_id,
                class_id=class_id,
                outcome_code=outcome_code,
                **values,
            )
            .on_conflict_do_update(
                constraint="uq_technical_grades_student_class_outcome",
                set_={**values, "updated_at": utc_now()},
            )
            .returning(*TechnicalGrade.__table__.c)
        )
        result = await self._db.execute(stmt)
        return dict(result.mappings().one())

    async def delete_technical(self, student_id: str, class_id: str, outcome_code: str) -> int:
        result = await self._db.execute(
            delete(TechnicalGrade).where(
                TechnicalGrade.student_id == student_id,
                TechnicalGrade.class_id == class_id,
                TechnicalGrade.outcome_code == outcome_code,
            )
        )
        return result.rowcount or 0

    # =========================================================================
    # Publication
    # =========================================================================

    async def publish_general(
        self, class_id: str, cycle_id: str, publisher_id: str, published_at: datetime
    ) -> int:
        """Flip unpublished general rows of a class to published.

        Returns:
            Number of rows flipped.
        """
        result = await self._db.execute(
            update(GeneralGrade)
            .where(
                GeneralGrade.class_id == class_id,
                GeneralGrade.academic_cycle_id == cycle_id,
                GeneralGrade.published.is_(False),
            )
            .values(published=True, published_at=published_at, published_by=publisher_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def publish_competency(
        self, class_id: str, cycle_id: str, publisher_id: str, published_at: datetime
    ) -> int:
        """Flip unpublished competency rows of a class to published.

        Returns:
            Number of rows flipped.
        """
        result = await self._db.execute(
            update(CompetencyGrade)
            .where(
                CompetencyGrade.class_id == class_id,
                CompetencyGrade.academic_cycle_id == cycle_id,
                CompetencyGrade.published.is_(False),
            )
            .values(published=True, published_at=published_at, published_by=publisher_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
