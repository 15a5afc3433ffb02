# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade tables owned by the grade sheet engine.

Only raw entered scores, remarks and the publication flag are persisted.
Period averages, final grades and completiva/extraordinaria totals are
derived on every read by src.domains.grading.aggregator.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, uuid_pk


class PeriodScoreColumns:
    """Regular (p1..p4) and remediation (rp1..rp4) score columns."""

    p1: Mapped[float | None] = mapped_column(nullable=True)
    p2: Mapped[float | None] = mapped_column(nullable=True)
    p3: Mapped[float | None] = mapped_column(nullable=True)
    p4: Mapped[float | None] = mapped_column(nullable=True)
    rp1: Mapped[float | None] = mapped_column(nullable=True)
    rp2: Mapped[float | None] = mapped_column(nullable=True)
    rp3: Mapped[float | None] = mapped_column(nullable=True)
    rp4: Mapped[float | None] = mapped_column(nullable=True)


class PublicationColumns:
    """Draft/published state. Published is terminal."""

    published: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    published_by: Mapped[str | None] = mapped_column(UUID(as_uuid=False), nullable=True)


class GeneralGrade(Base, TimestampMixin, PeriodScoreColumns, PublicationColumns):
    """Per (student, class, cycle) subject grade row.

    Attributes:
        cpc_score: Completiva makeup exam score (DO only).
        cpex_score: Extraordinaria makeup exam score (DO only).
        promoted_grade: Value frozen by administrative finalization, if any.
        situation: Situation frozen by administrative finalization, if any.
        observations: Teacher remarks.
    """

    __tablename__ = "general_grades"
    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "class_id",
            "academic_cycle_id",
            name="uq_general_grades_student_class_cycle",
        ),
    )

    id: Mapped[str] = uuid_pk()
    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id"), nullable=False, index=True
    )
    class_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("class_sections.id"), nullable=False, index=True
    )
    academic_cycle_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("academic_cycles.id"), nullable=False
    )
    cpc_score: Mapped[float | None] = mapped_column(nullable=True)
    cpex_score: Mapped[float | None] = mapped_column(nullable=True)
    promoted_grade: Mapped[float | None] = mapped_column(nullable=True)
    situation: Mapped[str | None] = mapped_column(String(20), nullable=True)
    observations: Mapped[str | None] = mapped_column(Text, nullable=True)


class CompetencyGrade(Base, TimestampMixin, PeriodScoreColumns, PublicationColumns):
    """Per (student, class, cycle, competency) grade row."""

    __tablename__ = "competency_grades"
    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "class_id",
            "academic_cycle_id",
            "competency",
            name="uq_competency_grades_student_class_cycle_competency",
        ),
    )

    id: Mapped[str] = uuid_pk()
    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id"), nullable=False, index=True
    )
    class_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("class_sections.id"), nullable=False, index=True
    )
    academic_cycle_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("academic_cycles.id"), nullable=False
    )
    competency: Mapped[str] = mapped_column(String(30), nullable=False)


class TechnicalGrade(Base, TimestampMixin):
    """Per (student, class, outcome) vocational grade row.

    Attributes:
        outcome_code: RA1..RA10.
        score: Original attempt.
        rp1: First remediation attempt.
        rp2: Second remediation attempt.
    """

    __tablename__ = "technical_grades"
    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "class_id",
            "outcome_code",
            name="uq_technical_grades_student_class_outcome",
        ),
    )

    id: Mapped[str] = uuid_pk()
    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id"), nullable=False, index=True
    )
    class_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("class_sections.id"), nullable=False, index=True
    )
    outcome_code: Mapped[str] = mapped_column(String(10), nullable=False)
    score: Mapped[float | None] = mapped_column(nullable=True)
    rp1: Mapped[float | None] = mapped_column(nullable=True)
    rp2: Mapped[float | None] = mapped_column(nullable=True)
