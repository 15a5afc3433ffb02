# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School structure models read by the grade sheet engine.

Institutions, grade levels, academic cycles, subjects, class sections and
enrollments are maintained by the tenant and enrollment collaborators; the
grade sheet engine only reads them. An institution is the tenant boundary.
"""

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, uuid_pk

if TYPE_CHECKING:
    from src.infrastructure.database.models.user import User


class Institution(Base, TimestampMixin):
    """A school institution (tenant).

    Attributes:
        national_system: "DO" (MINERD) or "HT" (MENFP).
    """

    __tablename__ = "institutions"

    id: Mapped[str] = uuid_pk()
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    country: Mapped[str] = mapped_column(String(2), nullable=False, default="DO")
    national_system: Mapped[str] = mapped_column(String(10), nullable=False, default="DO")


class EducationalCycleGroup(Base, TimestampMixin):
    """Grouping of grade levels (e.g. "Primer Ciclo", "Fondamental")."""

    __tablename__ = "educational_cycle_groups"

    id: Mapped[str] = uuid_pk()
    institution_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("institutions.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)


class GradeLevel(Base, TimestampMixin):
    """A grade level with its configured sheet format.

    Levels created before the format column existed carry the migration
    default (SECUNDARIA_DO); see the format resolver.
    """

    __tablename__ = "grade_levels"

    id: Mapped[str] = uuid_pk()
    institution_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("institutions.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    grade_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sheet_format: Mapped[str] = mapped_column(
        String(30), nullable=False, default="SECUNDARIA_DO", server_default="SECUNDARIA_DO"
    )
    period_count: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    cycle_group_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("educational_cycle_groups.id"), nullable=True
    )
    coordinator_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id"), nullable=True, index=True
    )

    institution: Mapped[Institution] = relationship("Institution")
    cycle_group: Mapped[EducationalCycleGroup | None] = relationship("EducationalCycleGroup")


class AcademicCycle(Base, TimestampMixin):
    """A school year. Closing is terminal for grade entry."""

    __tablename__ = "academic_cycles"

    id: Mapped[str] = uuid_pk()
    institution_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("institutions.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Subject(Base, TimestampMixin):
    """A subject taught in the institution.

    Attributes:
        kind: "GENERAL" or "TECHNICAL" (vocational module graded by outcomes).
    """

    __tablename__ = "subjects"

    id: Mapped[str] = uuid_pk()
    institution_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("institutions.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    code: Mapped[str | None] = mapped_column(String(30), nullable=True)
    is_official: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    kind: Mapped[str] = mapped_column(String(20), nullable=False, default="GENERAL")


class ClassSection(Base, TimestampMixin):
    """One subject taught to one grade level in one cycle by one teacher."""

    __tablename__ = "class_sections"
    __table_args__ = (
        UniqueConstraint(
            "subject_id",
            "grade_level_id",
            "academic_cycle_id",
            "section_label",
            name="uq_class_sections_subject_level_cycle_section",
        ),
    )

    id: Mapped[str] = uuid_pk()
    subject_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("subjects.id"), nullable=False
    )
    grade_level_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("grade_levels.id"), nullable=False, index=True
    )
    teacher_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id"), nullable=False, index=True
    )
    academic_cycle_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("academic_cycles.id"), nullable=False, index=True
    )
    section_label: Mapped[str] = mapped_column(String(10), nullable=False, default="A")

    subject: Mapped[Subject] = relationship("Subject")
    grade_level: Mapped[GradeLevel] = relationship("GradeLevel")
    academic_cycle: Mapped[AcademicCycle] = relationship("AcademicCycle")
    teacher: Mapped["User"] = relationship("User")
    enrollments: Mapped[list["Enrollment"]] = relationship(
        "Enrollment", back_populates="class_section"
    )


class Enrollment(Base, TimestampMixin):
    """A student's enrollment in a class section."""

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "class_id", name="uq_enrollments_student_class"),
    )

    id: Mapped[str] = uuid_pk()
    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id"), nullable=False, index=True
    )
    class_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("class_sections.id"), nullable=False, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    class_section: Mapped[ClassSection] = relationship(
        "ClassSection", back_populates="enrollments"
    )
    student: Mapped["User"] = relationship("User")
