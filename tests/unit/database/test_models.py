# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database models.

Tests model definitions, constraints, and helper methods.
"""

from sqlalchemy import UniqueConstraint

from src.infrastructure.database.models import (
    AcademicCycle,
    Base,
    ClassSection,
    CompetencyGrade,
    GeneralGrade,
    GradeLevel,
    Notification,
    TechnicalGrade,
    TimestampMixin,
    User,
)


def _unique_constraints(model) -> dict[str, tuple[str, ...]]:
    return {
        c.name: tuple(col.name for col in c.columns)
        for c in model.__table__.constraints
        if isinstance(c, UniqueConstraint)
    }


class TestBase:
    """Test base model functionality."""

    def test_base_inherits_declarative_base(self):
        """Verify Base is a declarative base."""
        assert hasattr(Base, "metadata")
        assert hasattr(Base, "registry")

    def test_timestamp_mixin_has_timestamps(self):
        """Verify TimestampMixin has created_at and updated_at."""
        assert hasattr(TimestampMixin, "created_at")
        assert hasattr(TimestampMixin, "updated_at")


class TestSchoolModels:
    """Test school structure models."""

    def test_table_names(self):
        assert GradeLevel.__tablename__ == "grade_levels"
        assert AcademicCycle.__tablename__ == "academic_cycles"
        assert ClassSection.__tablename__ == "class_sections"

    def test_user_display_name(self):
        user = User(first_name="Ana", last_name="Pérez")

        assert user.display_name == "Ana Pérez"


class TestGradeModels:
    """Test grade models."""

    def test_general_grade_unique_per_student_class_cycle(self):
        constraints = _unique_constraints(GeneralGrade)

        assert constraints["uq_general_grades_student_class_cycle"] == (
            "student_id",
            "class_id",
            "academic_cycle_id",
        )

    def test_competency_grade_unique_per_competency(self):
        constraints = _unique_constraints(CompetencyGrade)

        assert "competency" in constraints["uq_competency_grades_student_class_cycle_competency"]

    def test_technical_grade_unique_per_outcome(self):
        constraints = _unique_constraints(TechnicalGrade)

        assert constraints["uq_technical_grades_student_class_outcome"] == (
            "student_id",
            "class_id",
            "outcome_code",
        )

    def test_period_columns(self):
        columns = GeneralGrade.__table__.columns.keys()

        for name in ("p1", "p2", "p3", "p4", "rp1", "rp2", "rp3", "rp4"):
            assert name in columns
        assert "cpc_score" in columns
        assert "cpex_score" in columns
        assert "observations" in columns

    def test_publication_columns(self):
        for model in (GeneralGrade, CompetencyGrade):
            columns = model.__table__.columns.keys()
            assert "published" in columns
            assert "published_at" in columns
            assert "published_by" in columns

    def test_technical_grade_has_no_publication_state(self):
        assert "published" not in TechnicalGrade.__table__.columns.keys()


class TestNotificationModel:
    """Test notification model."""

    def test_table_name(self):
        assert Notification.__tablename__ == "notifications"
