# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models for the school database."""

from src.infrastructure.database.models.base import Base, TimestampMixin
from src.infrastructure.database.models.grading import (
    CompetencyGrade,
    GeneralGrade,
    TechnicalGrade,
)
from src.infrastructure.database.models.notification import Notification
from src.infrastructure.database.models.school import (
    AcademicCycle,
    ClassSection,
    EducationalCycleGroup,
    Enrollment,
    GradeLevel,
    Institution,
    Subject,
)
from src.infrastructure.database.models.user import User

__all__ = [
    "Base",
    "TimestampMixin",
    # School structure
    "Institution",
    "EducationalCycleGroup",
    "GradeLevel",
    "AcademicCycle",
    "Subject",
    "ClassSection",
    "Enrollment",
    "User",
    # Grades
    "GeneralGrade",
    "CompetencyGrade",
    "TechnicalGrade",
    # Notifications
    "Notification",
]
