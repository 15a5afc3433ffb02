# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grading domain: grade sheet computation and publication.

Components:
- Format resolution (DO/HT, initial/primary/secondary/vocational)
- Aggregators for general subjects and technical modules
- Sheet assembly and a fail-open Redis cache
- Single-cell grade writes and class publication

Usage:
    from src.domains.grading import Actor, GradeSheetService

    actor = Actor.build(id=user_id, tenant_id=institution_id, roles=["teacher"])
    service = GradeSheetService(db, redis=get_redis())
    sheet = await service.get_sheet(level_id, cycle_id, institution_id, actor)
"""

from src.domains.grading.actor import Actor
from src.domains.grading.assembler import SheetAssembler
from src.domains.grading.cache import SheetCache, sheet_cache_key
from src.domains.grading.exceptions import (
    CycleLockedError,
    ForbiddenError,
    GradingError,
    NotFoundError,
    ValidationFailure,
)
from src.domains.grading.fields import (
    Competency,
    CompetencyField,
    GeneralField,
    GradeField,
    RemarksField,
    TechnicalField,
    parse_field,
)
from src.domains.grading.formats import (
    FormatResolution,
    NationalSystem,
    SheetFormat,
    resolve_format,
)
from src.domains.grading.publication import PublicationWorkflow
from src.domains.grading.repository import GradeRepository
from src.domains.grading.schemas import (
    CycleSummary,
    GradeWriteResult,
    LevelSummary,
    PublicationSummary,
    Sheet,
    SheetStudent,
    SheetSubject,
    SubjectGrades,
)
from src.domains.grading.service import GradeSheetService
from src.domains.grading.writer import GradeWriter

__all__ = [
    # Service
    "GradeSheetService",
    "Actor",
    # Components
    "GradeRepository",
    "SheetAssembler",
    "SheetCache",
    "sheet_cache_key",
    "GradeWriter",
    "PublicationWorkflow",
    # Formats
    "SheetFormat",
    "NationalSystem",
    "FormatResolution",
    "resolve_format",
    # Fields
    "Competency",
    "GradeField",
    "GeneralField",
    "CompetencyField",
    "TechnicalField",
    "RemarksField",
    "parse_field",
    # Schemas
    "Sheet",
    "SheetStudent",
    "SheetSubject",
    "SubjectGrades",
    "GradeWriteResult",
    "PublicationSummary",
    "LevelSummary",
    "CycleSummary",
    # Exceptions
    "GradingError",
    "NotFoundError",
    "ForbiddenError",
    "ValidationFailure",
    "CycleLockedError",
]
