# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Single-cell grade writes.

Guards run in a fixed order: the class must be visible to the actor's
institution, its cycle must be active and open, the actor must be the
teacher of record or a director, and (except for remarks) the student
must be actively enrolled. The cache entry for the class's sheet is
invalidated after the commit and before the write returns.
"""

import logging
from typing import Any

from src.domains.grading.actor import Actor
from src.domains.grading.cache import SheetCache
from src.domains.grading.exceptions import (
    CycleLockedError,
    ForbiddenError,
    NotFoundError,
    ValidationFailure,
)
from src.domains.grading.fields import (
    CompetencyField,
    GeneralField,
    GradeField,
    RemarksField,
    TechnicalField,
    normalize_remarks,
    parse_field,
    validate_score,
)
from src.domains.grading.repository import GradeRepository
from src.domains.grading.schemas import GradeWriteResult
from src.infrastructure.database.models import AcademicCycle, ClassSection

logger = logging.getLogger(__name__)


def ensure_cycle_writable(cycle: AcademicCycle) -> None:
    """Reject writes to a closed or inactive cycle.

    Raises:
        CycleLockedError: If the cycle is closed or not active.
    """
    if cycle.is_closed:
        raise CycleLockedError(cycle.id, "closed")
    if not cycle.is_active:
        raise CycleLockedError(cycle.id, "inactive")


class GradeWriter:
    """Authorizes and applies single-cell grade mutations."""

    def __init__(self, repository: GradeRepository, cache: SheetCache):
        self._repo = repository
        self._cache = cache

    async def write(
        self,
        class_id: str,
        student_id: str,
        field: str | GradeField,
        value: Any,
        actor: Actor,
        competency_code: str | None = None,
    ) -> GradeWriteResult:
        """Write one grade cell.

        Args:
            class_id: Class section ID.
            student_id: Student user ID.
            field: Field name ("p1", "rp2", "cpc_nota", "RA3", "RA3_RP1",
                "observations") or an already parsed field.
            value: Score in [0, 100], remarks text, or None to clear.
            actor: The user performing the write.
            competency_code: Competency the score belongs to, if any.

        Returns:
            GradeWriteResult with the stored row.

        Raises:
            NotFoundError: Class not visible to the actor, or student not enrolled.
            CycleLockedError: The class's cycle is closed or inactive.
            ForbiddenError: Actor is neither the class teacher nor a director.
            ValidationFailure: Unknown field or out-of-range value.
        """
        section = await self._repo.get_class(class_id, actor.tenant_id)
        if section is None:
            raise NotFoundError("Class", class_id)

        ensure_cycle_writable(section.academic_cycle)

        if section.teacher_id != actor.id and not actor.is_director:
            logger.warning(
                "User %s denied grade write on class %s",
                actor.id,
                class_id,
            )
            raise ForbiddenError("Only the class teacher or a director can edit grades")

        parsed = field if not isinstance(field, str) else parse_field(field, competency_code)

        if not isinstance(parsed, RemarksField):
            if not await self._repo.has_active_enrollment(class_id, student_id):
                raise NotFoundError("Enrollment", f"{student_id} in class {class_id}")

        result = await self._apply(section, student_id, parsed, value)
        await self._repo.commit()

        await self._cache.invalidate(section.grade_level_id, section.academic_cycle_id)

        logger.info(
            "Grade %s by %s: class=%s student=%s field=%s",
            result.status,
            actor.id,
            class_id,
            student_id,
            parsed,
        )
        return result

    async def _apply(
        self,
        section: ClassSection,
        student_id: str,
        field: GradeField,
        value: Any,
    ) -> GradeWriteResult:
        cycle_id = section.academic_cycle_id
        common = {"class_id": section.id, "student_id": student_id, "cycle_id": cycle_id}

        if isinstance(field, RemarksField):
            if value is not None and not isinstance(value, str):
                raise ValidationFailure("Remarks must be text")
            row = await self._repo.upsert_general(
                student_id, section.id, cycle_id, {"observations": normalize_remarks(value)}
            )
            return GradeWriteResult(kind="remarks", row=row, **common)

        score = validate_score(value)

        if isinstance(field, GeneralField):
            row = await self._repo.upsert_general(
                student_id, section.id, cycle_id, {field.column: score}
            )
            return GradeWriteResult(kind="general", row=row, **common)

        if isinstance(field, CompetencyField):
            row = await self._repo.upsert_competency(
                student_id,
                section.id,
                cycle_id,
                field.competency.value,
                {field.column: score},
            )
            return GradeWriteResult(kind="competency", row=row, **common)

        if isinstance(field, TechnicalField):
            return await self._apply_technical(section, student_id, field, score, common)

        raise ValidationFailure(f"Unsupported grade field: {field!r}", code="invalid_field")

    async def _apply_technical(
        self,
        section: ClassSection,
        student_id: str,
        field: TechnicalField,
        score: float | None,
        common: dict[str, str],
    ) -> GradeWriteResult:
        """Upsert an outcome attempt; clearing the original attempt deletes the row."""
        if score is None and field.column == "score":
            await self._repo.delete_technical(student_id, section.id, field.outcome_code)
            return GradeWriteResult(kind="technical", status="deleted", **common)

        row = await self._repo.upsert_technical(
            student_id, section.id, field.outcome_code, {field.column: score}
        )
        if all(row.get(c) is None for c in ("score", "rp1", "rp2")):
            await self._repo.delete_technical(student_id, section.id, field.outcome_code)
            return GradeWriteResult(kind="technical", status="deleted", **common)
        return GradeWriteResult(kind="technical", row=row, **common)
