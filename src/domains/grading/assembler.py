# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Sheet assembly.

Joins a level's class sections, active rosters and raw grade rows for one
academic cycle into a Sheet, running the aggregators for every
student x subject cell. Assembly is read-only; caching is the caller's
concern.
"""

import logging
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from typing import Sequence

from src.domains.grading.aggregator import (
    PeriodScores,
    compute_subject_result,
    situation_label,
)
from src.domains.grading.exceptions import NotFoundError
from src.domains.grading.formats import FormatResolution, fold_text, resolve_format
from src.domains.grading.repository import GradeRepository
from src.domains.grading.schemas import (
    CompetencyScores,
    MakeupExamResult,
    ModuleResult,
    OutcomeScores,
    Sheet,
    SheetCycle,
    SheetLevel,
    SheetMetadata,
    SheetStudent,
    SheetSubject,
    SubjectGrades,
)
from src.domains.grading.technical import OutcomeAttempts, aggregate_module
from src.infrastructure.database.models import (
    AcademicCycle,
    ClassSection,
    CompetencyGrade,
    GeneralGrade,
    GradeLevel,
    TechnicalGrade,
    User,
)
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass
class _CellRows:
    """Raw rows for one student in one subject."""

    general: GeneralGrade | None = None
    competencies: list[CompetencyGrade] = field(default_factory=list)
    technical: list[TechnicalGrade] = field(default_factory=list)


def _student_sort_key(student: User) -> tuple[str, str, str]:
    return (
        fold_text(student.last_name),
        fold_text(student.second_last_name),
        fold_text(student.first_name),
    )


class SheetAssembler:
    """Builds grade sheets from the database.

    Example:
        assembler = SheetAssembler(GradeRepository(db))
        sheet = await assembler.assemble(level_id, cycle_id, tenant_id)
    """

    def __init__(self, repository: GradeRepository):
        self._repo = repository

    async def load_scope(
        self, level_id: str, cycle_id: str, tenant_id: str
    ) -> tuple[GradeLevel, AcademicCycle]:
        """Load a level and cycle, both scoped to the tenant.

        Raises:
            NotFoundError: If either is missing or belongs to another tenant.
        """
        level = await self._repo.get_level(level_id, tenant_id)
        if level is None:
            raise NotFoundError("Grade level", level_id)
        cycle = await self._repo.get_cycle(cycle_id, tenant_id)
        if cycle is None:
            raise NotFoundError("Academic cycle", cycle_id)
        return level, cycle

    async def assemble(self, level_id: str, cycle_id: str, tenant_id: str) -> Sheet:
        """Assemble the sheet for a level and cycle.

        Raises:
            NotFoundError: If the level or cycle is not visible to the tenant.
        """
        level, cycle = await self.load_scope(level_id, cycle_id, tenant_id)
        return await self.build(level, cycle)

    async def build(self, level: GradeLevel, cycle: AcademicCycle) -> Sheet:
        """Assemble the sheet for an already-resolved level and cycle."""
        resolution = resolve_format(
            configured=level.sheet_format,
            level_name=level.name,
            cycle_group_name=level.cycle_group.name if level.cycle_group else None,
            national_system=level.institution.national_system,
            level_id=level.id,
        )

        classes = list(await self._repo.list_level_classes(level.id, cycle.id))
        class_ids = [c.id for c in classes]
        general_rows = await self._repo.list_general_grades(class_ids, cycle.id)
        competency_rows = await self._repo.list_competency_grades(class_ids, cycle.id)
        technical_rows = await self._repo.list_technical_grades(class_ids)

        subjects = self._collect_subjects(classes)
        students, student_classes = self._collect_students(classes)
        cells = self._index_rows(classes, general_rows, competency_rows, technical_rows)

        # First class of each subject, for students without an enrollment in it
        default_class: dict[str, ClassSection] = {}
        for section in classes:
            default_class.setdefault(section.subject_id, section)

        sheet_students = []
        for student in sorted(students.values(), key=_student_sort_key):
            grades = {}
            for subject in subjects:
                section = student_classes[student.id].get(subject.id) or default_class.get(subject.id)
                rows = cells.get((student.id, subject.id), _CellRows())
                grades[subject.id] = self._build_entry(rows, section, resolution)
            sheet_students.append(
                SheetStudent(
                    id=student.id,
                    first_name=student.first_name,
                    middle_name=student.middle_name,
                    last_name=student.last_name,
                    second_last_name=student.second_last_name,
                    photo_url=student.photo_url,
                    grades=grades,
                )
            )

        logger.debug(
            "Assembled sheet level=%s cycle=%s students=%d subjects=%d",
            level.id,
            cycle.id,
            len(sheet_students),
            len(subjects),
        )

        return Sheet(
            level=SheetLevel(id=level.id, name=level.name, grade_number=level.grade_number),
            cycle=SheetCycle(
                id=cycle.id,
                name=cycle.name,
                is_active=cycle.is_active,
                is_closed=cycle.is_closed,
            ),
            format=resolution.format,
            format_inferred=resolution.inferred,
            period_count=resolution.period_count,
            is_haiti=resolution.is_haiti,
            subjects=subjects,
            students=sheet_students,
            metadata=SheetMetadata(
                total_students=len(sheet_students),
                total_subjects=len(subjects),
                generated_at=utc_now(),
                country=level.institution.country,
            ),
        )

    @staticmethod
    def _collect_subjects(classes: Sequence[ClassSection]) -> list[SheetSubject]:
        seen: dict[str, SheetSubject] = {}
        for section in classes:
            subject = section.subject
            if subject.id not in seen:
                seen[subject.id] = SheetSubject(
                    id=subject.id,
                    name=subject.name,
                    code=subject.code,
                    is_official=subject.is_official,
                    display_order=subject.display_order,
                    kind=subject.kind,
                )
        return sorted(seen.values(), key=lambda s: (s.display_order, fold_text(s.name)))

    @staticmethod
    def _collect_students(
        classes: Sequence[ClassSection],
    ) -> tuple[dict[str, User], dict[str, dict[str, ClassSection]]]:
        """Students with an active enrollment, and their class per subject."""
        students: dict[str, User] = {}
        student_classes: dict[str, dict[str, ClassSection]] = defaultdict(dict)
        for section in classes:
            for enrollment in section.enrollments:
                if not enrollment.is_active:
                    continue
                students.setdefault(enrollment.student_id, enrollment.student)
                student_classes[enrollment.student_id].setdefault(section.subject_id, section)
        return students, student_classes

    @staticmethod
    def _index_rows(
        classes: Sequence[ClassSection],
        general_rows: Sequence[GeneralGrade],
        competency_rows: Sequence[CompetencyGrade],
        technical_rows: Sequence[TechnicalGrade],
    ) -> dict[tuple[str, str], _CellRows]:
        """Group grade rows by (student, subject)."""
        subject_of = {c.id: c.subject_id for c in classes}
        cells: dict[tuple[str, str], _CellRows] = defaultdict(_CellRows)

        for row in general_rows:
            if row.class_id in subject_of:
                cells[(row.student_id, subject_of[row.class_id])].general = row
        for row in competency_rows:
            if row.class_id in subject_of:
                cells[(row.student_id, subject_of[row.class_id])].competencies.append(row)
        for row in technical_rows:
            if row.class_id in subject_of:
                cells[(row.student_id, subject_of[row.class_id])].technical.append(row)
        return cells

    @staticmethod
    def _build_entry(
        rows: _CellRows,
        section: ClassSection | None,
        resolution: FormatResolution,
    ) -> SubjectGrades:
        period_count = resolution.period_count
        general = rows.general

        general_scores = PeriodScores.from_row(general) if general is not None else None
        competency_scores = [PeriodScores.from_row(c) for c in rows.competencies]
        result = compute_subject_result(
            general=general_scores,
            competencies=competency_scores,
            cpc_score=general.cpc_score if general else None,
            cpex_score=general.cpex_score if general else None,
            is_haiti=resolution.is_haiti,
        )

        attempts = {
            row.outcome_code: OutcomeAttempts(score=row.score, rp1=row.rp1, rp2=row.rp2)
            for row in rows.technical
        }
        outcomes = {
            code: OutcomeScores(
                score=a.score, rp1=a.rp1, rp2=a.rp2, effective=a.effective
            )
            for code, a in attempts.items()
        }
        module = aggregate_module(attempts)

        if general is not None:
            published = general.published
        else:
            published = bool(rows.competencies) and all(c.published for c in rows.competencies)

        return SubjectGrades(
            p=list(general_scores.regular[:period_count]) if general_scores else [None] * period_count,
            rp=list(general_scores.remediation[:period_count]) if general_scores else [None] * period_count,
            period_scores=result.period_scores,
            cf=result.cf,
            completiva=(
                MakeupExamResult(**asdict(result.completiva)) if result.completiva else None
            ),
            extraordinaria=(
                MakeupExamResult(**asdict(result.extraordinaria)) if result.extraordinaria else None
            ),
            final_grade=result.final_grade,
            situation=result.situation,
            situation_label=situation_label(result.situation, resolution.is_haiti),
            competencies={
                c.competency: CompetencyScores(
                    p=[c.p1, c.p2, c.p3, c.p4],
                    rp=[c.rp1, c.rp2, c.rp3, c.rp4],
                )
                for c in rows.competencies
            },
            outcomes=outcomes,
            module=(
                ModuleResult(
                    grade=module.grade,
                    situation=module.situation,
                    situation_label=situation_label(module.situation, resolution.is_haiti),
                    outcomes_counted=module.outcomes_counted,
                )
                if module
                else None
            ),
            promoted_grade=general.promoted_grade if general else None,
            frozen_situation=general.situation if general else None,
            class_id=section.id if section else None,
            teacher_id=section.teacher_id if section else None,
            teacher_name=section.teacher.display_name if section and section.teacher else None,
            published=published,
            remarks=general.observations if general else None,
        )
