# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade sheet schemas.

The Sheet is what the assembler builds, the cache stores (as JSON) and
the API returns. Derived values (period scores, CF, makeup totals,
situation) are computed by the aggregators at assembly time.
"""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from src.domains.grading.formats import SheetFormat


class SheetLevel(BaseModel):
    """Grade level the sheet belongs to."""

    id: str
    name: str
    grade_number: int | None = None


class SheetCycle(BaseModel):
    """Academic cycle the sheet belongs to."""

    id: str
    name: str
    is_active: bool = False
    is_closed: bool = False


class SheetSubject(BaseModel):
    """A subject column of the sheet."""

    id: str
    name: str
    code: str | None = None
    is_official: bool = True
    display_order: int = 0
    kind: str = "GENERAL"


class CompetencyScores(BaseModel):
    """Raw scores of one competency row, periods 1..4."""

    p: list[float | None] = Field(default_factory=lambda: [None] * 4)
    rp: list[float | None] = Field(default_factory=lambda: [None] * 4)


class OutcomeScores(BaseModel):
    """Raw attempts of one vocational outcome and the one that counts."""

    score: float | None = None
    rp1: float | None = None
    rp2: float | None = None
    effective: float = 0


class MakeupExamResult(BaseModel):
    """Completiva or extraordinaria outcome.

    Attributes:
        component: The CF's weighted contribution.
        exam_score: Teacher-entered exam score.
        total: Weighted total once the exam score is entered.
    """

    component: int
    exam_score: float | None = None
    total: int | None = None


class ModuleResult(BaseModel):
    """Technical module grade over its counted outcomes."""

    grade: int
    situation: str
    situation_label: str
    outcomes_counted: int


class SubjectGrades(BaseModel):
    """One student's computed entry for one subject.

    Raw general-row scores are kept in p/rp; period_scores is the
    derived per-period value (competency mean when competencies exist).
    """

    p: list[float | None] = Field(default_factory=list)
    rp: list[float | None] = Field(default_factory=list)
    period_scores: list[float] = Field(default_factory=list)
    cf: int = 0
    completiva: MakeupExamResult | None = None
    extraordinaria: MakeupExamResult | None = None
    final_grade: int = 0
    situation: str = ""
    situation_label: str = ""

    competencies: dict[str, CompetencyScores] = Field(default_factory=dict)
    outcomes: dict[str, OutcomeScores] = Field(default_factory=dict)
    module: ModuleResult | None = None

    # Values frozen by administrative finalization, if any
    promoted_grade: float | None = None
    frozen_situation: str | None = None

    class_id: str | None = None
    teacher_id: str | None = None
    teacher_name: str | None = None
    published: bool = False
    remarks: str | None = None


class SheetStudent(BaseModel):
    """A student row with an entry for every subject of the sheet."""

    id: str
    first_name: str
    middle_name: str | None = None
    last_name: str
    second_last_name: str | None = None
    photo_url: str | None = None
    grades: dict[str, SubjectGrades] = Field(default_factory=dict)


class SheetMetadata(BaseModel):
    """Summary information about an assembled sheet."""

    total_students: int
    total_subjects: int
    generated_at: datetime
    country: str


class Sheet(BaseModel):
    """Full grade matrix for one grade level in one academic cycle."""

    level: SheetLevel
    cycle: SheetCycle
    format: SheetFormat
    format_inferred: bool = False
    period_count: int
    is_haiti: bool = False
    subjects: list[SheetSubject] = Field(default_factory=list)
    students: list[SheetStudent] = Field(default_factory=list)
    metadata: SheetMetadata


class GradeWriteResult(BaseModel):
    """Outcome of a single-cell write.

    Attributes:
        kind: Which record shape was written.
        status: "updated" for upserts, "deleted" when the row was removed.
        row: Column values of the stored row after the write.
    """

    kind: Literal["general", "competency", "technical", "remarks"]
    status: Literal["updated", "deleted"] = "updated"
    class_id: str
    student_id: str
    cycle_id: str
    row: dict[str, Any] | None = None


class PublicationSummary(BaseModel):
    """Counts of rows newly flipped to published."""

    class_id: str
    cycle_id: str
    general_count: int
    competency_count: int
    published_at: datetime

    @property
    def total(self) -> int:
        return self.general_count + self.competency_count


class LevelSummary(BaseModel):
    """A grade level selectable for sheet viewing."""

    id: str
    name: str
    grade_number: int | None = None
    sheet_format: str
    cycle_group_id: str | None = None
    cycle_group_name: str | None = None
    class_count: int = 0


class CycleSummary(BaseModel):
    """An academic cycle selectable for sheet viewing."""

    id: str
    name: str
    start_date: date
    end_date: date
    is_active: bool
    is_closed: bool = False
