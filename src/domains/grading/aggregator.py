# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade aggregation rules for general subjects.

Everything here is a pure function of the raw entered scores; nothing is
persisted. Rules:

- Period score: max(regular, remediation). A remediation attempt replaces
  the regular score, never stacks with it. Non-positive values mean
  "not entered".
- Subjects graded by competencies: per competency take the period max,
  then average across competencies with an entry.
- Final grade (CF): rounded mean of all periods, only once every period
  has a value (three in Haiti, four in the DR), otherwise 0.
- Completiva (DR, 0 < CF < 70): C.C. = round(CF*0.5 + cpc*0.5).
- Extraordinaria (DR, 0 < C.C. < 70): C.Ex. = round(CF*0.3 + cpex*0.7).

Rounding is half-up, as on paper report cards.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Sequence

PASSING_GRADE = 70
MAX_PERIODS = 4

COMPLETIVA_CF_WEIGHT = Decimal("0.5")
COMPLETIVA_EXAM_WEIGHT = Decimal("0.5")
EXTRAORDINARIA_CF_WEIGHT = Decimal("0.3")
EXTRAORDINARIA_EXAM_WEIGHT = Decimal("0.7")

SITUATION_PENDING = ""
SITUATION_PASSED = "A"
SITUATION_FAILED = "R"

_SITUATION_LABELS = {
    False: {SITUATION_PASSED: "Aprobado", SITUATION_FAILED: "Reprobado"},
    True: {SITUATION_PASSED: "Admis", SITUATION_FAILED: "Échec"},
}


def round_half_up(value: float | Decimal) -> int:
    """Round to the nearest integer, halves away from zero (69.5 -> 70)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def entered(value: float | None) -> float:
    """Return the value if it counts as entered, else 0."""
    if value is None or value <= 0:
        return 0.0
    return float(value)


def period_score(regular: float | None, remediation: float | None) -> float:
    """Best of the regular and remediation score for one period."""
    return max(entered(regular), entered(remediation))


@dataclass(frozen=True)
class PeriodScores:
    """Raw regular and remediation scores for up to four periods."""

    regular: tuple[float | None, ...] = (None, None, None, None)
    remediation: tuple[float | None, ...] = (None, None, None, None)

    @classmethod
    def from_row(cls, row: Any) -> "PeriodScores":
        """Build from any object with p1..p4 and rp1..rp4 attributes."""
        return cls(
            regular=tuple(getattr(row, f"p{i}", None) for i in range(1, MAX_PERIODS + 1)),
            remediation=tuple(getattr(row, f"rp{i}", None) for i in range(1, MAX_PERIODS + 1)),
        )

    def score(self, period: int) -> float:
        """Period score for a 1-based period number."""
        return period_score(self.regular[period - 1], self.remediation[period - 1])

    def has_entries(self) -> bool:
        return any(entered(v) > 0 for v in (*self.regular, *self.remediation))


def competency_period_score(competencies: Sequence[PeriodScores], period: int) -> int:
    """Mean of the competencies' period scores, excluding those with no entry.

    Returns 0 when no competency has an entry for the period.
    """
    values = [c.score(period) for c in competencies]
    counted = [v for v in values if v > 0]
    if not counted:
        return 0
    return round_half_up(Decimal(str(sum(counted))) / len(counted))


def subject_period_scores(
    general: PeriodScores | None,
    competencies: Sequence[PeriodScores],
    period_count: int,
) -> list[float]:
    """Per-period subject scores.

    Competency rows, when present, take precedence over the general row.
    """
    periods = range(1, period_count + 1)
    if competencies:
        return [float(competency_period_score(competencies, p)) for p in periods]
    if general is None:
        return [0.0 for _ in periods]
    return [general.score(p) for p in periods]


def final_grade(period_scores: Sequence[float], is_haiti: bool) -> int:
    """Compute CF, or 0 while any required period is missing."""
    required = 3 if is_haiti else 4
    scores = list(period_scores[:required])
    if len(scores) < required or any(s <= 0 for s in scores):
        return 0
    total = sum(Decimal(str(s)) for s in scores)
    return round_half_up(total / required)


def situation(grade: float) -> str:
    """Pass/fail code for a grade: "" pending, "A" passed, "R" failed."""
    if grade <= 0:
        return SITUATION_PENDING
    return SITUATION_PASSED if grade >= PASSING_GRADE else SITUATION_FAILED


def situation_label(code: str, is_haiti: bool) -> str:
    """Localized label for a situation code."""
    return _SITUATION_LABELS[is_haiti].get(code, "")


@dataclass(frozen=True)
class CompletivaResult:
    """First makeup exam outcome.

    Attributes:
        component: The CF's 50% contribution.
        exam_score: Teacher-entered makeup exam score, if any.
        total: C.C., once the exam score is entered.
    """

    component: int
    exam_score: float | None
    total: int | None


@dataclass(frozen=True)
class ExtraordinariaResult:
    """Second makeup exam outcome.

    Attributes:
        component: The CF's 30% contribution.
        exam_score: Teacher-entered makeup exam score, if any.
        total: C.Ex., once the exam score is entered.
    """

    component: int
    exam_score: float | None
    total: int | None


def completiva(cf: int, cpc_score: float | None) -> CompletivaResult | None:
    """Completiva outcome, or None when CF does not trigger it."""
    if not 0 < cf < PASSING_GRADE:
        return None
    exam = entered(cpc_score)
    total = None
    if exam > 0:
        total = round_half_up(cf * COMPLETIVA_CF_WEIGHT + Decimal(str(exam)) * COMPLETIVA_EXAM_WEIGHT)
    return CompletivaResult(
        component=round_half_up(cf * COMPLETIVA_CF_WEIGHT),
        exam_score=exam or None,
        total=total,
    )


def extraordinaria(
    cf: int,
    completiva_total: int | None,
    cpex_score: float | None,
) -> ExtraordinariaResult | None:
    """Extraordinaria outcome, or None when C.C. does not trigger it."""
    if completiva_total is None or not 0 < completiva_total < PASSING_GRADE:
        return None
    exam = entered(cpex_score)
    total = None
    if exam > 0:
        total = round_half_up(
            cf * EXTRAORDINARIA_CF_WEIGHT + Decimal(str(exam)) * EXTRAORDINARIA_EXAM_WEIGHT
        )
    return ExtraordinariaResult(
        component=round_half_up(cf * EXTRAORDINARIA_CF_WEIGHT),
        exam_score=exam or None,
        total=total,
    )


@dataclass(frozen=True)
class SubjectResult:
    """Derived values for one student in one general subject."""

    period_scores: list[float] = field(default_factory=list)
    cf: int = 0
    completiva: CompletivaResult | None = None
    extraordinaria: ExtraordinariaResult | None = None
    final_grade: int = 0
    situation: str = SITUATION_PENDING


def compute_subject_result(
    general: PeriodScores | None,
    competencies: Sequence[PeriodScores],
    cpc_score: float | None,
    cpex_score: float | None,
    is_haiti: bool,
) -> SubjectResult:
    """Fold raw scores into the derived values shown on the sheet.

    Args:
        general: Scores from the general grade row, if any.
        competencies: Scores from competency grade rows.
        cpc_score: Completiva exam score.
        cpex_score: Extraordinaria exam score.
        is_haiti: Whether the Haitian (3-period, no makeup) ruleset applies.

    Returns:
        SubjectResult with periods, CF, makeup outcomes and final grade.
    """
    period_count = 3 if is_haiti else 4
    scores = subject_period_scores(general, competencies, period_count)
    cf = final_grade(scores, is_haiti)

    cc = None
    cex = None
    if not is_haiti:
        cc = completiva(cf, cpc_score)
        cex = extraordinaria(cf, cc.total if cc else None, cpex_score)

    final = cf
    if cf < PASSING_GRADE:
        if cc is not None and cc.total is not None and cc.total >= PASSING_GRADE:
            final = cc.total
        elif cex is not None and cex.total is not None:
            final = cex.total
        elif cc is not None and cc.total is not None:
            final = cc.total

    return SubjectResult(
        period_scores=scores,
        cf=cf,
        completiva=cc,
        extraordinaria=cex,
        final_grade=final,
        situation=situation(final),
    )
