# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Technical module aggregation for vocational subjects.

A module is graded per learning outcome (RA1..RA10). Each outcome allows
an original attempt and two remediation attempts; the best one counts.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from src.domains.grading.aggregator import entered, round_half_up, situation

OUTCOME_CODES: tuple[str, ...] = tuple(f"RA{i}" for i in range(1, 11))


def is_outcome_code(value: str) -> bool:
    return value.upper() in OUTCOME_CODES


@dataclass(frozen=True)
class OutcomeAttempts:
    """Attempts recorded for one outcome."""

    score: float | None = None
    rp1: float | None = None
    rp2: float | None = None

    @property
    def effective(self) -> float:
        """Best valid attempt, or 0 if none."""
        return max(entered(self.score), entered(self.rp1), entered(self.rp2))


@dataclass(frozen=True)
class TechnicalModuleResult:
    """Module grade over the outcomes with at least one valid attempt."""

    grade: int
    situation: str
    outcomes_counted: int


def aggregate_module(outcomes: Mapping[str, OutcomeAttempts]) -> TechnicalModuleResult | None:
    """Aggregate outcome attempts into a module grade.

    Unknown outcome codes are ignored.

    Returns:
        The module result, or None when no outcome has a valid attempt.
    """
    effective = [
        attempts.effective
        for code, attempts in outcomes.items()
        if is_outcome_code(code) and attempts.effective > 0
    ]
    if not effective:
        return None
    grade = round_half_up(Decimal(str(sum(effective))) / len(effective))
    return TechnicalModuleResult(
        grade=grade,
        situation=situation(grade),
        outcomes_counted=len(effective),
    )
