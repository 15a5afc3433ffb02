# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade cell addressing.

A cell write names a field as a string ("p2", "rp3", "cpc_nota", "RA4",
"RA4_RP1", "observations") plus an optional competency code. parse_field
turns that into one of four field kinds, once, at the boundary; the
writer dispatches on the kind and never inspects the string again.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Union

from src.domains.grading.exceptions import ValidationFailure

MIN_SCORE = 0.0
MAX_SCORE = 100.0


class Competency(str, Enum):
    """Fixed competency codes a general subject can be graded by."""

    COMMUNICATIVE = "COMUNICATIVA"
    LOGICAL = "LOGICO"
    SCIENTIFIC = "CIENTIFICO"
    ETHICAL = "ETICO"
    DEVELOPMENT = "DESARROLLO"


PERIOD_COLUMNS: tuple[str, ...] = (
    "p1", "p2", "p3", "p4",
    "rp1", "rp2", "rp3", "rp4",
)

# Accepted spellings of the makeup exam columns.
_MAKEUP_ALIASES = {
    "cpc_score": "cpc_score",
    "cpc_nota": "cpc_score",
    "cpex_score": "cpex_score",
    "cpex_nota": "cpex_score",
}

_REMARKS_ALIASES = frozenset({"observations", "observaciones", "remarks"})

_OUTCOME_FIELD = re.compile(r"^(RA(?:10|[1-9]))(?:_(RP[12]))?$")


@dataclass(frozen=True)
class GeneralField:
    """A score column on the general grade row."""

    column: str


@dataclass(frozen=True)
class CompetencyField:
    """A period score column on a competency grade row."""

    column: str
    competency: Competency


@dataclass(frozen=True)
class TechnicalField:
    """One attempt of a vocational outcome.

    Attributes:
        outcome_code: RA1..RA10.
        column: "score", "rp1" or "rp2".
    """

    outcome_code: str
    column: str = "score"


@dataclass(frozen=True)
class RemarksField:
    """The free-text remarks on the general grade row."""


GradeField = Union[GeneralField, CompetencyField, TechnicalField, RemarksField]


def parse_competency(code: str) -> Competency:
    try:
        return Competency(code.strip().upper())
    except ValueError:
        raise ValidationFailure(f"Unknown competency code: {code}", code="invalid_field")


def parse_field(field: str, competency_code: str | None = None) -> GradeField:
    """Resolve a field name (and optional competency) to its kind.

    Makeup exam columns always target the general row, even when a
    competency code is supplied.

    Args:
        field: Field name as sent by the client.
        competency_code: Competency the score belongs to, if any.

    Returns:
        The resolved field.

    Raises:
        ValidationFailure: If the field or competency is not recognized.
    """
    name = (field or "").strip()
    lowered = name.lower()

    if lowered in _REMARKS_ALIASES:
        return RemarksField()

    outcome = _OUTCOME_FIELD.match(name.upper())
    if outcome:
        code, attempt = outcome.groups()
        return TechnicalField(outcome_code=code, column=attempt.lower() if attempt else "score")

    if lowered in _MAKEUP_ALIASES:
        return GeneralField(column=_MAKEUP_ALIASES[lowered])

    if lowered in PERIOD_COLUMNS:
        if competency_code:
            return CompetencyField(column=lowered, competency=parse_competency(competency_code))
        return GeneralField(column=lowered)

    raise ValidationFailure(f"Unknown grade field: {field!r}", code="invalid_field")


def validate_score(value: float | int | None) -> float | None:
    """Check a numeric cell value; None clears the cell.

    Raises:
        ValidationFailure: If the value is not a number in [0, 100].
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationFailure(f"Score must be a number, got {value!r}")
    if not MIN_SCORE <= value <= MAX_SCORE:
        raise ValidationFailure(
            f"Score must be between {MIN_SCORE:g} and {MAX_SCORE:g}, got {value:g}"
        )
    return float(value)


def normalize_remarks(text: str | None) -> str | None:
    """Trim remarks; blank remarks are stored as null."""
    if text is None:
        return None
    stripped = text.strip()
    return stripped or None
