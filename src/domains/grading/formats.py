# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Sheet format resolution.

A grade level's format selects the national ruleset (Dominican Republic
MINERD "DO" or Haiti MENFP "HT") and the pedagogical stage. Levels
created before the format column existed were back-filled with
SECUNDARIA_DO, so that value is treated as possibly unconfigured and
checked against the level and cycle-group names.
"""

import logging
import unicodedata
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class NationalSystem(str, Enum):
    """National curriculum an institution follows."""

    DO = "DO"
    HT = "HT"


class SheetFormat(str, Enum):
    """Pedagogical format of a grade sheet."""

    INITIAL_DO = "INICIAL_DO"
    INITIAL_HT = "INICIAL_HT"
    PRIMARY_DO = "PRIMARIA_DO"
    PRIMARY_HT = "PRIMARIA_HT"
    SECONDARY_DO = "SECUNDARIA_DO"
    SECONDARY_HT = "SECUNDARIA_HT"
    VOCATIONAL_DO = "POLITECNICO_DO"

    @property
    def is_haiti(self) -> bool:
        return self.value.endswith("_HT")

    @property
    def period_count(self) -> int:
        """Grading periods per cycle: three in Haiti, four in the DR."""
        return 3 if self.is_haiti else 4

    @property
    def uses_technical_modules(self) -> bool:
        return self is SheetFormat.VOCATIONAL_DO


DEFAULT_FORMAT = SheetFormat.SECONDARY_DO

# Checked in order; the first stage whose keywords match wins.
_STAGE_KEYWORDS: tuple[tuple[str, tuple[str, ...], SheetFormat, SheetFormat], ...] = (
    (
        "initial",
        ("INICIAL", "INITIAL", "PRESCOLAIRE", "PREESCOLAR"),
        SheetFormat.INITIAL_DO,
        SheetFormat.INITIAL_HT,
    ),
    (
        "primary",
        ("PRIMARIA", "PRIMARY", "PRIMER CICLO", "FONDAMENTAL"),
        SheetFormat.PRIMARY_DO,
        SheetFormat.PRIMARY_HT,
    ),
    (
        "secondary",
        ("SECUNDARIA", "SECONDARY", "SECONDAIRE"),
        SheetFormat.SECONDARY_DO,
        SheetFormat.SECONDARY_HT,
    ),
    (
        "vocational",
        ("POLITECNICO", "POLYTECHNIC"),
        SheetFormat.VOCATIONAL_DO,
        SheetFormat.VOCATIONAL_DO,
    ),
)


@dataclass(frozen=True)
class FormatResolution:
    """Outcome of resolving a level's format.

    Attributes:
        format: Format to use for all computation.
        inferred: True when the format came from keyword matching.
    """

    format: SheetFormat
    inferred: bool = False

    @property
    def period_count(self) -> int:
        return self.format.period_count

    @property
    def is_haiti(self) -> bool:
        return self.format.is_haiti

    @property
    def uses_technical_modules(self) -> bool:
        return self.format.uses_technical_modules


def fold_text(text: str | None) -> str:
    """Upper-case and strip accents ("Préscolaire" -> "PRESCOLAIRE")."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).upper()


def detect_format_by_keyword(
    level_name: str | None,
    cycle_group_name: str | None,
    is_haiti: bool,
) -> SheetFormat | None:
    """Guess a format from level and cycle-group names.

    Args:
        level_name: Grade level name, e.g. "1ro Primaria".
        cycle_group_name: Educational cycle group name, e.g. "Primer Ciclo".
        is_haiti: Whether the institution follows the Haitian system.

    Returns:
        The matching format, or None if no keyword matched.
    """
    haystacks = (fold_text(level_name), fold_text(cycle_group_name))
    for _stage, keywords, do_format, ht_format in _STAGE_KEYWORDS:
        if any(keyword in text for keyword in keywords for text in haystacks):
            return ht_format if is_haiti else do_format
    return None


def _coerce_format(value: SheetFormat | str | None) -> SheetFormat:
    if isinstance(value, SheetFormat):
        return value
    if value is None:
        return DEFAULT_FORMAT
    try:
        return SheetFormat(value)
    except ValueError:
        logger.warning("Unknown sheet format %r, using %s", value, DEFAULT_FORMAT.value)
        return DEFAULT_FORMAT


def resolve_format(
    configured: SheetFormat | str | None,
    level_name: str | None,
    cycle_group_name: str | None,
    national_system: NationalSystem | str,
    level_id: str | None = None,
) -> FormatResolution:
    """Resolve the authoritative format for a grade level.

    Explicitly configured formats are trusted. The default value is
    cross-checked against the level and cycle-group names, and a
    non-default keyword match wins with a warning.

    Args:
        configured: The level's stored format.
        level_name: Grade level name.
        cycle_group_name: Parent cycle group name, if any.
        national_system: Institution's national system ("DO" or "HT").
        level_id: Level ID, used only for logging.

    Returns:
        FormatResolution with the format and whether it was inferred.
    """
    configured_format = _coerce_format(configured)
    if configured_format is not DEFAULT_FORMAT:
        return FormatResolution(format=configured_format)

    is_haiti = "HT" in str(getattr(national_system, "value", national_system)).upper()
    detected = detect_format_by_keyword(level_name, cycle_group_name, is_haiti)

    if detected is not None and detected is not DEFAULT_FORMAT:
        logger.warning(
            "Grade level %s (%r) has the default sheet format but its name suggests %s; "
            "using the detected format. Update the level's sheet_format.",
            level_id,
            level_name,
            detected.value,
        )
        return FormatResolution(format=detected, inferred=True)

    return FormatResolution(format=configured_format)
