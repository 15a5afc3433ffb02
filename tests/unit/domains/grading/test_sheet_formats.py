# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for sheet format resolution."""

import logging

import pytest

from src.domains.grading.formats import (
    DEFAULT_FORMAT,
    NationalSystem,
    SheetFormat,
    detect_format_by_keyword,
    resolve_format,
)


class TestSheetFormat:
    """Tests for SheetFormat properties."""

    @pytest.mark.parametrize(
        "sheet_format,expected",
        [
            (SheetFormat.PRIMARY_HT, 3),
            (SheetFormat.SECONDARY_HT, 3),
            (SheetFormat.PRIMARY_DO, 4),
            (SheetFormat.VOCATIONAL_DO, 4),
        ],
    )
    def test_period_count(self, sheet_format, expected):
        """Haitian formats have three periods, Dominican ones four."""
        assert sheet_format.period_count == expected

    def test_only_vocational_uses_technical_modules(self):
        assert SheetFormat.VOCATIONAL_DO.uses_technical_modules
        assert not SheetFormat.SECONDARY_DO.uses_technical_modules

    def test_default_is_secondary_do(self):
        assert DEFAULT_FORMAT is SheetFormat.SECONDARY_DO


class TestDetectFormatByKeyword:
    """Tests for keyword-based detection."""

    def test_accents_are_ignored(self):
        assert (
            detect_format_by_keyword("Préscolaire 2", None, is_haiti=True)
            is SheetFormat.INITIAL_HT
        )

    def test_cycle_group_name_is_checked(self):
        assert (
            detect_format_by_keyword("3e Année", "Cycle Fondamental", is_haiti=True)
            is SheetFormat.PRIMARY_HT
        )

    def test_no_match_returns_none(self):
        assert detect_format_by_keyword("4to A", None, is_haiti=False) is None

    def test_empty_names(self):
        assert detect_format_by_keyword(None, None, is_haiti=False) is None


class TestResolveFormat:
    """Tests for resolve_format."""

    def test_explicit_format_is_trusted(self):
        """A non-default format is used even if the name disagrees."""
        resolution = resolve_format("PRIMARIA_DO", "5to Secundaria", None, "DO")

        assert resolution.format is SheetFormat.PRIMARY_DO
        assert not resolution.inferred

    def test_default_format_overridden_by_name(self, caplog):
        with caplog.at_level(logging.WARNING, logger="src.domains.grading.formats"):
            resolution = resolve_format(
                "SECUNDARIA_DO", "1ro Primaria", None, "DO", level_id="lvl-1"
            )

        assert resolution.format is SheetFormat.PRIMARY_DO
        assert resolution.inferred
        assert resolution.period_count == 4
        assert "lvl-1" in caplog.text

    def test_haiti_secondary_is_inferred(self):
        resolution = resolve_format(
            SheetFormat.SECONDARY_DO, "Secondaire 1", None, NationalSystem.HT
        )

        assert resolution.format is SheetFormat.SECONDARY_HT
        assert resolution.inferred
        assert resolution.is_haiti
        assert resolution.period_count == 3

    def test_matching_default_is_not_inferred(self):
        resolution = resolve_format("SECUNDARIA_DO", "3ro Secundaria", None, "DO")

        assert resolution.format is SheetFormat.SECONDARY_DO
        assert not resolution.inferred

    def test_vocational_detected(self):
        resolution = resolve_format(None, "5to Politécnico", None, "DO")

        assert resolution.format is SheetFormat.VOCATIONAL_DO
        assert resolution.uses_technical_modules

    def test_unknown_value_falls_back_to_default(self, caplog):
        with caplog.at_level(logging.WARNING, logger="src.domains.grading.formats"):
            resolution = resolve_format("BOGUS", "4to A", None, "DO")

        assert resolution.format is DEFAULT_FORMAT
        assert not resolution.inferred
        assert "BOGUS" in caplog.text
