# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for grade aggregation rules."""

from types import SimpleNamespace

import pytest

from src.domains.grading.aggregator import (
    PeriodScores,
    competency_period_score,
    completiva,
    compute_subject_result,
    extraordinaria,
    final_grade,
    period_score,
    round_half_up,
    situation,
    situation_label,
    subject_period_scores,
)


def scores(p=(None, None, None, None), rp=(None, None, None, None)) -> PeriodScores:
    return PeriodScores(regular=tuple(p), remediation=tuple(rp))


class TestRounding:
    """Tests for half-up rounding."""

    @pytest.mark.parametrize(
        "value,expected",
        [(69.5, 70), (69.49, 69), (70.5, 71), (0.5, 1), (85, 85)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestPeriodScore:
    """Tests for single-period scoring."""

    def test_remediation_replaces_lower_regular(self):
        assert period_score(60, 75) == 75

    def test_remediation_never_lowers(self):
        assert period_score(80, 75) == 80

    def test_missing_and_zero_are_not_entered(self):
        assert period_score(None, None) == 0
        assert period_score(0, None) == 0
        assert period_score(None, 65) == 65

    def test_from_row(self):
        row = SimpleNamespace(p1=80, p2=None, p3=70, p4=90, rp1=None, rp2=75, rp3=None, rp4=None)

        result = PeriodScores.from_row(row)

        assert result.score(1) == 80
        assert result.score(2) == 75
        assert result.has_entries()

    def test_has_entries_false_for_empty(self):
        assert not scores().has_entries()


class TestCompetencyScores:
    """Tests for competency-based period scores."""

    def test_mean_excludes_competencies_without_entry(self):
        competencies = [scores(p=(80, None, None, None)), scores(p=(0, None, None, None))]

        assert competency_period_score(competencies, 1) == 80

    def test_mean_is_rounded_half_up(self):
        competencies = [scores(p=(80, None, None, None)), scores(p=(75, None, None, None))]

        assert competency_period_score(competencies, 1) == 78

    def test_each_competency_uses_its_best_attempt(self):
        competencies = [
            scores(p=(60, None, None, None), rp=(90, None, None, None)),
            scores(p=(70, None, None, None)),
        ]

        assert competency_period_score(competencies, 1) == 80

    def test_no_entries_is_zero(self):
        assert competency_period_score([scores(), scores()], 1) == 0

    def test_competencies_take_precedence_over_general(self):
        general = scores(p=(50, 50, 50, 50))
        competencies = [scores(p=(90, 90, 90, 90))]

        assert subject_period_scores(general, competencies, 4) == [90, 90, 90, 90]

    def test_no_rows_gives_zeros(self):
        assert subject_period_scores(None, [], 3) == [0, 0, 0]


class TestFinalGrade:
    """Tests for CF computation."""

    def test_dominican_needs_all_four_periods(self):
        assert final_grade([80, 90, 70, 0], is_haiti=False) == 0
        assert final_grade([80, 90, 70, 60], is_haiti=False) == 75

    def test_haiti_uses_three_periods(self):
        assert final_grade([70, 80, 90], is_haiti=True) == 80
        assert final_grade([70, 80, 0], is_haiti=True) == 0

    def test_half_is_rounded_up(self):
        assert final_grade([69, 70, 69, 70], is_haiti=False) == 70


class TestSituation:
    """Tests for situation codes and labels."""

    @pytest.mark.parametrize(
        "grade,expected", [(0, ""), (69, "R"), (69.9, "R"), (70, "A"), (100, "A")]
    )
    def test_thresholds(self, grade, expected):
        assert situation(grade) == expected

    def test_labels(self):
        assert situation_label("A", is_haiti=False) == "Aprobado"
        assert situation_label("R", is_haiti=False) == "Reprobado"
        assert situation_label("A", is_haiti=True) == "Admis"
        assert situation_label("R", is_haiti=True) == "Échec"
        assert situation_label("", is_haiti=False) == ""


class TestMakeupExams:
    """Tests for completiva and extraordinaria."""

    def test_completiva_not_triggered_when_passing(self):
        assert completiva(70, 90) is None

    def test_completiva_not_triggered_without_cf(self):
        assert completiva(0, 90) is None

    def test_completiva_pending_exam(self):
        result = completiva(61, None)

        assert result.component == 31
        assert result.exam_score is None
        assert result.total is None

    def test_completiva_total(self):
        result = completiva(60, 80)

        assert result.component == 30
        assert result.total == 70

    def test_extraordinaria_requires_failed_completiva(self):
        assert extraordinaria(60, None, 90) is None
        assert extraordinaria(60, 70, 90) is None

    def test_extraordinaria_total(self):
        result = extraordinaria(60, 55, 80)

        assert result.component == 18
        assert result.total == 74


class TestComputeSubjectResult:
    """End-to-end derivation for one subject cell."""

    def test_passing_cf_is_final(self):
        result = compute_subject_result(scores(p=(80, 80, 80, 80)), [], 95, None, is_haiti=False)

        assert result.cf == 80
        assert result.completiva is None
        assert result.final_grade == 80
        assert result.situation == "A"

    def test_completiva_rescues_grade(self):
        result = compute_subject_result(scores(p=(60, 60, 60, 60)), [], 80, None, is_haiti=False)

        assert result.cf == 60
        assert result.completiva.total == 70
        assert result.extraordinaria is None
        assert result.final_grade == 70
        assert result.situation == "A"

    def test_failed_completiva_without_extraordinaria_score(self):
        result = compute_subject_result(scores(p=(60, 60, 60, 60)), [], 50, None, is_haiti=False)

        assert result.completiva.total == 55
        assert result.extraordinaria is not None
        assert result.extraordinaria.total is None
        assert result.final_grade == 55
        assert result.situation == "R"

    def test_extraordinaria_decides(self):
        result = compute_subject_result(scores(p=(60, 60, 60, 60)), [], 50, 80, is_haiti=False)

        assert result.final_grade == 74
        assert result.situation == "A"

    def test_failing_without_makeup_scores(self):
        result = compute_subject_result(scores(p=(60, 60, 60, 60)), [], None, None, is_haiti=False)

        assert result.final_grade == 60
        assert result.situation == "R"

    def test_haiti_ignores_makeup_exams(self):
        result = compute_subject_result(scores(p=(60, 60, 60, None)), [], 90, 90, is_haiti=True)

        assert result.period_scores == [60, 60, 60]
        assert result.cf == 60
        assert result.completiva is None
        assert result.extraordinaria is None
        assert result.final_grade == 60

    def test_incomplete_periods_are_pending(self):
        result = compute_subject_result(scores(p=(90, 90, 90, None)), [], None, None, is_haiti=False)

        assert result.cf == 0
        assert result.final_grade == 0
        assert result.situation == ""
