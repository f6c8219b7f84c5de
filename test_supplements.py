import unittest
from datetime import date

import pytest

from duration import DurationSnapshot
from nbi import activity_value, compare_activity_retirement, compute_nbi, integrated_points
from params import Params
from pension import apply_surcote, compute_pension
from rafp import compare_with_without_pfr, compute_rafp, contribution_years, theoretical_pfr
from surcote import (
    check_eligibility,
    compute_surcote,
    deferred_dates,
    surcote_break_even,
    surcote_start_date,
)


class TestNbi(unittest.TestCase):
    def setUp(self):
        self.params = Params()

    def test_fifteen_years_is_integrated(self):
        result = compute_nbi(16, 180, 160, 75.0, self.params)
        self.assertTrue(result.eligible)
        self.assertTrue(result.integrated)
        self.assertEqual(result.supplement_monthly, 0.0)
        self.assertEqual(integrated_points(16, 180, self.params), 16)

    def test_one_month_short_is_prorated(self):
        result = compute_nbi(16, 179, 160, 75.0, self.params)
        self.assertTrue(result.eligible)
        self.assertFalse(result.integrated)
        self.assertAlmostEqual(result.weighted_points, 5.97)
        expected = 5.97 * 59.07336 * 0.75 / 12
        self.assertAlmostEqual(result.supplement_monthly, round(expected, 2))
        self.assertEqual(integrated_points(16, 179, self.params), 0)

    def test_proration_is_capped_at_whole_career(self):
        result = compute_nbi(20, 120, 30, 60.0, self.params)
        self.assertAlmostEqual(result.weighted_points, 20.0)

    def test_less_than_a_year_is_not_eligible(self):
        result = compute_nbi(16, 11, 160, 75.0, self.params)
        self.assertFalse(result.eligible)
        self.assertEqual(result.supplement_annual, 0.0)

    def test_activity_comparison(self):
        self.assertAlmostEqual(activity_value(16, self.params), 78.76)
        comparison = compare_activity_retirement(16, 39.38, self.params)
        self.assertAlmostEqual(comparison.difference, -39.38)
        self.assertAlmostEqual(comparison.retention_rate, 50.0)
        self.assertEqual(compare_activity_retirement(0, 0.0, self.params).retention_rate, 0.0)


class TestRafp(unittest.TestCase):
    def setUp(self):
        self.params = Params()

    def test_theoretical_pfr_is_quarter_of_salary(self):
        self.assertAlmostEqual(theoretical_pfr(526, self.params), 7768.15)

    def test_reference_career(self):
        result = compute_rafp(526, None, 37, 59, self.params)
        self.assertFalse(result.pfr_declared)
        self.assertTrue(result.ceiling_reached)
        self.assertAlmostEqual(result.contribution_base, 6214.52)
        self.assertAlmostEqual(result.agent_contribution, 310.73)
        self.assertEqual(result.points_per_year, 431)
        self.assertEqual(result.total_points, 15947)
        self.assertAlmostEqual(result.age_coefficient, 0.91)
        self.assertAlmostEqual(result.annuity_monthly, 60.90)
        self.assertFalse(result.paid_as_capital)

    def test_small_account_is_paid_as_capital(self):
        result = compute_rafp(526, 3000.0, 10, 62, self.params)
        self.assertTrue(result.pfr_declared)
        self.assertFalse(result.ceiling_reached)
        self.assertEqual(result.points_per_year, 208)
        self.assertEqual(result.total_points, 2080)
        self.assertTrue(result.paid_as_capital)
        self.assertEqual(result.annuity_monthly, 0.0)
        self.assertAlmostEqual(result.capital, 2513.97)

    def test_age_coefficient_clamped_for_late_departure(self):
        result = compute_rafp(526, None, 37, 72, self.params)
        self.assertAlmostEqual(result.age_coefficient, 1.37)

    def test_no_grade_gives_empty_result(self):
        self.assertEqual(compute_rafp(0, None, 20, 62, self.params).total_points, 0)

    def test_contribution_years(self):
        self.assertEqual(contribution_years(date(2000, 1, 1), date(2042, 5, 2), self.params), 37)
        self.assertEqual(contribution_years(date(2010, 6, 1), date(2040, 6, 1), self.params), 30)
        self.assertEqual(contribution_years(None, date(2040, 6, 1), self.params), 0)

    def test_employer_match_from_params(self):
        self.params.rafp_employer_match = 0.0
        result = compute_rafp(526, None, 37, 59, self.params)
        self.assertAlmostEqual(result.total_contribution, 310.73)
        self.assertEqual(result.points_per_year, 216)

    def test_pfr_comparison(self):
        comparison = compare_with_without_pfr(2000.0, 100.0, 500.0, self.params)
        self.assertAlmostEqual(comparison.retirement_total, 2100.0)
        self.assertAlmostEqual(comparison.pension_if_integrated, 2500.0)
        self.assertAlmostEqual(comparison.estimated_loss, 400.0)
        self.assertAlmostEqual(comparison.replacement_rate, 84.0)

    def test_pfr_comparison_without_income(self):
        comparison = compare_with_without_pfr(0.0, 0.0, 0.0, self.params)
        self.assertEqual(comparison.replacement_rate, 0.0)
        self.assertEqual(comparison.estimated_loss, 0.0)


class TestSurcote(unittest.TestCase):
    def setUp(self):
        self.params = Params()
        # Sedentary legal age 62 for this cohort: 2022-01-01
        self.birth = date(1960, 1, 1)

    def test_two_years_after_full_rate(self):
        result = compute_surcote(self.birth, date(2025, 1, 1), 175, 167, date(2023, 1, 1), self.params)
        self.assertTrue(result.eligible)
        self.assertEqual(result.start_date, date(2023, 1, 1))
        self.assertEqual(result.quarters, 8)
        self.assertAlmostEqual(result.rate, 8 * 1.25)
        self.assertAlmostEqual(result.coefficient, 1.10)

    def test_applied_multiplicatively_to_full_rate_pension(self):
        snap = DurationSnapshot(
            effective_quarters=150, fifth_bonus=20, liquidable_quarters=170,
            insured_quarters=170, required_quarters=167, gap=3,
        )
        full_rate = compute_pension(500, snap, 167, self.birth, date(2023, 1, 1), 0, True, self.params)
        surcote = compute_surcote(self.birth, date(2025, 1, 1), 175, 167, date(2023, 1, 1), self.params)
        increased = apply_surcote(full_rate, surcote.coefficient, self.params)
        self.assertAlmostEqual(increased.gross_monthly, full_rate.gross_monthly * 1.10, places=1)
        self.assertNotAlmostEqual(increased.gross_monthly, full_rate.gross_monthly + 10.0, places=1)

    def test_start_is_sedentary_age_when_full_rate_earlier(self):
        self.assertEqual(surcote_start_date(self.birth, date(2019, 1, 1), self.params), date(2022, 1, 1))
        result = compute_surcote(self.birth, date(2023, 1, 1), 180, 167, date(2019, 1, 1), self.params)
        self.assertEqual(result.quarters, 4)

    def test_active_opening_age_is_not_enough(self):
        eligible, reason = check_eligibility(self.birth, date(2019, 1, 1), 180, 167, self.params)
        self.assertFalse(eligible)
        self.assertIn("sedentaire", reason)

    def test_duration_required(self):
        result = compute_surcote(self.birth, date(2024, 1, 1), 160, 167, date(2022, 1, 1), self.params)
        self.assertFalse(result.eligible)
        self.assertEqual(result.coefficient, 1.0)

    def test_surcote_is_uncapped(self):
        result = compute_surcote(self.birth, date(2032, 1, 1), 200, 167, date(2022, 1, 1), self.params)
        self.assertEqual(result.quarters, 40)
        self.assertAlmostEqual(result.rate, 50.0)

    def test_missing_dates(self):
        self.assertFalse(compute_surcote(None, date(2025, 1, 1), 200, 167, None, self.params).eligible)


def test_deferred_dates_stop_at_age_limit():
    p = Params()
    dates = deferred_dates(date(2042, 5, 2), date(2045, 1, 1), p)
    assert dates == [(1, date(2043, 5, 2)), (2, date(2044, 5, 2))]
    assert len(deferred_dates(date(2020, 1, 1), date(2030, 1, 1), p)) == 5


def test_deferred_dates_follow_params_horizon():
    p = Params()
    p.deferred_max_years = 2
    assert deferred_dates(date(2020, 1, 1), date(2030, 1, 1), p) == [
        (1, date(2021, 1, 1)),
        (2, date(2022, 1, 1)),
    ]


def test_break_even():
    p = Params()
    analysis = surcote_break_even(2000.0, 2500.0, 2, p)
    assert analysis.forgone_pensions == 48000.0
    assert analysis.annual_gain == 6000.0
    assert analysis.years_to_recover == 8
    assert analysis.worthwhile

    slow = surcote_break_even(2000.0, 2200.0, 2, p)
    assert slow.years_to_recover == 20
    assert not slow.worthwhile

    p.break_even_horizon_years = 25
    assert surcote_break_even(2000.0, 2200.0, 2, p).worthwhile


def test_break_even_without_gain():
    analysis = surcote_break_even(2000.0, 2000.0, 1, Params())
    assert analysis.years_to_recover is None
    assert not analysis.worthwhile
    assert analysis.annual_gain == pytest.approx(0.0)


if __name__ == '__main__':
    unittest.main()
