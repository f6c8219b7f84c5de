import unittest
from datetime import date

import pytest

from career import CareerProfile
from key_dates import ScenarioKind
from params import Params
from serialization import to_record
from simulation import evaluate_at, simulate

AS_OF = date(2026, 1, 1)


def reference_profile(**overrides):
    data = dict(
        birth_date=date(1983, 5, 2),
        hire_date=date(2004, 1, 1),
        volunteer_years=25,
        indexed_grade=526,
        nbi_points=16,
        nbi_months=360,
    )
    data.update(overrides)
    return CareerProfile(**data)


class TestSimulate(unittest.TestCase):
    def setUp(self):
        self.params = Params()
        self.result = simulate(reference_profile(), AS_OF, self.params)

    def test_reference_profile_breakdown(self):
        result = self.result
        self.assertEqual(result.problems, [])
        self.assertEqual(result.params_version, self.params.version)
        self.assertEqual(result.duration.liquidable_quarters, 176)
        self.assertEqual(result.pension.gross_rate, 75.0)
        self.assertEqual(result.pension.decote_quarters, 0)
        self.assertFalse(result.pension.hazard.prorated)
        self.assertTrue(result.nbi.integrated)
        self.assertEqual(result.nbi.supplement_monthly, 0.0)
        self.assertEqual(result.rafp.years, 37)
        self.assertEqual(result.rafp.total_points, 15947)

    def test_combined_monthly_total(self):
        result = self.result
        expected = result.pension.gross_monthly + result.nbi.supplement_monthly + result.rafp.annuity_monthly
        self.assertAlmostEqual(result.total_monthly, round(expected, 2))
        self.assertAlmostEqual(result.total_monthly, 2562.29, delta=0.05)

    def test_full_rate_scenario_is_the_headline_pension(self):
        full_rate = self.result.scenario(ScenarioKind.FULL_RATE)
        self.assertEqual(full_rate.pension, self.result.pension)
        self.assertEqual(full_rate.duration, self.result.duration)

    def test_deferred_scenarios_have_break_even(self):
        self.assertEqual(len(self.result.break_even), 5)
        for analysis in self.result.break_even:
            self.assertIsNone(analysis.years_to_recover)

    def test_pfr_comparison_uses_full_rate_pension(self):
        comparison = self.result.pfr_comparison
        self.assertEqual(comparison.pension_monthly, self.result.pension.gross_monthly)
        self.assertEqual(comparison.rafp_monthly, self.result.rafp.annuity_monthly)
        self.assertAlmostEqual(comparison.pfr_monthly, 647.35, places=2)
        self.assertAlmostEqual(comparison.estimated_loss, 564.45, delta=0.02)
        self.assertGreater(comparison.replacement_rate, 0)
        self.assertLess(comparison.replacement_rate, 100)

    def test_age_limit_flag_without_surcote_quarters(self):
        limit = self.result.scenario(ScenarioKind.AGE_LIMIT)
        self.assertEqual(limit.departure_date, date(2047, 5, 2))
        self.assertTrue(limit.surcote)
        self.assertEqual(limit.surcote_quarters, 0)
        self.assertEqual(limit.pension.surcote_coefficient, 1.0)
        self.assertNotIn("surcote", limit.description)

    def test_idempotent(self):
        profile = reference_profile()
        first = simulate(profile, AS_OF, self.params)
        second = simulate(profile, AS_OF, self.params)
        self.assertEqual(first, second)
        self.assertEqual(to_record(first), to_record(second))

    def test_incomplete_profile_returns_problems(self):
        result = simulate(CareerProfile(None, date(2004, 1, 1), indexed_grade=526), AS_OF, self.params)
        self.assertIsNone(result.key_dates)
        self.assertEqual(result.scenarios, [])
        self.assertEqual(result.total_monthly, 0.0)
        self.assertTrue(result.problems)


def test_default_params_are_used():
    result = simulate(reference_profile(), AS_OF)
    assert result.params_version == Params.version


def test_insured_quarters_monotonic_in_departure_date():
    p = Params()
    profile = reference_profile(work_fraction=0.8, children_before_2004=1, other_scheme_quarters=6)
    previous = -1
    for year in range(2030, 2048):
        snapshot, _ = evaluate_at(profile, date(year, 5, 2), p)
        assert snapshot.insured_quarters >= previous
        previous = snapshot.insured_quarters


def test_prorated_nbi_adds_supplement():
    profile = reference_profile(nbi_points=20, nbi_months=60)
    result = simulate(profile, AS_OF)
    assert not result.nbi.integrated
    assert result.nbi.supplement_monthly > 0
    assert result.total_monthly == pytest.approx(
        result.pension.gross_monthly + result.nbi.supplement_monthly + result.rafp.annuity_monthly,
        abs=0.01,
    )


def test_declared_pfr_and_rafp_years_are_used():
    profile = reference_profile(pfr_annual=3000.0, rafp_years=10)
    result = simulate(profile, AS_OF)
    assert result.rafp.pfr_declared
    assert result.rafp.years == 10
    assert result.rafp.paid_as_capital


def test_short_career_has_decote_at_earliest():
    profile = CareerProfile(date(1980, 1, 1), date(2005, 1, 1), indexed_grade=500)
    result = simulate(profile, AS_OF)
    earliest = result.scenario(ScenarioKind.EARLIEST)
    full_rate = result.scenario(ScenarioKind.FULL_RATE)
    assert earliest.pension.decote_quarters == 16
    assert earliest.pension.gross_monthly < full_rate.pension.gross_monthly


if __name__ == '__main__':
    unittest.main()
