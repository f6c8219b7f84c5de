from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

from career import CareerProfile, validate_profile
from dates import age
from duration import DurationSnapshot, compute_duration
from key_dates import (
    DepartureScenario,
    KeyDates,
    ScenarioKind,
    build_scenarios,
    resolve_key_dates,
)
from nbi import NbiComparison, NbiResult, compare_activity_retirement, compute_nbi, integrated_points
from params import Params
from pension import PensionResult, compute_pension
from rafp import PfrComparison, RafpResult, compare_with_without_pfr, compute_rafp, contribution_years
from surcote import BreakEven, surcote_break_even

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationResult:
    as_of: date
    params_version: str
    problems: List[str] = field(default_factory=list)
    key_dates: Optional[KeyDates] = None
    scenarios: List[DepartureScenario] = field(default_factory=list)
    duration: Optional[DurationSnapshot] = None
    pension: Optional[PensionResult] = None
    nbi: Optional[NbiResult] = None
    nbi_comparison: Optional[NbiComparison] = None
    rafp: Optional[RafpResult] = None
    pfr_comparison: Optional[PfrComparison] = None
    break_even: List[BreakEven] = field(default_factory=list)
    total_monthly: float = 0.0

    def scenario(self, kind: ScenarioKind) -> Optional[DepartureScenario]:
        for scenario in self.scenarios:
            if scenario.kind == kind:
                return scenario
        return None


def evaluate_at(
    profile: CareerProfile,
    departure: date,
    p: Params,
    hazard_eligible: bool = True,
) -> Tuple[DurationSnapshot, PensionResult]:
    """Duration and pension (before surcote) for one departure date."""
    snapshot = compute_duration(profile, departure, profile.birth_year, p)
    pension = compute_pension(
        profile.indexed_grade,
        snapshot,
        snapshot.required_quarters,
        profile.birth_date,
        departure,
        integrated_points(profile.nbi_points, profile.nbi_months, p),
        hazard_eligible,
        p,
    )
    return snapshot, pension


def simulate(profile: CareerProfile, as_of: date, p: Optional[Params] = None) -> SimulationResult:
    """
    Run the whole estimate for a profile.

    Args:
        profile: Career to estimate
        as_of: Date treated as today; searches never start before it
        p: Regulatory parameters, defaults to the compiled-in tables

    Returns:
        SimulationResult: empty apart from ``problems`` when dates are missing
    """
    p = p or Params()
    problems = validate_profile(profile, p, as_of)
    for problem in problems:
        logger.warning(f"Profile problem: {problem}")

    key_dates = resolve_key_dates(profile, as_of, p)
    if key_dates is None:
        return SimulationResult(as_of=as_of, params_version=p.version, problems=problems)

    def evaluate(departure: date) -> Tuple[DurationSnapshot, PensionResult]:
        return evaluate_at(profile, departure, p)

    scenarios = build_scenarios(profile, key_dates, evaluate, p)
    full_rate = next(s for s in scenarios if s.kind == ScenarioKind.FULL_RATE)

    nbi = compute_nbi(
        profile.nbi_points,
        profile.nbi_months,
        full_rate.duration.active_service_quarters,
        full_rate.pension.net_rate,
        p,
    )
    nbi_comparison = compare_activity_retirement(profile.nbi_points, nbi.supplement_monthly, p)

    years = profile.rafp_years
    if years is None:
        years = contribution_years(profile.hire_date, full_rate.departure_date, p)
    rafp = compute_rafp(
        profile.indexed_grade,
        profile.pfr_annual,
        years,
        age(profile.birth_date, full_rate.departure_date),
        p,
    )
    pfr_comparison = compare_with_without_pfr(
        full_rate.pension.gross_monthly, rafp.annuity_monthly, rafp.pfr_annual / 12, p
    )

    break_even = [
        surcote_break_even(full_rate.pension.gross_monthly, s.pension.gross_monthly, s.deferred_years, p)
        for s in scenarios
        if s.kind == ScenarioKind.DEFERRED
    ]

    total = full_rate.pension.gross_monthly + nbi.supplement_monthly + rafp.annuity_monthly
    return SimulationResult(
        as_of=as_of,
        params_version=p.version,
        problems=problems,
        key_dates=key_dates,
        scenarios=scenarios,
        duration=full_rate.duration,
        pension=full_rate.pension,
        nbi=nbi,
        nbi_comparison=nbi_comparison,
        rafp=rafp,
        pfr_comparison=pfr_comparison,
        break_even=break_even,
        total_monthly=round(total, 2),
    )
