from __future__ import annotations
import logging
import math
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Callable, List, Optional, Tuple

from career import CareerProfile
from dates import add_quarters, add_years_months, age, months_between
from duration import DurationSnapshot, compute_duration, missing_quarters
from params import Params
from pension import PensionResult, apply_surcote, sedentary_age_date
from surcote import SurcoteResult, compute_surcote, deferred_dates

logger = logging.getLogger(__name__)

# Candidate departure date -> (duration, pension before surcote)
Evaluator = Callable[[date], Tuple[DurationSnapshot, PensionResult]]


class ScenarioKind(str, Enum):
    EARLIEST = "earliest"
    FULL_RATE = "full_rate"
    AGE_LIMIT = "age_limit"
    DEFERRED = "deferred"


class FullRateReach(str, Enum):
    DURATION = "duration"
    AGE = "age"  # decote cancelled by the sedentary legal age


@dataclass(frozen=True)
class EarlyEligibility:
    eligible: bool
    departure_date: date
    active_quarters: int  # civilian + military at the opening date
    reason: str = ""


@dataclass(frozen=True)
class KeyDates:
    opening_date: date
    decote_cancellation_date: date
    age_limit_date: date
    early: EarlyEligibility
    full_rate_date: date
    full_rate_by: FullRateReach
    full_rate_shortfall: int = 0


@dataclass(frozen=True)
class DepartureScenario:
    kind: ScenarioKind
    departure_date: date
    age: int
    age_months: int
    duration: DurationSnapshot
    pension: PensionResult
    gross_rate: float
    decote: bool
    decote_quarters: int
    surcote: bool
    surcote_quarters: int
    surcote_rate: float
    description: str
    deferred_years: int = 0
    full_rate_by: Optional[FullRateReach] = None
    monthly_gain: float = 0.0  # versus the full-rate pension

    @property
    def tag(self) -> str:
        if self.kind == ScenarioKind.DEFERRED:
            return f"deferred-{self.deferred_years}"
        return self.kind.value


def opening_date(birth_date: date, p: Params) -> date:
    years, months = p.legal_age(p.CATEGORY_ACTIVE, birth_date)
    return add_years_months(birth_date, years, months)


def age_limit_date(birth_date: date, p: Params) -> date:
    years, months = p.age_limit(birth_date)
    return add_years_months(birth_date, years, months)


def check_early_eligibility(
    profile: CareerProfile,
    opening: date,
    limit: date,
    p: Params,
) -> EarlyEligibility:
    """
    Check the 17 years of active service at the opening date.

    When short, project the date the condition is met: the missing quarters
    divided by the work fraction are added to the hire date, then refined
    quarter by quarter. The projection never goes past the age limit.
    """
    snapshot = compute_duration(profile, opening, profile.birth_year, p)
    if snapshot.active_condition_met:
        return EarlyEligibility(True, opening, snapshot.active_service_quarters)

    needed = p.min_active_quarters - profile.effective_military_quarters
    fraction = profile.work_fraction if profile.work_fraction > 0 else 0.0
    if profile.hire_date is None or fraction <= 0:
        projected = limit
    else:
        projected = add_quarters(profile.hire_date, int(math.ceil(needed / fraction)))
        while projected < limit:
            projection = compute_duration(profile, projected, profile.birth_year, p)
            if projection.active_condition_met:
                break
            projected = add_quarters(projected, 1)
    projected = max(min(projected, limit), opening)

    logger.info(f"17 years of active service not met at {opening}, earliest departure {projected}")
    return EarlyEligibility(
        eligible=False,
        departure_date=projected,
        active_quarters=snapshot.active_service_quarters,
        reason=(f"17 ans de services actifs non atteints a l'ouverture des droits "
                f"({snapshot.active_service_quarters} trimestres)"),
    )


def find_full_rate_date(
    profile: CareerProfile,
    start: date,
    bound: date,
    p: Params,
) -> Tuple[date, FullRateReach, int]:
    """
    First month from ``start`` where insured quarters reach the requirement.

    Returns:
        tuple: (date, how it was reached, quarters still missing at that date)
    """
    birth_year = profile.birth_year
    if start >= bound:
        snapshot = compute_duration(profile, start, birth_year, p)
        if snapshot.gap >= 0:
            return start, FullRateReach.DURATION, 0
        return start, FullRateReach.AGE, missing_quarters(snapshot)

    step = 0
    candidate = start
    while candidate <= bound:
        snapshot = compute_duration(profile, candidate, birth_year, p)
        if snapshot.gap >= 0:
            return candidate, FullRateReach.DURATION, 0
        step += 1
        candidate = add_years_months(start, 0, step)

    snapshot = compute_duration(profile, bound, birth_year, p)
    if snapshot.gap >= 0:
        return bound, FullRateReach.DURATION, 0
    shortfall = missing_quarters(snapshot)
    logger.info(f"Full rate by duration not reached before {bound}, {shortfall} quarters missing")
    return bound, FullRateReach.AGE, shortfall


def resolve_key_dates(profile: CareerProfile, as_of: date, p: Params) -> Optional[KeyDates]:
    if profile.birth_date is None or profile.hire_date is None:
        logger.debug("Cannot resolve key dates without birth and hire dates")
        return None
    birth = profile.birth_date
    opening = opening_date(birth, p)
    cancellation = sedentary_age_date(birth, p)
    limit = age_limit_date(birth, p)

    early = check_early_eligibility(profile, opening, limit, p)
    start = max(early.departure_date, as_of)
    full_rate, reached_by, shortfall = find_full_rate_date(profile, start, cancellation, p)

    if full_rate > limit:
        logger.warning(f"Full rate date {full_rate} after age limit {limit}, as-of date {as_of}")
        limit = full_rate

    return KeyDates(
        opening_date=opening,
        decote_cancellation_date=cancellation,
        age_limit_date=limit,
        early=early,
        full_rate_date=full_rate,
        full_rate_by=reached_by,
        full_rate_shortfall=shortfall,
    )


def _describe(kind: ScenarioKind, key_dates: KeyDates, decote_quarters: int,
              surcote: SurcoteResult, years: int = 0) -> str:
    if kind == ScenarioKind.EARLIEST:
        text = "Depart au plus tot"
        if decote_quarters > 0:
            text += f" (avec decote de {decote_quarters} trim.)"
        return text
    if kind == ScenarioKind.FULL_RATE:
        if key_dates.full_rate_by == FullRateReach.DURATION:
            return "Depart au taux plein (duree d'assurance atteinte)"
        text = "Depart au taux plein (annulation de la decote par l'age)"
        if key_dates.full_rate_shortfall > 0:
            text += f" - {key_dates.full_rate_shortfall} trim. manquants"
        return text
    if kind == ScenarioKind.AGE_LIMIT:
        text = "Depart a la limite d'age"
        if surcote.quarters > 0:
            text += f" (surcote +{surcote.quarters} trim.)"
        return text
    return f"Depart {years} an{'s' if years > 1 else ''} apres le taux plein (surcote {surcote.rate:.2f} %)"


def _scenario(
    kind: ScenarioKind,
    departure: date,
    profile: CareerProfile,
    key_dates: KeyDates,
    evaluate: Evaluator,
    p: Params,
    years: int = 0,
) -> DepartureScenario:
    snapshot, pension = evaluate(departure)
    surcote = compute_surcote(
        profile.birth_date,
        departure,
        snapshot.insured_quarters,
        snapshot.required_quarters,
        key_dates.full_rate_date,
        p,
    )
    pension = apply_surcote(pension, surcote.coefficient, p)

    if kind == ScenarioKind.AGE_LIMIT:
        has_surcote = (snapshot.insured_quarters > snapshot.required_quarters
                       and departure > key_dates.full_rate_date)
    else:
        has_surcote = surcote.quarters > 0

    return DepartureScenario(
        kind=kind,
        departure_date=departure,
        age=age(profile.birth_date, departure),
        age_months=months_between(profile.birth_date, departure) % 12,
        duration=snapshot,
        pension=pension,
        gross_rate=pension.gross_rate,
        decote=pension.decote_quarters > 0,
        decote_quarters=pension.decote_quarters,
        surcote=has_surcote,
        surcote_quarters=surcote.quarters,
        surcote_rate=surcote.rate,
        description=_describe(kind, key_dates, pension.decote_quarters, surcote, years),
        deferred_years=years,
        full_rate_by=key_dates.full_rate_by if kind == ScenarioKind.FULL_RATE else None,
    )


def deferred_scenarios(
    profile: CareerProfile,
    key_dates: KeyDates,
    full_rate: DepartureScenario,
    evaluate: Evaluator,
    p: Params,
) -> List[DepartureScenario]:
    """Departures one to ``p.deferred_max_years`` years after a full rate reached by duration."""
    if key_dates.full_rate_by != FullRateReach.DURATION:
        return []
    scenarios = []
    for years, departure in deferred_dates(key_dates.full_rate_date, key_dates.age_limit_date, p):
        scenario = _scenario(ScenarioKind.DEFERRED, departure, profile, key_dates, evaluate, p, years)
        gain = round(scenario.pension.gross_monthly - full_rate.pension.gross_monthly, 2)
        scenarios.append(replace(scenario, monthly_gain=gain))
    return scenarios


def build_scenarios(
    profile: CareerProfile,
    key_dates: KeyDates,
    evaluate: Evaluator,
    p: Params,
    include_deferred: bool = True,
) -> List[DepartureScenario]:
    """
    Earliest, full-rate and age-limit departures, then the deferred ones.

    Every date goes through ``evaluate`` so all scenarios share one
    duration and pension path.
    """
    earliest = _scenario(ScenarioKind.EARLIEST, key_dates.early.departure_date,
                         profile, key_dates, evaluate, p)
    full_rate = _scenario(ScenarioKind.FULL_RATE, key_dates.full_rate_date,
                          profile, key_dates, evaluate, p)
    limit = _scenario(ScenarioKind.AGE_LIMIT, key_dates.age_limit_date,
                      profile, key_dates, evaluate, p)
    scenarios = [earliest, full_rate, limit]
    if include_deferred:
        scenarios.extend(deferred_scenarios(profile, key_dates, full_rate, evaluate, p))
    return scenarios
