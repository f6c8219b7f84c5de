from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional

from dates import add_years_months, quarters_between
from duration import DurationSnapshot
from params import Params

logger = logging.getLogger(__name__)


def _cents(amount: float) -> float:
    return round(amount, 2)


@dataclass(frozen=True)
class Withholdings:
    csg: float = 0.0
    crds: float = 0.0
    casa: float = 0.0

    @property
    def total(self) -> float:
        return _cents(self.csg + self.crds + self.casa)


@dataclass(frozen=True)
class HazardMajoration:
    """Majoration de pension liee a la prime de feu."""

    annual: float = 0.0
    monthly: float = 0.0
    prorated: bool = False
    proration_rate: float = 0.0  # percent of the full majoration kept


@dataclass(frozen=True)
class PensionResult:
    salary_annual: float
    salary_monthly: float
    nbi_integrated: bool
    integrated_nbi_points: int
    gross_rate: float
    decote_quarters: int
    decote_coefficient: float
    net_rate: float
    hazard: HazardMajoration
    base_annual: float
    base_monthly: float
    guaranteed_minimum_monthly: float
    guaranteed_minimum_applied: bool
    gross_monthly: float
    gross_annual: float
    withholdings: Withholdings
    net_monthly: float
    surcote_coefficient: float = 1.0


def indexed_salary(grade: int, integrated_nbi_points: int, p: Params) -> float:
    """Traitement indiciaire brut annuel, NBI points included once integrated."""
    points = max(0, grade or 0) + max(0, integrated_nbi_points or 0)
    return points * p.point_value_annual


def gross_liquidation_rate(liquidable_quarters: int, required_quarters: int, p: Params) -> float:
    if not required_quarters or required_quarters <= 0:
        return 0.0
    rate = liquidable_quarters / required_quarters * p.full_rate
    return min(max(rate, 0.0), p.full_rate)


def sedentary_age_date(birth_date: date, p: Params) -> date:
    years, months = p.legal_age(p.CATEGORY_SEDENTARY, birth_date)
    return add_years_months(birth_date, years, months)


def decote_quarters(
    birth_date: Optional[date],
    departure_date: Optional[date],
    insured_quarters: int,
    required_quarters: int,
    p: Params,
) -> int:
    """
    Quarters of reduction at departure.

    The smaller of the duration shortfall and the quarters left before the
    cancellation age applies, capped. None once the cancellation age is reached.
    """
    if birth_date is None or departure_date is None:
        return 0
    cancellation = sedentary_age_date(birth_date, p)
    if departure_date >= cancellation:
        return 0
    short_duration = max(0, required_quarters - insured_quarters)
    short_age = quarters_between(departure_date, cancellation)
    return min(short_duration, short_age, p.decote_max_quarters)


def decote_coefficient(quarters: int, p: Params) -> float:
    if quarters <= 0:
        return 1.0
    return max(1 - quarters * p.decote_per_quarter / 100, p.decote_floor_coefficient)


def hazard_majoration(
    salary_annual: float,
    net_rate: float,
    snapshot: DurationSnapshot,
    required_quarters: int,
    hazard_eligible: bool,
    p: Params,
) -> HazardMajoration:
    """
    Majoration for the prime de feu: salary x hazard rate x net rate.

    Prorated by SPP service over liquidable quarters, unless SPP service
    plus its fifth bonus already covers the cohort's required duration.
    """
    if not hazard_eligible:
        return HazardMajoration()

    amount = salary_annual * p.hazard_rate / 100
    spp_quarters = snapshot.effective_quarters
    total_quarters = snapshot.liquidable_quarters
    exempt = spp_quarters + snapshot.fifth_bonus >= required_quarters

    prorated = False
    proration_rate = 100.0
    if not exempt and 0 < spp_quarters < total_quarters:
        proration_rate = spp_quarters / total_quarters * 100
        amount = amount * proration_rate / 100
        prorated = True

    annual = amount * net_rate / 100
    return HazardMajoration(
        annual=_cents(annual),
        monthly=_cents(annual / 12),
        prorated=prorated,
        proration_rate=_cents(proration_rate),
    )


def guaranteed_minimum(liquidable_quarters: int, required_quarters: int, p: Params) -> float:
    if not required_quarters or required_quarters <= 0:
        return 0.0
    ratio = min(max(liquidable_quarters, 0) / required_quarters, 1.0)
    return _cents(p.guaranteed_minimum_monthly * ratio)


def compute_withholdings(gross_monthly: float, p: Params) -> Withholdings:
    return Withholdings(
        csg=_cents(gross_monthly * p.csg / 100),
        crds=_cents(gross_monthly * p.crds / 100),
        casa=_cents(gross_monthly * p.casa / 100),
    )


def compute_pension(
    grade: int,
    snapshot: DurationSnapshot,
    required_quarters: int,
    birth_date: Optional[date],
    departure_date: Optional[date],
    integrated_nbi_points: int,
    hazard_eligible: bool,
    p: Params,
) -> PensionResult:
    """
    Liquidate the CNRACL pension for one departure date.

    Args:
        grade: Indice majore held for the last six months
        snapshot: Duration credited at departure
        required_quarters: Cohort's required duration
        birth_date: Agent's birth date
        departure_date: Candidate departure date
        integrated_nbi_points: NBI points added to the salary (held 15+ years)
        hazard_eligible: Whether the prime de feu majoration applies
        p: Regulatory parameters

    Returns:
        PensionResult: monthly and annual amounts rounded to cents
    """
    salary = indexed_salary(grade, integrated_nbi_points, p)
    gross_rate = gross_liquidation_rate(snapshot.liquidable_quarters, required_quarters, p)

    quarters = decote_quarters(
        birth_date, departure_date, snapshot.insured_quarters, required_quarters, p
    )
    coefficient = decote_coefficient(quarters, p)
    net_rate = gross_rate * coefficient

    base_annual = salary * net_rate / 100
    hazard = hazard_majoration(salary, net_rate, snapshot, required_quarters, hazard_eligible, p)

    total_monthly = _cents(base_annual / 12) + hazard.monthly
    minimum = guaranteed_minimum(snapshot.liquidable_quarters, required_quarters, p)
    minimum_applied = total_monthly < minimum
    if minimum_applied:
        logger.info(f"Guaranteed minimum {minimum:.2f} replaces computed pension {total_monthly:.2f}")
        total_monthly = minimum
    total_monthly = _cents(total_monthly)

    withholdings = compute_withholdings(total_monthly, p)
    return PensionResult(
        salary_annual=_cents(salary),
        salary_monthly=_cents(salary / 12),
        nbi_integrated=integrated_nbi_points > 0,
        integrated_nbi_points=max(0, integrated_nbi_points),
        gross_rate=round(gross_rate, 4),
        decote_quarters=quarters,
        decote_coefficient=round(coefficient, 4),
        net_rate=round(net_rate, 4),
        hazard=hazard,
        base_annual=_cents(base_annual),
        base_monthly=_cents(base_annual / 12),
        guaranteed_minimum_monthly=minimum,
        guaranteed_minimum_applied=minimum_applied,
        gross_monthly=total_monthly,
        gross_annual=_cents(total_monthly * 12),
        withholdings=withholdings,
        net_monthly=_cents(total_monthly - withholdings.total),
    )


def apply_surcote(result: PensionResult, coefficient: float, p: Params) -> PensionResult:
    """Return a copy with the surcote multiplier applied to the final amounts."""
    if coefficient <= 1.0:
        return result
    gross_monthly = _cents(result.gross_monthly * coefficient)
    withholdings = compute_withholdings(gross_monthly, p)
    return replace(
        result,
        gross_monthly=gross_monthly,
        gross_annual=_cents(gross_monthly * 12),
        withholdings=withholdings,
        net_monthly=_cents(gross_monthly - withholdings.total),
        surcote_coefficient=coefficient,
    )


def decote_cost_per_quarter(salary_annual: float, gross_rate: float, p: Params) -> float:
    """Monthly pension lost for each quarter of reduction."""
    return _cents(salary_annual * gross_rate / 100 * p.decote_per_quarter / 100 / 12)
