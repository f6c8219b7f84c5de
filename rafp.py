from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Optional

from dates import years_between
from params import Params

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RafpResult:
    """Retraite additionnelle de la fonction publique funded by the prime de feu."""

    salary_annual: float = 0.0
    pfr_annual: float = 0.0
    pfr_declared: bool = False
    pfr_rate: float = 0.0
    ceiling: float = 0.0
    contribution_base: float = 0.0
    ceiling_reached: bool = False
    agent_contribution: float = 0.0
    total_contribution: float = 0.0
    points_per_year: int = 0
    years: int = 0
    total_points: int = 0
    age_coefficient: float = 1.0
    annuity_annual: float = 0.0
    annuity_monthly: float = 0.0
    paid_as_capital: bool = False
    capital: float = 0.0


def theoretical_pfr(grade: int, p: Params) -> float:
    """Prime de feu at the statutory rate of the indexed salary."""
    return round(max(0, grade or 0) * p.point_value_annual * p.hazard_rate / 100, 2)


def contribution_years(hire_date: Optional[date], departure_date: Optional[date], p: Params) -> int:
    """Whole years contributed between the scheme's creation (or hiring) and departure."""
    if hire_date is None or departure_date is None:
        return 0
    start = max(hire_date, date(p.rafp_creation_year, 1, 1))
    return years_between(start, departure_date)


def compute_rafp(
    grade: int,
    pfr_annual: Optional[float],
    years: int,
    age_at_departure: int,
    p: Params,
) -> RafpResult:
    if not grade or grade <= 0:
        logger.debug("No indexed grade, RAFP left at zero")
        return RafpResult()

    salary = grade * p.point_value_annual
    declared = pfr_annual is not None and pfr_annual > 0
    pfr = pfr_annual if declared else theoretical_pfr(grade, p)

    ceiling = round(salary * p.rafp_base_ceiling / 100, 2)
    base = min(pfr, ceiling)
    agent = round(base * p.rafp_contribution_rate / 100, 2)
    total = agent * (1 + p.rafp_employer_match)
    points_per_year = int(math.ceil(total / p.rafp_acquisition_value)) if total > 0 else 0

    years = max(0, years or 0)
    total_points = points_per_year * years
    coefficient = p.age_coefficient(age_at_departure)
    annual = total_points * p.rafp_service_value * coefficient

    paid_as_capital = 0 < total_points < p.rafp_capital_threshold
    if paid_as_capital:
        logger.info(f"RAFP {total_points} points below {p.rafp_capital_threshold}, paid as capital")

    return RafpResult(
        salary_annual=round(salary, 2),
        pfr_annual=round(pfr, 2),
        pfr_declared=declared,
        pfr_rate=round(pfr / salary * 100, 2) if salary > 0 else 0.0,
        ceiling=ceiling,
        contribution_base=round(base, 2),
        ceiling_reached=pfr > ceiling,
        agent_contribution=agent,
        total_contribution=round(total, 2),
        points_per_year=points_per_year,
        years=years,
        total_points=total_points,
        age_coefficient=coefficient,
        annuity_annual=0.0 if paid_as_capital else round(annual, 2),
        annuity_monthly=0.0 if paid_as_capital else round(annual / 12, 2),
        paid_as_capital=paid_as_capital,
        capital=round(annual * p.rafp_capital_coefficient, 2) if paid_as_capital else 0.0,
    )


@dataclass(frozen=True)
class PfrComparison:
    """Retirement income against a pension that would have integrated the prime de feu."""

    pension_monthly: float = 0.0
    rafp_monthly: float = 0.0
    retirement_total: float = 0.0
    pfr_monthly: float = 0.0
    pension_if_integrated: float = 0.0
    estimated_loss: float = 0.0
    replacement_rate: float = 0.0


def compare_with_without_pfr(
    pension_monthly: float,
    rafp_monthly: float,
    pfr_monthly: float,
    p: Params,
) -> PfrComparison:
    """
    Compare the actual retirement income with a hypothetical pension on salary plus PFR.

    The prime de feu is not part of the liquidation base; only the RAFP
    annuity makes up for it. The hypothetical pension raises the base
    pension by the prime de feu rate.

    Args:
        pension_monthly: CNRACL gross monthly pension
        rafp_monthly: RAFP monthly annuity
        pfr_monthly: Prime de feu received each month while in activity
        p: Regulatory parameters

    Returns:
        PfrComparison: replacement rate in percent of activity income
    """
    total = pension_monthly + rafp_monthly
    hypothetical = pension_monthly * (1 + p.hazard_rate / 100)
    activity = pension_monthly + pfr_monthly
    return PfrComparison(
        pension_monthly=round(pension_monthly, 2),
        rafp_monthly=round(rafp_monthly, 2),
        retirement_total=round(total, 2),
        pfr_monthly=round(pfr_monthly, 2),
        pension_if_integrated=round(hypothetical, 2),
        estimated_loss=round(hypothetical - total, 2),
        replacement_rate=round(total / activity * 100, 2) if activity > 0 else 0.0,
    )
