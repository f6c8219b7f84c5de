from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

from dates import add_years_months, quarters_between
from params import Params
from pension import sedentary_age_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SurcoteResult:
    eligible: bool = False
    start_date: Optional[date] = None
    quarters: int = 0
    rate: float = 0.0  # percent, uncapped
    coefficient: float = 1.0
    reason: str = ""


@dataclass(frozen=True)
class BreakEven:
    extra_years: int
    forgone_pensions: float
    annual_gain: float
    years_to_recover: Optional[int]  # None when the surcote brings nothing
    worthwhile: bool


def check_eligibility(
    birth_date: date,
    departure_date: date,
    insured_quarters: int,
    required_quarters: int,
    p: Params,
) -> Tuple[bool, str]:
    """The surcote needs both the sedentary legal age and the required duration."""
    legal_date = sedentary_age_date(birth_date, p)
    if departure_date < legal_date:
        years, months = p.legal_age(p.CATEGORY_SEDENTARY, birth_date)
        return False, f"Age legal sedentaire non atteint ({years} ans {months} mois)"
    if insured_quarters < required_quarters:
        return False, (f"Duree d'assurance insuffisante ({insured_quarters} trimestres, "
                       f"requis : {required_quarters})")
    return True, ""


def surcote_start_date(birth_date: date, full_rate_date: date, p: Params) -> date:
    """Later of the full-rate date and the sedentary legal age date."""
    return max(full_rate_date, sedentary_age_date(birth_date, p))


def compute_surcote(
    birth_date: Optional[date],
    departure_date: Optional[date],
    insured_quarters: int,
    required_quarters: int,
    full_rate_date: Optional[date],
    p: Params,
) -> SurcoteResult:
    if birth_date is None or departure_date is None or full_rate_date is None:
        return SurcoteResult(reason="Dates manquantes")

    eligible, reason = check_eligibility(
        birth_date, departure_date, insured_quarters, required_quarters, p
    )
    if not eligible:
        return SurcoteResult(reason=reason)

    start = surcote_start_date(birth_date, full_rate_date, p)
    quarters = quarters_between(start, departure_date)
    rate = quarters * p.surcote_per_quarter
    return SurcoteResult(
        eligible=True,
        start_date=start,
        quarters=quarters,
        rate=round(rate, 2),
        coefficient=round(1 + rate / 100, 4),
    )


def deferred_dates(
    full_rate_date: date,
    age_limit_date: date,
    p: Params,
) -> List[Tuple[int, date]]:
    """Departure dates 1..``p.deferred_max_years`` after the full rate, stopping past the age limit."""
    dates = []
    for years in range(1, p.deferred_max_years + 1):
        candidate = add_years_months(full_rate_date, years)
        if candidate > age_limit_date:
            break
        dates.append((years, candidate))
    return dates


def surcote_break_even(
    pension_without: float,
    pension_with: float,
    extra_years: int,
    p: Params,
) -> BreakEven:
    """
    Years of retirement needed before working longer pays off.

    Args:
        pension_without: Monthly pension when leaving at the full rate
        pension_with: Monthly pension after the surcote
        extra_years: Years worked beyond the full rate
        p: Regulatory parameters, ``break_even_horizon_years`` is the recovery
            period considered worthwhile

    Returns:
        BreakEven: ``years_to_recover`` is None when there is no gain
    """
    forgone = pension_without * 12 * max(0, extra_years)
    gain = (pension_with - pension_without) * 12
    years = int(math.ceil(forgone / gain)) if gain > 0 else None
    return BreakEven(
        extra_years=extra_years,
        forgone_pensions=round(forgone, 2),
        annual_gain=round(gain, 2),
        years_to_recover=years,
        worthwhile=years is not None and years < p.break_even_horizon_years,
    )
