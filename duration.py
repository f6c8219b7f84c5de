from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Optional

from career import CareerProfile
from dates import quarters_between
from params import Params

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DurationSnapshot:
    """Quarters credited at one candidate departure date."""

    effective_quarters: int = 0
    fifth_bonus: int = 0
    children_bonus: int = 0
    volunteer_majoration: int = 0
    military_quarters: int = 0
    military_fifth_bonus: int = 0
    other_scheme_quarters: int = 0
    liquidable_quarters: int = 0
    insured_quarters: int = 0
    required_quarters: int = 0
    gap: int = 0
    active_condition_met: bool = False
    pension_right_met: bool = False

    @property
    def active_service_quarters(self) -> int:
        return self.effective_quarters + self.military_quarters

    @property
    def bonus_quarters(self) -> int:
        return (self.fifth_bonus + self.children_bonus + self.volunteer_majoration
                + self.military_fifth_bonus)


def fifth_bonus(quarters: int, p: Params) -> int:
    """One quarter for every five of service, capped."""
    if quarters <= 0:
        return 0
    return min(quarters // p.fifth_bonus_ratio, p.fifth_bonus_cap)


def effective_quarters(hire_date: Optional[date], as_of: Optional[date],
                       work_fraction: float) -> int:
    fraction = work_fraction if work_fraction and work_fraction > 0 else 0.0
    return int(math.floor(quarters_between(hire_date, as_of) * fraction))


def compute_duration(
    profile: CareerProfile,
    as_of: Optional[date],
    birth_year: Optional[int],
    p: Params,
) -> DurationSnapshot:
    """
    Aggregate every quarter the career earns up to ``as_of``.

    Args:
        profile: Career being evaluated
        as_of: Candidate departure date
        birth_year: Cohort used for the required duration
        p: Regulatory parameters

    Returns:
        DurationSnapshot: all zero when a date is missing
    """
    if profile.hire_date is None or profile.birth_date is None or as_of is None:
        logger.debug("Missing birth/hire/as-of date, returning empty snapshot")
        return DurationSnapshot()
    required = p.required_quarters(birth_year)
    if as_of < profile.hire_date:
        logger.warning(f"Evaluation date {as_of} precedes hire date {profile.hire_date}")
        return DurationSnapshot(required_quarters=required, gap=-required)

    effective = effective_quarters(profile.hire_date, as_of, profile.work_fraction)
    military = profile.effective_military_quarters
    children = max(0, profile.children_before_2004) * p.child_bonus_quarters
    volunteer = p.volunteer_majoration(profile.volunteer_years)
    other = max(0, profile.other_scheme_quarters)

    civil_fifth = fifth_bonus(effective, p)
    military_fifth = fifth_bonus(military, p)

    liquidable = effective + civil_fifth + children + volunteer + military + military_fifth
    insured = liquidable + other
    active = effective + military

    return DurationSnapshot(
        effective_quarters=effective,
        fifth_bonus=civil_fifth,
        children_bonus=children,
        volunteer_majoration=volunteer,
        military_quarters=military,
        military_fifth_bonus=military_fifth,
        other_scheme_quarters=other,
        liquidable_quarters=liquidable,
        insured_quarters=insured,
        required_quarters=required,
        gap=insured - required,
        active_condition_met=active >= p.min_active_quarters,
        pension_right_met=active >= p.min_pension_quarters,
    )


def missing_quarters(snapshot: DurationSnapshot) -> int:
    return max(0, -snapshot.gap)


def surplus_quarters(snapshot: DurationSnapshot) -> int:
    return max(0, snapshot.gap)
