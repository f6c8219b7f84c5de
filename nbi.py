"""
Nouvelle bonification indiciaire (NBI).

Points held 15 years or more are integrated into the indexed salary used
for liquidation. Points held between one and fifteen years give a separate
supplement, prorated by the share of the career they were paid for.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

from params import Params

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NbiResult:
    eligible: bool
    points: int
    months_held: int
    integrated: bool = False
    weighted_points: float = 0.0
    supplement_monthly: float = 0.0
    supplement_annual: float = 0.0


@dataclass(frozen=True)
class NbiComparison:
    activity_monthly: float
    retirement_monthly: float
    difference: float
    retention_rate: float  # percent of the activity value kept in retirement


def is_integrated(months_held: int, p: Params) -> bool:
    return months_held >= p.nbi_integration_years * 12


def integrated_points(points: int, months_held: int, p: Params) -> int:
    """Points to add to the indexed grade, 0 unless held long enough."""
    if points <= 0 or not is_integrated(months_held, p):
        return 0
    return points


def weighted_points(points: int, months_held: int, service_quarters: int, p: Params) -> float:
    if points <= 0 or months_held <= 0 or service_quarters <= 0:
        return 0.0
    if is_integrated(months_held, p):
        return float(points)
    ratio = min(months_held / (service_quarters * 3), 1.0)
    return round(points * ratio, 2)


def compute_nbi(
    points: int,
    months_held: int,
    service_quarters: int,
    net_rate: float,
    p: Params,
) -> NbiResult:
    """
    NBI supplement paid on top of the base pension.

    Args:
        points: NBI points currently paid
        months_held: How long the points have been paid
        service_quarters: Quarters of service the proration is measured against
        net_rate: Liquidation rate after reduction, in percent
        p: Regulatory parameters

    Returns:
        NbiResult: integrated results carry no separate supplement
    """
    points = max(0, points or 0)
    months_held = max(0, months_held or 0)
    if months_held < p.nbi_min_years * 12:
        logger.debug(f"NBI held {months_held} months, below minimum")
        return NbiResult(eligible=False, points=points, months_held=months_held)

    if is_integrated(months_held, p):
        return NbiResult(
            eligible=True,
            points=points,
            months_held=months_held,
            integrated=True,
            weighted_points=float(points),
        )

    weighted = weighted_points(points, months_held, service_quarters, p)
    annual = 0.0
    if weighted > 0 and net_rate > 0:
        annual = weighted * p.point_value_annual * net_rate / 100
    return NbiResult(
        eligible=True,
        points=points,
        months_held=months_held,
        integrated=False,
        weighted_points=weighted,
        supplement_monthly=round(annual / 12, 2),
        supplement_annual=round(annual, 2),
    )


def activity_value(points: int, p: Params) -> float:
    """Monthly amount the points are worth while in activity."""
    if points <= 0:
        return 0.0
    return round(points * p.point_value_annual / 12, 2)


def compare_activity_retirement(points: int, supplement_monthly: float, p: Params) -> NbiComparison:
    activity = activity_value(points, p)
    retention = round(supplement_monthly / activity * 100, 2) if activity > 0 else 0.0
    return NbiComparison(
        activity_monthly=activity,
        retirement_monthly=supplement_monthly,
        difference=round(supplement_monthly - activity, 2),
        retention_rate=retention,
    )
