"""
Calendar helpers for ages and quarter counts.

Every "quarters elapsed" figure in the calculators goes through
``quarters_between`` so that rounding is always a floor.
"""

from __future__ import annotations
import calendar
import re
from datetime import date, datetime
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

_FR_DATE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")


def _is_month_end(d: date) -> bool:
    return d.day == calendar.monthrange(d.year, d.month)[1]


def age(birth_date: Optional[date], at_date: Optional[date]) -> int:
    """Age in completed years at ``at_date``."""
    if birth_date is None or at_date is None:
        return 0
    years = at_date.year - birth_date.year
    if (at_date.month, at_date.day) < (birth_date.month, birth_date.day):
        years -= 1
    return max(0, years)


def months_between(start: Optional[date], end: Optional[date]) -> int:
    """
    Completed months from ``start`` to ``end``, never negative.

    A month is complete once the day of month is reached again, or once
    ``end`` is the last day of a month shorter than ``start``'s day
    (31 January to 28 February is one month).
    """
    if start is None or end is None or end <= start:
        return 0
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day and not _is_month_end(end):
        months -= 1
    return max(0, months)


def quarters_between(start: Optional[date], end: Optional[date]) -> int:
    return months_between(start, end) // 3


def years_between(start: Optional[date], end: Optional[date]) -> int:
    return months_between(start, end) // 12


def add_years_months(d: date, years: int = 0, months: int = 0) -> date:
    """Shift a date; the day is clamped to the end of shorter months."""
    return d + relativedelta(years=years, months=months)


def add_quarters(d: date, quarters: int) -> date:
    return add_years_months(d, months=3 * quarters)


def quarters_to_years(quarters: int) -> tuple[int, int]:
    """Split a quarter count into (years, remaining quarters)."""
    return quarters // 4, quarters % 4


def format_quarters(quarters: int) -> str:
    """French label such as '15 ans et 2 trimestres'."""
    years, rest = quarters_to_years(max(0, quarters))
    if years == 0 and rest == 0:
        return "0 trimestre"
    parts = []
    if years > 0:
        parts.append(f"{years} an{'s' if years > 1 else ''}")
    if rest > 0:
        parts.append(f"{rest} trimestre{'s' if rest > 1 else ''}")
    return " et ".join(parts)


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Accept ISO (YYYY-MM-DD) or French (DD/MM/YYYY) dates; None if invalid."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    match = _FR_DATE.match(text)
    try:
        if match:
            day, month, year = (int(g) for g in match.groups())
            return date(year, month, day)
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def format_date_fr(d: Optional[date]) -> str:
    if d is None:
        return ""
    return d.strftime("%d/%m/%Y")
