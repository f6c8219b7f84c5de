from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgeBracket:
    """Legal age (years, months) for births between start and end inclusive."""

    start: Optional[date]
    end: Optional[date]
    years: int
    months: int = 0

    def contains(self, birth_date: date) -> bool:
        if self.start is not None and birth_date < self.start:
            return False
        if self.end is not None and birth_date > self.end:
            return False
        return True


@dataclass(frozen=True)
class AgeTable:
    """
    Birth-date keyed legal age table.

    ``floor`` applies to births before the first bracket, ``default`` to
    births after the last one. Both are explicit so that an unlisted cohort
    never falls through silently.
    """

    name: str
    brackets: Tuple[AgeBracket, ...]
    floor: AgeBracket
    default: AgeBracket

    def lookup(self, birth_date: date) -> AgeBracket:
        for bracket in self.brackets:
            if bracket.contains(birth_date):
                return bracket
        first = self.brackets[0] if self.brackets else None
        if first is not None and first.start is not None and birth_date < first.start:
            logger.debug(f"{self.name}: {birth_date} before first bracket, using floor")
            return self.floor
        logger.debug(f"{self.name}: {birth_date} after last bracket, using default")
        return self.default


def _bracket(y0, m0, d0, y1, m1, d1, years, months=0) -> AgeBracket:
    return AgeBracket(date(y0, m0, d0), date(y1, m1, d1), years, months)


# Categorie active SPP - ouverture des droits (reforme 2023)
ACTIVE_OPENING_AGE = AgeTable(
    name="active_opening_age",
    brackets=(
        _bracket(1966, 9, 1, 1966, 12, 31, 57, 3),
        _bracket(1967, 1, 1, 1967, 12, 31, 57, 6),
        _bracket(1968, 1, 1, 1968, 12, 31, 57, 9),
        _bracket(1969, 1, 1, 1969, 12, 31, 58, 0),
        _bracket(1970, 1, 1, 1970, 12, 31, 58, 3),
        _bracket(1971, 1, 1, 1971, 12, 31, 58, 6),
        _bracket(1972, 1, 1, 1972, 12, 31, 58, 9),
    ),
    floor=AgeBracket(None, date(1966, 8, 31), 57, 0),
    default=AgeBracket(date(1973, 1, 1), None, 59, 0),
)

# Categorie sedentaire - age legal (annulation de la decote, seuil de surcote)
SEDENTARY_LEGAL_AGE = AgeTable(
    name="sedentary_legal_age",
    brackets=(
        _bracket(1961, 9, 1, 1961, 12, 31, 62, 3),
        _bracket(1962, 1, 1, 1962, 12, 31, 62, 6),
        _bracket(1963, 1, 1, 1963, 12, 31, 62, 9),
        _bracket(1964, 1, 1, 1964, 12, 31, 63, 0),
        _bracket(1965, 1, 1, 1965, 12, 31, 63, 3),
        _bracket(1966, 1, 1, 1966, 12, 31, 63, 6),
        _bracket(1967, 1, 1, 1967, 12, 31, 63, 9),
    ),
    floor=AgeBracket(None, date(1961, 8, 31), 62, 0),
    default=AgeBracket(date(1968, 1, 1), None, 64, 0),
)

# Limite d'age categorie active, alignee sur l'age legal sedentaire
ACTIVE_AGE_LIMIT = AgeTable(
    name="active_age_limit",
    brackets=SEDENTARY_LEGAL_AGE.brackets,
    floor=SEDENTARY_LEGAL_AGE.floor,
    default=SEDENTARY_LEGAL_AGE.default,
)

# Ages 57..70 at RAFP liquidation and the matching conversion coefficients
RAFP_AGES = np.arange(57, 71)
RAFP_AGE_COEFFICIENTS = np.array([
    0.85, 0.88, 0.91, 0.94, 0.97,  # 57-61
    1.00, 1.04, 1.08, 1.12, 1.16,  # 62-66
    1.21, 1.26, 1.31, 1.37,        # 67-70
])


class Params:
    # Version of the regulatory tables compiled into this release
    version = "2026.1"

    # Category and age tables
    CATEGORY_ACTIVE = "active"
    CATEGORY_SEDENTARY = "sedentary"
    age_tables = {
        CATEGORY_ACTIVE: ACTIVE_OPENING_AGE,
        CATEGORY_SEDENTARY: SEDENTARY_LEGAL_AGE,
    }
    age_limit_table = ACTIVE_AGE_LIMIT

    # Duree d'assurance requise (trimestres) by birth year
    required_quarters_table = (
        (1960, 167),
        (1961, 168),
        (1962, 169),
        (1963, 170),
        (1964, 171),
        (1965, 172),
    )
    default_required_quarters = 172

    # Service conditions
    min_active_quarters = 68  # 17 ans de services actifs
    min_pension_quarters = 8  # 2 ans pour le droit a pension
    min_hire_age = 16
    min_work_fraction = 0.5  # temps partiel

    # Bonifications
    fifth_bonus_ratio = 5  # 1 trimestre pour 5
    fifth_bonus_cap = 20
    child_bonus_quarters = 4  # par enfant ne avant 2004

    # Majoration SPV (decret 2026-18): (annees, trimestres)
    volunteer_thresholds = ((10, 1), (20, 2), (25, 3))

    # Liquidation
    full_rate = 75.0
    decote_per_quarter = 1.25
    decote_max_quarters = 20
    decote_floor_coefficient = 0.75
    surcote_per_quarter = 1.25
    deferred_max_years = 5  # deferred departures simulated after the full rate
    break_even_horizon_years = 20

    # Point d'indice (janvier 2026)
    point_value_monthly = 4.92278

    # Prime de feu / RAFP
    hazard_rate = 25.0
    rafp_contribution_rate = 5.0
    rafp_employer_match = 1.0  # employer euros per agent euro
    rafp_base_ceiling = 20.0
    rafp_acquisition_value = 1.4436
    rafp_service_value = 0.05036
    rafp_creation_year = 2005
    rafp_capital_threshold = 5125  # points; below, paid once as capital
    rafp_capital_coefficient = 24.0  # annual annuities bought out by the capital
    rafp_ages = RAFP_AGES
    rafp_age_coefficients = RAFP_AGE_COEFFICIENTS

    # NBI
    nbi_min_years = 1
    nbi_integration_years = 15

    # Minimum garanti (mensuel brut 2026)
    guaranteed_minimum_monthly = 1367.51

    # Prelevements sociaux sur pension (%)
    csg = 8.30
    crds = 0.50
    casa = 0.30

    # Echelle indiciaire SPP
    grade_min = 367
    grade_max = 1027

    @property
    def point_value_annual(self) -> float:
        return self.point_value_monthly * 12

    @property
    def withholding_rate(self) -> float:
        return self.csg + self.crds + self.casa

    def required_quarters(self, birth_year: Optional[int]) -> int:
        """
        Quarters required for the full rate for a birth cohort.

        Years before the first tabulated cohort use the first entry, years
        after the last one use ``default_required_quarters``.
        """
        if birth_year is None:
            return self.default_required_quarters
        table = dict(self.required_quarters_table)
        if birth_year in table:
            return table[birth_year]
        first_year = self.required_quarters_table[0][0]
        if birth_year < first_year:
            logger.debug(f"Cohort {birth_year} below table, using {first_year}")
            return self.required_quarters_table[0][1]
        return self.default_required_quarters

    def legal_age(self, category: str, birth_date: date) -> Tuple[int, int]:
        """Return (years, months) of the legal age for a category and birth date."""
        table = self.age_tables.get(category)
        if table is None:
            logger.debug(f"Unknown category {category!r}, using sedentary table")
            table = self.age_tables[self.CATEGORY_SEDENTARY]
        bracket = table.lookup(birth_date)
        return bracket.years, bracket.months

    def age_limit(self, birth_date: date) -> Tuple[int, int]:
        bracket = self.age_limit_table.lookup(birth_date)
        return bracket.years, bracket.months

    def age_coefficient(self, age: int) -> float:
        """
        RAFP conversion coefficient for the age at liquidation.

        Ages outside the table are clamped to its first/last entries.
        """
        ages = self.rafp_ages
        clamped = int(np.clip(age, ages[0], ages[-1]))
        if clamped != age:
            logger.debug(f"RAFP age {age} clamped to {clamped}")
        idx = int(np.searchsorted(ages, clamped))
        return float(self.rafp_age_coefficients[idx])

    def volunteer_majoration(self, years: Optional[float]) -> int:
        """Highest SPV threshold met wins; no proration between steps."""
        majoration = 0
        if not years or years <= 0:
            return majoration
        for threshold, quarters in self.volunteer_thresholds:
            if years >= threshold:
                majoration = quarters
        return majoration
