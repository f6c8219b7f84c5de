from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from dates import age, parse_date
from params import Params

logger = logging.getLogger(__name__)


class MilitaryService(str, Enum):
    NONE = "none"
    BSPP = "bspp"  # Brigade de sapeurs-pompiers de Paris
    BMPM = "bmpm"  # Bataillon de marins-pompiers de Marseille

    @classmethod
    def parse(cls, value: Any) -> "MilitaryService":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        if text in ("", "aucun", "none"):
            return cls.NONE
        try:
            return cls(text)
        except ValueError:
            logger.debug(f"Unknown military service kind {value!r}, using none")
            return cls.NONE


@dataclass(frozen=True)
class CareerProfile:
    """Career of a sapeur-pompier professionnel, as entered by the user."""

    birth_date: Optional[date]
    hire_date: Optional[date]
    work_fraction: float = 1.0
    volunteer_years: int = 0
    other_scheme_quarters: int = 0
    children_before_2004: int = 0
    military_service: MilitaryService = MilitaryService.NONE
    military_quarters: int = 0
    indexed_grade: int = 0
    nbi_points: int = 0
    nbi_months: int = 0
    pfr_annual: Optional[float] = None  # None: theoretical 25 % of salary
    rafp_years: Optional[int] = None  # None: derived from hire/departure dates

    @property
    def birth_year(self) -> Optional[int]:
        return self.birth_date.year if self.birth_date else None

    @property
    def effective_military_quarters(self) -> int:
        if self.military_service == MilitaryService.NONE:
            return 0
        return max(0, self.military_quarters)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CareerProfile":
        """
        Build a profile from loosely typed form data.

        Missing or unparseable numbers fall back to their defaults,
        ``nbi_years`` is accepted as an alternative to ``nbi_months``.
        """
        nbi_months = _as_int(data.get("nbi_months"))
        if not nbi_months and data.get("nbi_years") is not None:
            nbi_months = int(round(_as_float(data.get("nbi_years")) * 12))

        pfr = _as_float(data.get("pfr_annual"), default=None)
        rafp_years = _as_int(data.get("rafp_years"), default=None)

        return cls(
            birth_date=parse_date(data.get("birth_date")),
            hire_date=parse_date(data.get("hire_date")),
            work_fraction=_as_float(data.get("work_fraction"), default=1.0) or 1.0,
            volunteer_years=_as_int(data.get("volunteer_years")),
            other_scheme_quarters=_as_int(data.get("other_scheme_quarters")),
            children_before_2004=_as_int(data.get("children_before_2004")),
            military_service=MilitaryService.parse(data.get("military_service")),
            military_quarters=_as_int(data.get("military_quarters")),
            indexed_grade=_as_int(data.get("indexed_grade")),
            nbi_points=_as_int(data.get("nbi_points")),
            nbi_months=nbi_months,
            pfr_annual=pfr if pfr and pfr > 0 else None,
            rafp_years=rafp_years,
        )


def _as_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    if value is None or value == "":
        return default
    try:
        return float(str(value).replace(",", "."))
    except ValueError:
        return default


def _as_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    number = _as_float(value, default=None)
    if number is None:
        return default
    return int(number)


def validate_profile(profile: CareerProfile, p: Params, as_of: date) -> List[str]:
    """List the problems an input layer should report; empty when usable."""
    problems = []
    if profile.birth_date is None:
        problems.append("Date de naissance manquante")
    if profile.hire_date is None:
        problems.append("Date d'entree SPP manquante")
    if profile.birth_date and profile.hire_date:
        if profile.hire_date < profile.birth_date:
            problems.append("La date d'entree precede la date de naissance")
        elif age(profile.birth_date, profile.hire_date) < p.min_hire_age:
            problems.append(f"Age d'entree inferieur a {p.min_hire_age} ans")
    if profile.birth_date and profile.birth_date > as_of:
        problems.append("La date de naissance est dans le futur")
    if not p.min_work_fraction <= profile.work_fraction <= 1.0:
        problems.append("La quotite doit etre comprise entre 50 % et 100 %")
    if not p.grade_min <= profile.indexed_grade <= p.grade_max:
        problems.append(f"L'indice doit etre compris entre {p.grade_min} et {p.grade_max}")
    for name in ("volunteer_years", "other_scheme_quarters", "children_before_2004",
                 "military_quarters", "nbi_points", "nbi_months"):
        if getattr(profile, name) < 0:
            problems.append(f"{name} ne peut pas etre negatif")
    return problems


def profile_summary(profile: CareerProfile, p: Params, as_of: date) -> Dict[str, Any]:
    return {
        "current_age": age(profile.birth_date, as_of) if profile.birth_date else None,
        "cohort": profile.birth_year,
        "required_quarters": p.required_quarters(profile.birth_year),
        "volunteer_majoration": p.volunteer_majoration(profile.volunteer_years),
        "part_time": profile.work_fraction < 1.0,
    }
