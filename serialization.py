from __future__ import annotations
import dataclasses
from datetime import date
from enum import Enum
from typing import Any, Iterable

import numpy as np
import pandas as pd

from key_dates import DepartureScenario


def to_record(obj: Any) -> Any:
    """
    Convert result objects into plain nested dicts and lists.

    Dates become ISO-8601 strings, enums their value and numpy scalars
    Python numbers, so the record dumps to JSON as is.
    """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        record = {f.name: to_record(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
        if isinstance(obj, DepartureScenario):
            record["tag"] = obj.tag
        return record
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {str(k): to_record(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_record(v) for v in obj]
    if isinstance(obj, np.generic):
        return obj.item()
    return obj


def scenarios_frame(scenarios: Iterable[DepartureScenario]) -> pd.DataFrame:
    """One row per departure scenario, for CSV or printed exports."""
    rows = []
    for s in scenarios:
        rows.append({
            "scenario": s.tag,
            "date": s.departure_date.isoformat(),
            "age": s.age,
            "age_months": s.age_months,
            "liquidable_quarters": s.duration.liquidable_quarters,
            "insured_quarters": s.duration.insured_quarters,
            "required_quarters": s.duration.required_quarters,
            "gross_rate": s.gross_rate,
            "decote_quarters": s.decote_quarters,
            "surcote_quarters": s.surcote_quarters,
            "gross_monthly": s.pension.gross_monthly,
            "net_monthly": s.pension.net_monthly,
            "description": s.description,
        })
    return pd.DataFrame(rows, columns=[
        "scenario", "date", "age", "age_months", "liquidable_quarters",
        "insured_quarters", "required_quarters", "gross_rate", "decote_quarters",
        "surcote_quarters", "gross_monthly", "net_monthly", "description",
    ])
