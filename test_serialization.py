import json
from datetime import date

import numpy as np

from career import CareerProfile
from serialization import scenarios_frame, to_record
from simulation import simulate

AS_OF = date(2026, 1, 1)
PROFILE = CareerProfile(
    birth_date=date(1983, 5, 2),
    hire_date=date(2004, 1, 1),
    volunteer_years=25,
    indexed_grade=526,
    nbi_points=16,
    nbi_months=360,
)


def test_record_is_json_ready():
    record = to_record(simulate(PROFILE, AS_OF))
    text = json.dumps(record)
    assert json.loads(text) == record


def test_dates_are_iso_strings_and_enums_values():
    record = to_record(simulate(PROFILE, AS_OF))
    assert record["as_of"] == "2026-01-01"
    assert record["key_dates"]["full_rate_date"] == "2042-05-02"
    assert record["key_dates"]["full_rate_by"] == "duration"
    first = record["scenarios"][0]
    assert first["kind"] == "earliest"
    assert first["tag"] == "earliest"
    assert first["pension"]["hazard"]["prorated"] is False
    assert isinstance(first["duration"], dict)


def test_numpy_scalars_become_python_numbers():
    assert to_record({"x": np.float64(1.5), "n": np.int64(3)}) == {"x": 1.5, "n": 3}
    assert isinstance(to_record(np.float64(1.5)), float)


def test_scenarios_frame():
    result = simulate(PROFILE, AS_OF)
    frame = scenarios_frame(result.scenarios)
    assert len(frame) == len(result.scenarios)
    assert list(frame["scenario"][:3]) == ["earliest", "full_rate", "age_limit"]
    assert frame.loc[1, "gross_rate"] == 75.0
    assert frame.loc[1, "date"] == "2042-05-02"


def test_empty_scenarios_frame_keeps_columns():
    frame = scenarios_frame([])
    assert frame.empty
    assert "gross_monthly" in frame.columns
