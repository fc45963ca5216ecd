# tests/test_timescales.py
from __future__ import annotations

import math
import pytest

from datetime import date, timedelta
from hypothesis import given, strategies as st

from natalchart.core.constants import J2000_JD
from natalchart.core.timescales import (
    TimeNormalizationError,
    build_timescales,
    parse_birth_date,
)

# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────
TZS = [
    "UTC",
    "Asia/Kolkata",         # +05:30 no DST
    "America/New_York",     # DST region
    "Europe/Berlin",        # DST Europe
    "America/St_Johns",     # -03:30
    "Australia/Eucla",      # +08:45 quarter-hour
]

TT_MINUS_UTC_2000 = 32.0 + 32.184   # ΔAT + (TT − TAI) in 2000, seconds


def _keys_ok(d: dict) -> None:
    for k in ["jd_utc", "jd_ut", "jd_tt", "delta_t", "tz_offset_seconds", "timezone", "warnings"]:
        assert k in d, f"missing key: {k}"
    assert isinstance(d["jd_utc"], float)
    assert isinstance(d["jd_ut"], float)
    assert isinstance(d["jd_tt"], float)
    assert isinstance(d["delta_t"], float)
    assert isinstance(d["tz_offset_seconds"], int)
    assert isinstance(d["timezone"], str)
    assert all(isinstance(w, str) for w in d["warnings"])


# ─────────────────────────────────────────────────────────────────────────────
# Unit tests
# ─────────────────────────────────────────────────────────────────────────────

def test_schema_and_types() -> None:
    ts = build_timescales("1990-05-15", "10:30", "UTC")
    _keys_ok(ts.to_dict())


def test_j2000_noon_utc() -> None:
    ts = build_timescales("2000-01-01", "12:00")
    assert ts.jd_utc == pytest.approx(J2000_JD, abs=1e-9)
    assert (ts.jd_tt - ts.jd_utc) * 86400.0 == pytest.approx(TT_MINUS_UTC_2000, abs=1e-3)
    assert ts.delta_t == pytest.approx(TT_MINUS_UTC_2000, abs=1e-3)
    assert ts.warnings == ()


@pytest.mark.parametrize(
    "d0,d1",
    [
        ("2000-02-28", "2000-02-29"),   # leap day
        ("2000-02-29", "2000-03-01"),
        ("2001-02-28", "2001-03-01"),   # common year
        ("1999-12-31", "2000-01-01"),   # year end
        ("1990-04-30", "1990-05-01"),   # month end
    ],
)
def test_consecutive_days_are_one_day_apart(d0: str, d1: str) -> None:
    a = build_timescales(d0, "10:30")
    b = build_timescales(d1, "10:30")
    assert b.jd_utc - a.jd_utc == pytest.approx(1.0, abs=1e-8)
    assert b.jd_tt - a.jd_tt == pytest.approx(1.0, abs=1e-8)


def test_ut_hours_from_civil_time() -> None:
    ts = build_timescales("1990-05-15", "18:30")
    assert ts.ut_hours == pytest.approx(18.5, abs=1e-6)


def test_seconds_are_optional() -> None:
    a = build_timescales("1990-05-15", "10:30")
    b = build_timescales("1990-05-15", "10:30:00")
    assert a.jd_utc == b.jd_utc


def test_timezone_shifts_the_instant() -> None:
    local = build_timescales("1990-05-15", "10:30", "Asia/Kolkata")
    utc = build_timescales("1990-05-15", "05:00", "UTC")
    assert local.jd_utc == pytest.approx(utc.jd_utc, abs=1e-9)
    assert local.tz_offset_seconds == 19800
    assert local.timezone == "Asia/Kolkata"


@pytest.mark.parametrize("tz", TZS)
def test_every_zone_gives_finite_scales(tz: str) -> None:
    ts = build_timescales("2010-07-04", "09:15", tz)
    for v in (ts.jd_utc, ts.jd_ut, ts.jd_tt, ts.delta_t):
        assert math.isfinite(v)


def test_dst_fall_back_is_flagged() -> None:
    # 01:30 happens twice in New York on 2021-11-07
    ts = build_timescales("2021-11-07", "01:30", "America/New_York")
    assert "dst_ambiguous" in ts.warnings


def test_pre_leap_second_table_is_accepted_with_warning() -> None:
    ts = build_timescales("1950-06-01", "12:00")
    assert "dubious_year" in ts.warnings
    assert math.isfinite(ts.jd_tt)


def test_dut1_moves_ut1_only() -> None:
    a = build_timescales("2020-06-01", "00:00", "UTC", 0.0)
    b = build_timescales("2020-06-01", "00:00", "UTC", 0.5)
    assert a.jd_tt == b.jd_tt
    assert (b.jd_ut - a.jd_ut) * 86400.0 == pytest.approx(0.5, abs=1e-3)
    assert a.delta_t - b.delta_t == pytest.approx(0.5, abs=1e-4)


@pytest.mark.parametrize("dut1", [-0.9000001, 0.9000001, 2.0])
def test_dut1_out_of_bounds_rejected(dut1: float) -> None:
    with pytest.raises(TimeNormalizationError):
        build_timescales("2024-01-01", "12:00", "UTC", dut1)


@pytest.mark.parametrize(
    "date_str,time_str",
    [
        ("1990-13-15", "10:30"),   # month 13
        ("1990-01-32", "10:30"),   # day 32
        ("2001-02-29", "10:30"),   # not a leap year
        ("15/05/1990", "10:30"),
        ("", "10:30"),
        ("1990-05-15", "25:00"),
        ("1990-05-15", "12:60"),
        ("1990-05-15", "noon"),
        ("1990-05-15", ""),
    ],
)
def test_invalid_inputs_raise(date_str: str, time_str: str) -> None:
    with pytest.raises(TimeNormalizationError):
        build_timescales(date_str, time_str)


def test_unknown_zone_rejected() -> None:
    with pytest.raises(TimeNormalizationError):
        build_timescales("1990-05-15", "10:30", "Mars/Olympus_Mons")


def test_normalization_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_birth_date("not-a-date")


def test_parse_birth_date_roundtrip() -> None:
    assert parse_birth_date("2000-02-29") == date(2000, 2, 29)
    assert parse_birth_date(" 1990-5-15 ") == date(1990, 5, 15)


# ─────────────────────────────────────────────────────────────────────────────
# Property tests
# ─────────────────────────────────────────────────────────────────────────────

@given(
    st.dates(min_value=date(1972, 1, 1), max_value=date(2030, 12, 30)),
    st.integers(min_value=1, max_value=400),
)
def test_later_dates_have_later_julian_days(d0: date, step: int) -> None:
    d1 = d0 + timedelta(days=step)
    a = build_timescales(d0.isoformat(), "12:00")
    b = build_timescales(d1.isoformat(), "12:00")
    assert b.jd_utc > a.jd_utc
    assert b.jd_tt > a.jd_tt


def test_timescales_are_read_only() -> None:
    ts = build_timescales("2021-11-07", "01:30", "America/New_York")
    assert ts.warnings == ("dst_ambiguous",)
    with pytest.raises(AttributeError):
        ts.warnings.append("x")
    assert ts.to_dict()["warnings"] == ["dst_ambiguous"]
