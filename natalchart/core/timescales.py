# natalchart/core/timescales.py
# -----------------------------------------------------------------------------
# Birth-instant timescale builder (ERFA aligned)
#
# Public API:
#   build_timescales(date_str, time_str, tz_name="UTC", dut1_seconds=0.0) -> TimeScales
#   parse_birth_date(date_str) -> datetime.date
#
# Guarantees:
#   • Calendar validity delegated to datetime (month 13, day 32, Feb 29 of a
#     common year are rejected).
#   • Civil time in an IANA zone → UTC via zoneinfo; DST ambiguity flagged.
#   • ERFA chain:
#       UTC (calendar → JD) → TAI → TT      (erfa.dtf2d → utctai → taitt)
#       UT1 = UTC + DUT1/86400              (erfa.utcut1)
#   • Years outside the leap-second table (pre-1960, far future) are accepted
#     with a 'dubious_year' warning instead of being rejected.
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import math
import re
import warnings

import erfa  # pyERFA

__all__ = [
    "TimeScales",
    "TimeNormalizationError",
    "build_timescales",
    "parse_birth_date",
]


class TimeNormalizationError(ValueError):
    """Birth date/time cannot be turned into an astronomical instant."""


# ───────────────────────────── Dataclass ─────────────────────────────

@dataclass(frozen=True)
class TimeScales:
    jd_utc: float
    jd_ut: float           # UT1
    jd_tt: float
    delta_t: float         # TT − UT1 [s]
    tz_offset_seconds: int
    timezone: str
    warnings: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "warnings", tuple(self.warnings))

    @property
    def ut_hours(self) -> float:
        """Hours since 0h UT of the civil day, in [0, 24)."""
        return ((self.jd_ut + 0.5) % 1.0) * 24.0

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["warnings"] = list(self.warnings)
        return d


# ───────────────────────────── Parsing helpers ─────────────────────────────

_DATE_RE = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})\s*$")
_TIME_RE = re.compile(r"^\s*(?P<h>\d{1,2}):(?P<m>\d{2})(?::(?P<s>\d{2}))?\s*$")


def parse_birth_date(date_str: str) -> date:
    """Parse YYYY-MM-DD into a calendar date; raises TimeNormalizationError."""
    m = _DATE_RE.match(date_str or "") if isinstance(date_str, str) else None
    if not m:
        raise TimeNormalizationError(f"Invalid birth date '{date_str}': expected YYYY-MM-DD")
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError as e:
        raise TimeNormalizationError(f"Invalid birth date '{date_str}': {e}") from e


def _parse_time(time_str: str) -> Tuple[int, int, int]:
    """Parse HH:MM or HH:MM:SS (24-hour clock)."""
    m = _TIME_RE.match(time_str or "") if isinstance(time_str, str) else None
    if not m:
        raise TimeNormalizationError(f"Invalid birth time '{time_str}': expected HH:MM")
    ih, imin, isec = int(m.group("h")), int(m.group("m")), int(m.group("s") or 0)
    if not (0 <= ih <= 23 and 0 <= imin <= 59 and 0 <= isec <= 59):
        raise TimeNormalizationError(f"Invalid birth time fields: hh={ih}, mm={imin}, ss={isec}")
    return ih, imin, isec


# ───────────────────────────── Time zone / UTC helpers ─────────────────────────────

def _fold_offsets(z: ZoneInfo, naive_local: datetime) -> Tuple[int, List[str]]:
    """
    Compute tz offset seconds for a naive local datetime.
    Detect DST ambiguity; prefer fold=0 but warn if fold=1 differs.
    """
    warn: List[str] = []
    off0 = naive_local.replace(tzinfo=z, fold=0).utcoffset()
    if off0 is None:
        raise TimeNormalizationError("Timezone returned None utcoffset()")
    off1 = naive_local.replace(tzinfo=z, fold=1).utcoffset()
    if off1 is not None and off1 != off0:
        warn.append("dst_ambiguous")
    return int(off0.total_seconds()), warn


def _local_to_utc(date_str: str, time_str: str, tz_name: str) -> Tuple[datetime, int, List[str]]:
    d = parse_birth_date(date_str)
    ih, imin, isec = _parse_time(time_str)
    try:
        z = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise TimeNormalizationError(f"Unknown IANA time zone '{tz_name}'") from e

    naive = datetime(d.year, d.month, d.day, ih, imin, isec)
    tz_off, warn = _fold_offsets(z, naive)
    try:
        utc = naive.replace(tzinfo=z, fold=0).astimezone(timezone.utc)
    except OverflowError as e:
        raise TimeNormalizationError(f"Birth instant out of range: {date_str} {time_str}") from e
    return utc, tz_off, warn


# ───────────────────────────── Public API ─────────────────────────────

def build_timescales(
    date_str: str,
    time_str: str,
    tz_name: str = "UTC",
    dut1_seconds: float = 0.0,
) -> TimeScales:
    """Compute JD(UTC), JD(UT1) and JD(TT) for a civil birth instant."""
    if not isinstance(dut1_seconds, (int, float)):
        raise TimeNormalizationError("dut1_seconds must be a number (float seconds).")
    if abs(dut1_seconds) > 0.9 + 1e-12:
        raise TimeNormalizationError(f"dut1_seconds out of range (|DUT1| ≤ 0.9 s): {dut1_seconds}")

    utc, tz_off, warn = _local_to_utc(date_str, time_str, tz_name)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", erfa.ErfaWarning)
        try:
            utc1, utc2 = erfa.dtf2d(
                "UTC", utc.year, utc.month, utc.day,
                utc.hour, utc.minute, float(utc.second),
            )
            tai1, tai2 = erfa.utctai(utc1, utc2)
            tt1, tt2 = erfa.taitt(tai1, tai2)
            ut11, ut12 = erfa.utcut1(utc1, utc2, float(dut1_seconds))
        except erfa.ErfaError as e:
            raise TimeNormalizationError(f"ERFA rejected {utc.isoformat()}: {e}") from e

    if any(issubclass(w.category, erfa.ErfaWarning) for w in caught):
        warn.append("dubious_year")

    jd_utc = math.fsum((float(utc1), float(utc2)))
    jd_tt = math.fsum((float(tt1), float(tt2)))
    jd_ut = math.fsum((float(ut11), float(ut12)))
    # two-part difference before collapsing preserves precision
    delta_t = ((float(tt1) - float(ut11)) + (float(tt2) - float(ut12))) * 86400.0

    return TimeScales(
        jd_utc=jd_utc,
        jd_ut=jd_ut,
        jd_tt=jd_tt,
        delta_t=float(delta_t),
        tz_offset_seconds=int(tz_off),
        timezone=str(tz_name),
        warnings=tuple(warn),
    )
