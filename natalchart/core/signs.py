# natalchart/core/signs.py
"""
Sign mapping.

Two independent paths:
  • sign_of(longitude)     : ecliptic longitude → sign (fixed 30° segments from 0° Aries)
  • calendar_sign(m, d)    : civil calendar date → Sun sign (no astronomy at all)

The two can disagree for birthdays within about a day of a sign change; the
calendar table is a convention, the longitude is the computed position.
"""
from __future__ import annotations

from datetime import date
import math

from natalchart.core.constants import (
    CALENDAR_SIGN_TABLE,
    SIGN_ELEMENTS,
    SIGN_NAMES,
    UNKNOWN_SIGN,
    wrap_deg,
)
from natalchart.core.timescales import parse_birth_date

__all__ = ["sign_index", "sign_of", "calendar_sign", "zodiac_sign", "element_of"]


def sign_index(longitude: float) -> int:
    """0 = Aries … 11 = Pisces. Boundaries belong to the following sign."""
    return int(math.floor(wrap_deg(longitude) / 30.0)) % 12


def sign_of(longitude: float) -> str:
    try:
        x = float(longitude)
    except (TypeError, ValueError):
        return UNKNOWN_SIGN
    if not math.isfinite(x):
        return UNKNOWN_SIGN
    return SIGN_NAMES[sign_index(x)]


def calendar_sign(month: int, day: int) -> str:
    """
    Sun sign from the civil calendar.

    Total over every real month/day (Feb 29 included); anything else raises
    ValueError via the calendar check.
    """
    date(2000, int(month), int(day))  # leap year, so Feb 29 is accepted
    for name, (start_m, start_d), (end_m, end_d) in CALENDAR_SIGN_TABLE:
        if (month == start_m and day >= start_d) or (month == end_m and day <= end_d):
            return name
    raise ValueError(f"no calendar sign for {month:02d}-{day:02d}")  # pragma: no cover


def zodiac_sign(birth_date: str) -> str:
    """Calendar Sun sign for a 'YYYY-MM-DD' birth date."""
    d = parse_birth_date(birth_date)
    return calendar_sign(d.month, d.day)


def element_of(sign: str) -> str:
    return SIGN_ELEMENTS.get(sign, UNKNOWN_SIGN)
