# natalchart/core/constants.py
# -*- coding: utf-8 -*-
"""
Natal chart engine: core constants & small helpers

Purpose
-------
Single source of truth for:
- zodiac sign names, order and elements
- the civil-calendar Sun sign table
- body names (luminaries + planets)
- time constants (J2000, year/month lengths)
- mean-motion tables for the approximation strategy
- tiny angle helpers (wrap)

Design
------
- Pure-Python, no external dependencies.
- Safe to import from any core module.
- Functions are pure; constants are immutable by convention.
"""

from __future__ import annotations
from typing import Dict, Tuple
import math

__all__ = [
    # signs
    "SIGN_NAMES", "UNKNOWN_SIGN", "SIGN_ELEMENTS", "CALENDAR_SIGN_TABLE",
    # bodies
    "LUMINARIES", "PLANETS", "BODIES",
    # time constants
    "J2000_JD", "TROPICAL_YEAR_D", "JULIAN_YEAR_D", "LUNAR_SIDEREAL_D",
    # approximation tables
    "SUN_MEAN_LON_J2000", "SUN_MEAN_MOTION", "MOON_OFFSET_J2000", "MOON_MEAN_MOTION",
    "PLANET_MEAN_MOTION", "PLANET_PLACEHOLDER_LON_J2000",
    # helpers
    "wrap_deg", "delta_deg",
]

# ── signs ────────────────────────────────────────────────────────────────────
SIGN_NAMES: Tuple[str, ...] = (
    "Aries", "Taurus", "Gemini", "Cancer", "Leo", "Virgo",
    "Libra", "Scorpio", "Sagittarius", "Capricorn", "Aquarius", "Pisces",
)

UNKNOWN_SIGN: str = "Unknown"

SIGN_ELEMENTS: Dict[str, str] = {
    "Aries": "Fire", "Leo": "Fire", "Sagittarius": "Fire",
    "Taurus": "Earth", "Virgo": "Earth", "Capricorn": "Earth",
    "Gemini": "Air", "Libra": "Air", "Aquarius": "Air",
    "Cancer": "Water", "Scorpio": "Water", "Pisces": "Water",
}

# (sign, (start_month, start_day), (end_month, end_day)); inclusive on both ends.
# Capricorn wraps the year end.
CALENDAR_SIGN_TABLE: Tuple[Tuple[str, Tuple[int, int], Tuple[int, int]], ...] = (
    ("Capricorn", (12, 22), (1, 19)),
    ("Aquarius", (1, 20), (2, 18)),
    ("Pisces", (2, 19), (3, 20)),
    ("Aries", (3, 21), (4, 19)),
    ("Taurus", (4, 20), (5, 20)),
    ("Gemini", (5, 21), (6, 20)),
    ("Cancer", (6, 21), (7, 22)),
    ("Leo", (7, 23), (8, 22)),
    ("Virgo", (8, 23), (9, 22)),
    ("Libra", (9, 23), (10, 22)),
    ("Scorpio", (10, 23), (11, 21)),
    ("Sagittarius", (11, 22), (12, 21)),
)

# ── bodies ───────────────────────────────────────────────────────────────────
LUMINARIES: Tuple[str, ...] = ("sun", "moon")

PLANETS: Tuple[str, ...] = (
    "mercury", "venus", "mars", "jupiter",
    "saturn", "uranus", "neptune", "pluto",
)

BODIES: Tuple[str, ...] = LUMINARIES + PLANETS

# ── time constants ───────────────────────────────────────────────────────────
J2000_JD: float = 2451545.0           # 2000-01-01 12:00 TT
TROPICAL_YEAR_D: float = 365.242189
JULIAN_YEAR_D: float = 365.25
LUNAR_SIDEREAL_D: float = 27.321661

# ── approximation strategy tables ────────────────────────────────────────────
# Linear mean-motion model: lon(t) = lon(J2000) + rate * (jd_tt - J2000), mod 360.
# Low fidelity by construction: no equation of centre, no perturbations,
# no heliocentric -> geocentric conversion for planets.

SUN_MEAN_LON_J2000: float = 280.460
SUN_MEAN_MOTION: float = 360.0 / JULIAN_YEAR_D          # deg/day

# Moon = Sun + offset + sidereal rate; offset makes Moon(J2000) = 218.316 (mean).
MOON_OFFSET_J2000: float = 218.316 - SUN_MEAN_LON_J2000
MOON_MEAN_MOTION: float = 360.0 / LUNAR_SIDEREAL_D      # deg/day, relative to the Sun term

PLANET_MEAN_MOTION: Dict[str, float] = {                 # deg/day
    "mercury": 4.092317,
    "venus": 1.602136,
    "mars": 0.524039,
    "jupiter": 0.083056,
    "saturn": 0.033371,
    "uranus": 0.011698,
    "neptune": 0.005965,
    "pluto": 0.003964,
}

# PLACEHOLDER calibration: heliocentric mean longitudes at J2000, used as-is
# for a geocentric chart. Not derived from a geocentric reference epoch;
# inner planets can be off by tens of degrees.
PLANET_PLACEHOLDER_LON_J2000: Dict[str, float] = {
    "mercury": 252.251,
    "venus": 181.980,
    "mars": 355.433,
    "jupiter": 34.351,
    "saturn": 50.077,
    "uranus": 314.055,
    "neptune": 304.349,
    "pluto": 238.929,
}

# ── helpers ──────────────────────────────────────────────────────────────────
def wrap_deg(x: float) -> float:
    """Normalize any finite angle into [0, 360)."""
    v = math.fmod(float(x), 360.0)
    if v < 0.0:
        v += 360.0
    # fmod of tiny negatives can round up to exactly 360.0
    return 0.0 if v >= 360.0 else v


def delta_deg(a: float, b: float) -> float:
    """Shortest signed angular difference (a - b) in degrees, in [-180, 180)."""
    return ((float(a) - float(b) + 540.0) % 360.0) - 180.0
