# natalchart/core/houses.py
"""
Ascendant and house cusps.

Two interchangeable calculators behind one interface:

  • PlacidusHouses      (precise) apparent sidereal time (IAU 2006/2000A via
                          PyERFA, UT1 + TT), true obliquity, exact ASC/MC,
                          Placidus intermediate cusps by semi-arc iteration.
  • HourAngleAscendant  (approximate) the ascendant sweeps the zodiac once
                          per day (15°/h) from a local-midnight anchor; no
                          cusps, no MC.

Contract:
  houses(timescales, coordinates)    -> HouseData | None
  ascendant(timescales, coordinates) -> float | None

None covers both "no coordinates" and "house system undefined / failed";
failures are logged here, never raised to the caller.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple
import logging
import math
import os
import sys

import erfa  # PyERFA (BSD), IAU SOFA routines

from natalchart.core.constants import delta_deg, wrap_deg
from natalchart.core.ephemeris import MeanMotionPositions
from natalchart.core.geocoding import Coordinates
from natalchart.core.timescales import TimeScales

log = logging.getLogger(__name__)

# --------------------------- constants & numeric policy ---------------------------

EPS_NUM = 4.0 * sys.float_info.epsilon   # ULP-aware tolerance for domain checks

PLACIDUS_MAX_ITERS = int(os.getenv("PLACIDUS_MAX_ITERS", "100"))
PLACIDUS_TOL_DEG = float(os.getenv("PLACIDUS_TOL_DEG", "1e-8"))

# Approximation: coarse latitude band (placeholder correction, one sign)
HIGH_LATITUDE_DEG = 45.0
HIGH_LATITUDE_SHIFT_DEG = 30.0


class HouseError(ValueError):
    """House computation undefined or failed for the given instant/place."""


@dataclass(frozen=True)
class HouseData:
    system: str
    ascendant: float
    midheaven: Optional[float] = None
    cusps: Tuple[float, ...] = ()


# --------------------------- angle helpers ---------------------------

def _sind(a: float) -> float: return math.sin(math.radians(a))
def _cosd(a: float) -> float: return math.cos(math.radians(a))
def _tand(a: float) -> float: return math.tan(math.radians(a))

def _atan2d(y: float, x: float) -> float:
    return wrap_deg(math.degrees(math.atan2(y, x)))

def _asin_strict_deg(x: float, ctx: str) -> float:
    if x < -1.0 - EPS_NUM or x > 1.0 + EPS_NUM:
        raise HouseError(f"domain error asin({x:.16e}) in {ctx}")
    return math.degrees(math.asin(max(-1.0, min(1.0, x))))

def _acos_strict_deg(x: float, ctx: str) -> float:
    if x < -1.0 - EPS_NUM or x > 1.0 + EPS_NUM:
        raise HouseError(f"domain error acos({x:.16e}) in {ctx}")
    return math.degrees(math.acos(max(-1.0, min(1.0, x))))

def _split_jd(jd: float) -> Tuple[float, float]:
    d = math.floor(jd)
    return d, jd - d


# --------------------------- ERFA / fundamental angles ---------------------------

def _gast_deg(jd_ut1: float, jd_tt: float) -> float:
    d1u, d2u = _split_jd(jd_ut1)
    d1t, d2t = _split_jd(jd_tt)
    return wrap_deg(math.degrees(float(erfa.gst06a(d1u, d2u, d1t, d2t))))

def _true_obliquity_deg(jd_tt: float) -> float:
    d1, d2 = _split_jd(jd_tt)
    eps0 = erfa.obl06(d1, d2)
    _dpsi, deps = erfa.nut06a(d1, d2)
    return math.degrees(float(eps0 + deps))

def _lambda_of_ra(ra: float, eps: float) -> float:
    """Ecliptic longitude of the ecliptic point with right ascension `ra`."""
    return _atan2d(_sind(ra), _cosd(ra) * _cosd(eps))

def _mc_longitude_deg(ramc: float, eps: float) -> float:
    return _lambda_of_ra(ramc, eps)

def _asc_longitude_deg(phi: float, ramc: float, eps: float) -> float:
    # ASC = atan2( cos RAMC, -( sin RAMC · cos ε + tan φ · sin ε ) )
    return _atan2d(_cosd(ramc), -(_sind(ramc) * _cosd(eps) + _tand(phi) * _sind(eps)))


# --------------------------- Placidus ---------------------------

def _placidus_cusp(phi: float, eps: float, ramc: float,
                   ra_offset: Callable[[float], float], label: str) -> float:
    """
    Fixed-point iteration: the cusp is the ecliptic point whose RA sits at a
    fixed fraction of its own (diurnal or nocturnal) semi-arc from the meridian.
    """
    lam = _lambda_of_ra(ramc + ra_offset(90.0), eps)
    for _ in range(PLACIDUS_MAX_ITERS):
        dec = _asin_strict_deg(_sind(eps) * _sind(lam), f"decl({label})")
        sda = _acos_strict_deg(-_tand(phi) * _tand(dec), f"sda({label})")
        nxt = _lambda_of_ra(ramc + ra_offset(sda), eps)
        if abs(delta_deg(nxt, lam)) < PLACIDUS_TOL_DEG:
            return nxt
        lam = nxt
    raise HouseError(f"placidus {label} did not converge in {PLACIDUS_MAX_ITERS} iterations")


# RA − RAMC for each intermediate cusp, as a function of the diurnal semi-arc.
# 11/12 divide the diurnal semi-arc east of the MC, 2/3 the nocturnal one
# (180° − SDA) west of the IC.
_PLACIDUS_OFFSETS = {
    11: lambda sda: sda / 3.0,
    12: lambda sda: 2.0 * sda / 3.0,
    2: lambda sda: 180.0 - 2.0 * (180.0 - sda) / 3.0,
    3: lambda sda: 180.0 - (180.0 - sda) / 3.0,
}


def placidus_cusps(phi: float, eps: float, ramc: float) -> Tuple[float, ...]:
    """Twelve Placidus cusps (index 0 = 1st house = ASC, index 9 = MC)."""
    if abs(phi) >= 90.0 - eps:
        raise HouseError(f"placidus undefined inside the polar circle (lat={phi:.4f})")
    asc = _asc_longitude_deg(phi, ramc, eps)
    mc = _mc_longitude_deg(ramc, eps)
    c = {n: _placidus_cusp(phi, eps, ramc, fn, f"C{n}") for n, fn in _PLACIDUS_OFFSETS.items()}
    return (
        asc, c[2], c[3],
        wrap_deg(mc + 180.0), wrap_deg(c[11] + 180.0), wrap_deg(c[12] + 180.0),
        wrap_deg(asc + 180.0), wrap_deg(c[2] + 180.0), wrap_deg(c[3] + 180.0),
        mc, c[11], c[12],
    )


# --------------------------- calculators ---------------------------

class HouseCalculator:
    name = "base"

    def houses(self, ts: TimeScales, coords: Optional[Coordinates]) -> Optional[HouseData]:
        raise NotImplementedError

    def ascendant(self, ts: TimeScales, coords: Optional[Coordinates]) -> Optional[float]:
        hd = self.houses(ts, coords)
        return hd.ascendant if hd is not None else None


class PlacidusHouses(HouseCalculator):
    name = "placidus"

    def houses(self, ts: TimeScales, coords: Optional[Coordinates]) -> Optional[HouseData]:
        if coords is None:
            return None
        try:
            eps = _true_obliquity_deg(ts.jd_tt)
            ramc = wrap_deg(_gast_deg(ts.jd_ut, ts.jd_tt) + coords.longitude)
            cusps = placidus_cusps(coords.latitude, eps, ramc)
        except (HouseError, erfa.ErfaError, ArithmeticError) as e:
            log.warning("placidus houses unavailable at lat=%.4f lon=%.4f: %s",
                        coords.latitude, coords.longitude, e)
            return None
        return HouseData(system=self.name, ascendant=cusps[0], midheaven=cusps[9], cusps=cusps)


class HourAngleAscendant(HouseCalculator):
    """
    Approximation: at local midnight the ascendant sits a quadrant behind the
    (mean) Sun and then advances 15° per hour of local time. Local time is UT
    shifted by longitude (15° = 1 h). Beyond ±45° latitude a one-sign shift is
    applied, forward in the north and backward in the south.
    """

    name = "hour-angle"

    def __init__(self, positions: Optional[MeanMotionPositions] = None):
        self.positions = positions or MeanMotionPositions()

    def houses(self, ts: TimeScales, coords: Optional[Coordinates]) -> Optional[HouseData]:
        if coords is None:
            return None
        local_hours = (ts.ut_hours + coords.longitude / 15.0) % 24.0
        anchor = self.positions.sun(ts.jd_tt) - 90.0
        asc = anchor + 15.0 * local_hours
        if coords.latitude > HIGH_LATITUDE_DEG:
            asc += HIGH_LATITUDE_SHIFT_DEG
        elif coords.latitude < -HIGH_LATITUDE_DEG:
            asc -= HIGH_LATITUDE_SHIFT_DEG
        return HouseData(system=self.name, ascendant=wrap_deg(asc))
