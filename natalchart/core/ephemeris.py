# natalchart/core/ephemeris.py
# -----------------------------------------------------------------------------
# Body positions (geocentric ecliptic longitude, degrees in [0, 360))
#
# Two interchangeable calculators behind one interface:
#   • EphemerisPositions  (precise) delegates to an Ephemeris
#                           (SkyfieldEphemeris: Skyfield + local JPL kernel)
#   • MeanMotionPositions (approximate) closed-form linear mean-motion approximation;
#                           LOW FIDELITY (Sun within ~2°, planets much worse),
#                           deterministic and total
#
# Contract: position_of(body, timescales) -> float | None
#   None means "unavailable" and is never an error for the caller.
# -----------------------------------------------------------------------------
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional
import logging
import math
import os

from skyfield.api import load, load_file
from skyfield.framelib import ecliptic_frame

from natalchart.core.constants import (
    BODIES,
    J2000_JD,
    MOON_MEAN_MOTION,
    MOON_OFFSET_J2000,
    PLANET_MEAN_MOTION,
    PLANET_PLACEHOLDER_LON_J2000,
    SUN_MEAN_LON_J2000,
    SUN_MEAN_MOTION,
    wrap_deg,
)
from natalchart.core.timescales import TimeScales

log = logging.getLogger(__name__)

EPHEMERIS_NAME_DEFAULT = "de421"


# ─────────────────────────────────────────────────────────────────────────────
# Exceptions
# ─────────────────────────────────────────────────────────────────────────────
class EphemerisError(RuntimeError):
    """Categorized error for ephemeris callers."""
    def __init__(self, stage: str, message: str, **context: Any):
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.message = message
        self.context = context


# ─────────────────────────────────────────────────────────────────────────────
# Skyfield backend
# ─────────────────────────────────────────────────────────────────────────────
_SKYFIELD_TARGETS: Dict[str, str] = {
    "sun": "sun",
    "moon": "moon",
    "mercury": "mercury",
    "venus": "venus",
    "mars": "mars",
    "jupiter": "jupiter barycenter",
    "saturn": "saturn barycenter",
    "uranus": "uranus barycenter",
    "neptune": "neptune barycenter",
    "pluto": "pluto barycenter",
}


def _looks_like_lfs_pointer(path: str) -> bool:
    try:
        if os.path.getsize(path) <= 512:
            with open(path, "rb") as f:
                head = f.read(128)
            return head.startswith(b"version https://git-lfs.github.com/spec/v1")
    except OSError:
        pass
    return False


class Ephemeris:
    """Anything that can answer 'ecliptic longitude of body at TT'."""

    name = "ephemeris"

    def ecliptic_longitude(self, body: str, jd_tt: float) -> float:
        raise NotImplementedError


class SkyfieldEphemeris(Ephemeris):
    """Apparent geocentric longitude in the ecliptic-of-date frame."""

    def __init__(self, kernel, timescale, name: str = EPHEMERIS_NAME_DEFAULT):
        self._kernel = kernel
        self._ts = timescale
        self._earth = kernel["earth"]
        self.name = name

    @classmethod
    def from_path(cls, path: Optional[str]) -> "SkyfieldEphemeris":
        """Load a local .bsp kernel; raises EphemerisError if it cannot be used."""
        if not path or not os.path.isfile(path):
            raise EphemerisError("kernel", f"No local kernel found at {path!r}")
        if _looks_like_lfs_pointer(path):
            raise EphemerisError("kernel", f"Kernel looks like a Git LFS pointer: {path}")
        try:
            kernel = load_file(path)
            ts = load.timescale()
        except Exception as e:
            raise EphemerisError("kernel", f"Skyfield failed to load kernel: {path}", error=str(e))
        log.info("loaded ephemeris kernel %s", path)
        return cls(kernel, ts, name=os.path.basename(path))

    def ecliptic_longitude(self, body: str, jd_tt: float) -> float:
        key = _SKYFIELD_TARGETS.get(body)
        if key is None:
            raise EphemerisError("body", f"Unsupported body '{body}'")
        t = self._ts.tt_jd(jd_tt)
        apparent = self._earth.at(t).observe(self._kernel[key]).apparent()
        _lat, lon, _dist = apparent.frame_latlon(ecliptic_frame)
        return float(lon.degrees)


# ─────────────────────────────────────────────────────────────────────────────
# Calculators
# ─────────────────────────────────────────────────────────────────────────────
class BodyPositionCalculator:
    name = "base"

    def position_of(self, body: str, ts: TimeScales) -> Optional[float]:
        raise NotImplementedError

    def positions(self, bodies: Iterable[str], ts: TimeScales) -> Dict[str, float]:
        """Independent best-effort lookups; unavailable bodies are left out."""
        out: Dict[str, float] = {}
        for body in bodies:
            try:
                lon = self.position_of(body, ts)
            except Exception:
                log.exception("position lookup raised for %s (%s strategy)", body, self.name)
                continue
            if lon is None:
                log.warning("position unavailable for %s (%s strategy)", body, self.name)
                continue
            out[body] = lon
        return out


class EphemerisPositions(BodyPositionCalculator):
    """Precise strategy: any finite longitude from the ephemeris is accepted."""

    name = "precise"

    def __init__(self, ephemeris: Ephemeris):
        self.ephemeris = ephemeris

    def position_of(self, body: str, ts: TimeScales) -> Optional[float]:
        try:
            lon = float(self.ephemeris.ecliptic_longitude(body, ts.jd_tt))
        except Exception as e:
            log.warning("ephemeris %s failed for %s at JD(TT) %.6f: %s",
                        getattr(self.ephemeris, "name", "?"), body, ts.jd_tt, e)
            return None
        if not math.isfinite(lon):
            log.warning("ephemeris returned non-finite longitude for %s: %r", body, lon)
            return None
        return wrap_deg(lon)


class MeanMotionPositions(BodyPositionCalculator):
    """
    Approximation strategy.

    lon(body, t) = start(body) + rate(body) * (jd_tt - J2000), mod 360

    Sun uses its mean longitude (no equation of centre, error up to ~2°).
    The Moon rides on the Sun term plus its sidereal rate, so the Moon−Sun
    offset returns to its start after one sidereal month. Planet start values
    are placeholder calibration data (see constants).
    """

    name = "approximate"

    def sun(self, jd_tt: float) -> float:
        return wrap_deg(SUN_MEAN_LON_J2000 + SUN_MEAN_MOTION * (jd_tt - J2000_JD))

    def moon(self, jd_tt: float) -> float:
        d = jd_tt - J2000_JD
        return wrap_deg(self.sun(jd_tt) + MOON_OFFSET_J2000 + MOON_MEAN_MOTION * d)

    def position_of(self, body: str, ts: TimeScales) -> Optional[float]:
        jd = ts.jd_tt
        if not math.isfinite(jd):
            return None
        if body == "sun":
            return self.sun(jd)
        if body == "moon":
            return self.moon(jd)
        if body in PLANET_MEAN_MOTION:
            start = PLANET_PLACEHOLDER_LON_J2000[body]
            return wrap_deg(start + PLANET_MEAN_MOTION[body] * (jd - J2000_JD))
        log.debug("no mean-motion entry for %s (known: %s)", body, ", ".join(BODIES))
        return None
