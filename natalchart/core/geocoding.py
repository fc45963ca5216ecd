# natalchart/core/geocoding.py
"""
Place name → coordinates.

LocationResolver wraps a geopy geocoder (Nominatim/OpenStreetMap by default)
with a single, time-bounded attempt. A miss is an ordinary outcome: resolve()
returns None on an empty result, any geocoder/network error, a timeout, or a
payload whose coordinates are not finite numbers in range.
"""
from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Any, Optional
import logging
import math

from geopy.exc import GeopyError
from geopy.geocoders import Nominatim

from natalchart.utils.cache import LRUCache
from natalchart.utils.metrics import GEOCODE_SECONDS, GEOCODE_TOTAL

log = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "natalchart/0.1 (birth chart geocoding)"
DEFAULT_TIMEOUT_S = 5.0


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float

    def __post_init__(self):
        if not (math.isfinite(self.latitude) and -90.0 <= self.latitude <= 90.0):
            raise ValueError(f"latitude out of range: {self.latitude!r}")
        if not (math.isfinite(self.longitude) and -180.0 <= self.longitude <= 180.0):
            raise ValueError(f"longitude out of range: {self.longitude!r}")


def _as_float(v: Any) -> Optional[float]:
    try:
        if v is None:
            return None
        x = float(v)
        return x if math.isfinite(x) else None
    except (TypeError, ValueError):
        return None


def _coordinates_from(location: Any) -> Optional[Coordinates]:
    """Prefer the raw provider payload ({'lat': '..', 'lon': '..'}), else geopy's parsed fields."""
    raw = getattr(location, "raw", None)
    if isinstance(raw, dict) and "lat" in raw and "lon" in raw:
        lat, lon = _as_float(raw.get("lat")), _as_float(raw.get("lon"))
    else:
        lat = _as_float(getattr(location, "latitude", None))
        lon = _as_float(getattr(location, "longitude", None))
    if lat is None or lon is None:
        return None
    try:
        return Coordinates(lat, lon)
    except ValueError:
        return None


class LocationResolver:
    def __init__(
        self,
        geocoder: Any = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_S,
        user_agent: str = DEFAULT_USER_AGENT,
        domain: Optional[str] = None,
        cache: Optional[LRUCache] = None,
    ):
        if geocoder is None:
            kwargs = {"user_agent": user_agent, "timeout": timeout}
            if domain:
                kwargs["domain"] = domain
            geocoder = Nominatim(**kwargs)
        self.geocoder = geocoder
        self.timeout = float(timeout)
        self.cache = cache

    def resolve(self, place_name: str) -> Optional[Coordinates]:
        query = (place_name or "").strip() if isinstance(place_name, str) else ""
        if not query:
            GEOCODE_TOTAL.labels(outcome="skipped").inc()
            return None

        key = query.lower()
        if self.cache is not None:
            hit = self.cache.get(key)
            if hit is not None:
                GEOCODE_TOTAL.labels(outcome="cached").inc()
                return hit

        t0 = perf_counter()
        try:
            location = self.geocoder.geocode(query, exactly_one=True, timeout=self.timeout)
        except GeopyError as e:
            GEOCODE_TOTAL.labels(outcome="error").inc()
            log.warning("geocoding failed for %r: %s: %s", query, type(e).__name__, e)
            return None
        except Exception as e:
            GEOCODE_TOTAL.labels(outcome="error").inc()
            log.warning("geocoding client error for %r: %r", query, e)
            return None
        finally:
            GEOCODE_SECONDS.observe(perf_counter() - t0)

        if isinstance(location, (list, tuple)):
            location = location[0] if location else None
        if not location:
            GEOCODE_TOTAL.labels(outcome="not_found").inc()
            log.warning("no coordinates found for %r", query)
            return None

        coords = _coordinates_from(location)
        if coords is None:
            GEOCODE_TOTAL.labels(outcome="invalid").inc()
            log.warning("invalid coordinates in geocoder payload for %r", query)
            return None

        GEOCODE_TOTAL.labels(outcome="found").inc()
        log.info("geocoded %r to lat=%.5f lon=%.5f", query, coords.latitude, coords.longitude)
        if self.cache is not None:
            self.cache.set(key, coords)
        return coords
