# natalchart/core/chart.py
# -----------------------------------------------------------------------------
# Natal chart assembly with graceful degradation
#
# Public API:
#   ChartAssembler(strategy, resolver, ...).calculate(BirthData) -> CalculatedChart
#   to_natal_chart_record(user_id, chart) -> dict      (storage form + userId)
#
# Degradation states, highest fidelity first; a calculation only ever moves
# down this list:
#   FULL          Sun, Moon, planets, ascendant (+ cusps with the precise strategy)
#   NO_LOCATION   place not resolved; ascendant Unknown / 0
#   SUN_MOON_ONLY place resolved but the house calculation failed
#   CALENDAR_ONLY no usable instant or no Sun/Moon; Sun sign from the calendar
#   UNKNOWN       not even a calendar date
#
# calculate() never raises; the caller always receives a structurally valid chart.
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
import logging

from natalchart.core.constants import LUMINARIES, PLANETS, UNKNOWN_SIGN
from natalchart.core.geocoding import Coordinates, LocationResolver
from natalchart.core.houses import HouseData
from natalchart.core.signs import element_of, sign_of, zodiac_sign
from natalchart.core.strategy import Strategy
from natalchart.core.timescales import TimeNormalizationError, TimeScales, build_timescales
from natalchart.utils.metrics import CHARTS_TOTAL

log = logging.getLogger(__name__)

__all__ = [
    "BirthData",
    "CalculatedChart",
    "ChartAssembler",
    "ChartState",
    "to_natal_chart_record",
]


class ChartState(str, Enum):
    FULL = "full"
    NO_LOCATION = "no_location"
    SUN_MOON_ONLY = "sun_moon_only"
    CALENDAR_ONLY = "calendar_only"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> int:
        return _STATE_ORDER.index(self)


_STATE_ORDER: Tuple[ChartState, ...] = tuple(ChartState)


@dataclass(frozen=True)
class BirthData:
    birth_date: str       # YYYY-MM-DD
    birth_time: str       # HH:MM (24-hour)
    birth_location: str   # free text, e.g. "Lisbon, Portugal"


@dataclass(frozen=True)
class CalculatedChart:
    sun_sign: str = UNKNOWN_SIGN
    moon_sign: str = UNKNOWN_SIGN
    ascendant_sign: str = UNKNOWN_SIGN
    sun_longitude: float = 0.0
    moon_longitude: float = 0.0
    ascendant_longitude: float = 0.0
    planet_longitudes: Mapping[str, float] = field(default_factory=dict)
    house_cusps: Tuple[float, ...] = ()
    state: ChartState = ChartState.UNKNOWN
    strategy: str = "none"
    warnings: Tuple[str, ...] = ()

    def __post_init__(self):
        # read-only views; the chart is immutable once produced
        object.__setattr__(self, "planet_longitudes", MappingProxyType(dict(self.planet_longitudes)))
        object.__setattr__(self, "house_cusps", tuple(self.house_cusps))
        object.__setattr__(self, "warnings", tuple(self.warnings))

    def to_dict(self) -> Dict[str, Any]:
        d = {f.name: getattr(self, f.name) for f in fields(self)}
        d["planet_longitudes"] = dict(self.planet_longitudes)
        d["house_cusps"] = list(self.house_cusps)
        d["warnings"] = list(self.warnings)
        d["state"] = self.state.value
        return d

    def to_storage(self) -> Dict[str, Any]:
        """Persistence form: three sign names plus an opaque chartData map."""
        chart_data: Dict[str, Any] = {
            "sunPosition": self.sun_longitude,
            "moonPosition": self.moon_longitude,
            "ascendantDegree": self.ascendant_longitude,
            "planets": dict(self.planet_longitudes),
        }
        if self.house_cusps:
            chart_data["houses"] = list(self.house_cusps)
        return {
            "sunSign": self.sun_sign,
            "moonSign": self.moon_sign,
            "ascendant": self.ascendant_sign,
            "chartData": chart_data,
        }

    def placements(self) -> Dict[str, str]:
        """{'sun': 'Taurus (Earth element)', ...}; unknown placements stay 'Unknown'."""
        out: Dict[str, str] = {}
        for key, sign in (("sun", self.sun_sign), ("moon", self.moon_sign), ("ascendant", self.ascendant_sign)):
            out[key] = sign if sign == UNKNOWN_SIGN else f"{sign} ({element_of(sign)} element)"
        return out


def to_natal_chart_record(user_id: str, chart: CalculatedChart) -> Dict[str, Any]:
    record = chart.to_storage()
    record["userId"] = user_id
    return record


class _Run:
    """Mutable bookkeeping for one calculate() call."""

    def __init__(self):
        self.state = ChartState.FULL
        self.warnings: List[str] = []

    def degrade(self, state: ChartState, reason: str) -> None:
        if state.rank > self.state.rank:
            log.warning("chart degraded %s -> %s (%s)", self.state.value, state.value, reason)
            self.state = state
        self.warnings.append(reason)


class ChartAssembler:
    def __init__(
        self,
        strategy: Strategy,
        resolver: Optional[LocationResolver] = None,
        *,
        timezone: str = "UTC",
        dut1_seconds: float = 0.0,
        planets: Iterable[str] = PLANETS,
    ):
        self.strategy = strategy
        self.resolver = resolver
        self.timezone = timezone
        self.dut1_seconds = float(dut1_seconds)
        self.planets = tuple(planets)

    # ── public ──────────────────────────────────────────────────────────────
    def calculate(self, birth: BirthData) -> CalculatedChart:
        try:
            chart = self._run(birth)
        except Exception:
            log.exception("unexpected failure while calculating chart for %r", birth)
            run = _Run()
            run.degrade(ChartState.CALENDAR_ONLY, "internal_error")
            chart = self._calendar_chart(birth, run)
        CHARTS_TOTAL.labels(state=chart.state.value, strategy=chart.strategy).inc()
        return chart

    # ── stages ──────────────────────────────────────────────────────────────
    def _run(self, birth: BirthData) -> CalculatedChart:
        run = _Run()

        ts = self._timescales(birth, run)
        if ts is None:
            return self._calendar_chart(birth, run)

        positions = self.strategy.positions
        luminaries = positions.positions(LUMINARIES, ts)
        sun, moon = luminaries.get("sun"), luminaries.get("moon")
        if sun is None or moon is None:
            run.degrade(ChartState.CALENDAR_ONLY, "luminaries_unavailable")
            return self._calendar_chart(birth, run)

        planets = positions.positions(self.planets, ts)
        missing = [p for p in self.planets if p not in planets]
        if missing:
            run.warnings.append("planets_unavailable:" + ",".join(missing))

        houses: Optional[HouseData] = None
        coords = self._coordinates(birth, run)
        if coords is not None:
            houses = self._houses(ts, coords)
            if houses is None:
                run.degrade(ChartState.SUN_MOON_ONLY, "houses_unavailable")

        return self._positional_chart(run, sun, moon, planets, houses)

    def _houses(self, ts: TimeScales, coords: Coordinates) -> Optional[HouseData]:
        try:
            return self.strategy.houses.houses(ts, coords)
        except Exception:
            log.exception("house calculation (%s) raised at lat=%.4f lon=%.4f",
                          self.strategy.houses.name, coords.latitude, coords.longitude)
            return None

    def _timescales(self, birth: BirthData, run: _Run) -> Optional[TimeScales]:
        try:
            ts = build_timescales(birth.birth_date, birth.birth_time, self.timezone, self.dut1_seconds)
        except TimeNormalizationError as e:
            log.warning("cannot normalise birth instant %s %s: %s", birth.birth_date, birth.birth_time, e)
            run.degrade(ChartState.CALENDAR_ONLY, "time_invalid")
            return None
        run.warnings.extend(ts.warnings)
        return ts

    def _coordinates(self, birth: BirthData, run: _Run) -> Optional[Coordinates]:
        if self.resolver is None:
            run.degrade(ChartState.NO_LOCATION, "geocoder_disabled")
            return None
        coords = self.resolver.resolve(birth.birth_location)
        if coords is None:
            run.degrade(ChartState.NO_LOCATION, "location_unresolved")
        return coords

    # ── result builders ─────────────────────────────────────────────────────
    def _positional_chart(
        self,
        run: _Run,
        sun: float,
        moon: float,
        planets: Dict[str, float],
        houses: Optional[HouseData],
    ) -> CalculatedChart:
        asc_sign, asc_lon, cusps = UNKNOWN_SIGN, 0.0, ()
        if run.state is ChartState.FULL and houses is not None:
            asc_lon = houses.ascendant
            asc_sign = sign_of(asc_lon)
            cusps = tuple(houses.cusps)
        return CalculatedChart(
            sun_sign=sign_of(sun),
            moon_sign=sign_of(moon),
            ascendant_sign=asc_sign,
            sun_longitude=sun,
            moon_longitude=moon,
            ascendant_longitude=asc_lon,
            planet_longitudes=dict(planets),
            house_cusps=cusps,
            state=run.state,
            strategy=self.strategy.name,
            warnings=tuple(run.warnings),
        )

    def _calendar_chart(self, birth: BirthData, run: _Run) -> CalculatedChart:
        birth_date = getattr(birth, "birth_date", None)
        try:
            sun_sign = zodiac_sign(birth_date)
        except (TimeNormalizationError, ValueError, TypeError) as e:
            log.warning("calendar sign lookup failed for %r: %s", birth_date, e)
            run.degrade(ChartState.UNKNOWN, "date_invalid")
            return CalculatedChart(state=run.state, strategy="none", warnings=tuple(run.warnings))
        return CalculatedChart(
            sun_sign=sun_sign,
            state=run.state,
            strategy="calendar",
            warnings=tuple(run.warnings),
        )
