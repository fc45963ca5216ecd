# natalchart/core/strategy.py
"""
Startup-time selection of the calculation strategy.

A Strategy pairs a body-position calculator with a house calculator. It is
resolved once from configuration; the approximation strategy is the
unconditional fallback when the precise one cannot start (kernel missing,
unreadable, or rejected by Skyfield).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import logging

from natalchart.core.ephemeris import (
    BodyPositionCalculator,
    Ephemeris,
    EphemerisError,
    EphemerisPositions,
    MeanMotionPositions,
    SkyfieldEphemeris,
)
from natalchart.core.houses import HouseCalculator, HourAngleAscendant, PlacidusHouses

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Strategy:
    name: str
    positions: BodyPositionCalculator
    houses: HouseCalculator


def approximate_strategy() -> Strategy:
    positions = MeanMotionPositions()
    return Strategy("approximate", positions, HourAngleAscendant(positions))


def precise_strategy(ephemeris: Ephemeris) -> Strategy:
    return Strategy("precise", EphemerisPositions(ephemeris), PlacidusHouses())


def build_strategy(cfg, ephemeris: Optional[Ephemeris] = None) -> Strategy:
    """
    Resolve the configured strategy.

    `ephemeris` short-circuits kernel loading (tests, or a caller that already
    holds a loaded ephemeris).
    """
    wanted = cfg.ephemeris.strategy
    if wanted != "precise":
        log.info("using approximate (mean-motion) strategy")
        return approximate_strategy()

    if ephemeris is None:
        try:
            ephemeris = SkyfieldEphemeris.from_path(cfg.ephemeris.kernel_path)
        except EphemerisError as e:
            log.warning("precise strategy unavailable, falling back to approximate: %s", e)
            return approximate_strategy()

    log.info("using precise strategy (%s)", getattr(ephemeris, "name", "ephemeris"))
    return precise_strategy(ephemeris)
