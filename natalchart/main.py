# natalchart/main.py
from __future__ import annotations

import logging
import os
from typing import Any, Optional

from natalchart.core.chart import ChartAssembler
from natalchart.core.ephemeris import Ephemeris
from natalchart.core.geocoding import LocationResolver
from natalchart.core.strategy import build_strategy
from natalchart.utils.cache import LRUCache
from natalchart.utils.config import load_config
from natalchart.version import VERSION

log = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or os.environ.get("LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_resolver(cfg, geocoder: Any = None) -> Optional[LocationResolver]:
    g = cfg.geocoder
    if not g.enabled:
        log.info("geocoding disabled; charts will have no ascendant")
        return None
    size = int(g.cache_size or 0)
    return LocationResolver(
        geocoder,
        timeout=float(g.timeout),
        user_agent=g.user_agent,
        domain=g.domain,
        cache=LRUCache(size) if size > 0 else None,
    )


def create_engine(
    cfg=None,
    *,
    geocoder: Any = None,
    ephemeris: Optional[Ephemeris] = None,
) -> ChartAssembler:
    """
    Application factory: resolve configuration and the calculation strategy
    once, and wire the collaborators into a ChartAssembler.

    `geocoder` (anything with geopy's .geocode(query, exactly_one=, timeout=))
    and `ephemeris` replace the network/kernel-backed defaults.
    """
    cfg = cfg or load_config()
    strategy = build_strategy(cfg, ephemeris=ephemeris)
    engine = ChartAssembler(
        strategy,
        _build_resolver(cfg, geocoder),
        timezone=cfg.time.timezone,
        dut1_seconds=float(cfg.time.dut1_seconds),
        planets=cfg.planets,
    )
    log.info(
        "natalchart %s ready: strategy=%s houses=%s geocoder=%s tz=%s",
        VERSION, strategy.name, strategy.houses.name,
        "on" if engine.resolver is not None else "off", engine.timezone,
    )
    return engine
