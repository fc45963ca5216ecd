# natalchart/utils/metrics.py
from __future__ import annotations

from prometheus_client import Counter, Histogram

CHARTS_TOTAL = Counter(
    "natalchart_charts_total",
    "Natal charts produced, by final degradation state and strategy",
    ["state", "strategy"],
)

GEOCODE_TOTAL = Counter(
    "natalchart_geocode_total",
    "Birth place lookups, by outcome",
    ["outcome"],
)

GEOCODE_SECONDS = Histogram(
    "natalchart_geocode_seconds",
    "Wall time of a single geocoder call",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0),
)
