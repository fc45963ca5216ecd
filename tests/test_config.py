# tests/test_config.py
from __future__ import annotations

import pytest

from natalchart.core.chart import BirthData, ChartState
from natalchart.main import create_engine
from natalchart.core.strategy import build_strategy
from natalchart.utils.config import load_config
from fakes import LONDON, FakeEphemeris, FakeGeocoder


def test_defaults() -> None:
    cfg = load_config()
    assert cfg.ephemeris.strategy == "approximate"
    assert cfg["time"]["timezone"] == "UTC"
    assert cfg.geocoder.enabled is True
    assert cfg.geocoder.cache_size == 512
    assert len(cfg.planets) == 8


def test_yaml_file_then_env(tmp_path, monkeypatch) -> None:
    p = tmp_path / "natal.yaml"
    p.write_text(
        "ephemeris:\n"
        "  strategy: precise\n"
        "  kernel_path: /nowhere/de440s.bsp\n"
        "time:\n"
        "  timezone: Europe/Lisbon\n"
        "geocoder:\n"
        "  timeout: 2.0\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("NATAL_CONFIG", str(p))
    monkeypatch.setenv("NATAL_GEOCODER_TIMEOUT", "3.5")
    monkeypatch.setenv("NATAL_GEOCODER_ENABLED", "off")
    cfg = load_config()
    assert cfg.ephemeris.strategy == "precise"
    assert cfg.ephemeris.kernel_path == "/nowhere/de440s.bsp"
    assert cfg.time.timezone == "Europe/Lisbon"
    assert cfg.time.dut1_seconds == 0.0          # untouched default survives the merge
    assert cfg.geocoder.timeout == 3.5
    assert cfg.geocoder.enabled is False


def test_invalid_strategy(monkeypatch) -> None:
    monkeypatch.setenv("NATAL_EPHEMERIS_STRATEGY", "exact")
    with pytest.raises(ValueError):
        load_config()


def test_invalid_env_number(monkeypatch) -> None:
    monkeypatch.setenv("NATAL_DUT1_SECONDS", "a lot")
    with pytest.raises(ValueError, match="NATAL_DUT1_SECONDS"):
        load_config()


# ─────────────────────────────────────────────────────────────────────────────
# Strategy selection
# ─────────────────────────────────────────────────────────────────────────────

def test_precise_falls_back_when_kernel_missing(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("NATAL_EPHEMERIS_STRATEGY", "precise")
    monkeypatch.setenv("NATAL_EPHEMERIS_PATH", str(tmp_path / "missing.bsp"))
    strategy = build_strategy(load_config())
    assert strategy.name == "approximate"
    assert strategy.houses.name == "hour-angle"


def test_precise_with_supplied_ephemeris(monkeypatch) -> None:
    monkeypatch.setenv("NATAL_EPHEMERIS_STRATEGY", "precise")
    strategy = build_strategy(load_config(), ephemeris=FakeEphemeris())
    assert strategy.name == "precise"
    assert strategy.houses.name == "placidus"


def test_approximate_ignores_ephemeris() -> None:
    assert build_strategy(load_config(), ephemeris=FakeEphemeris()).name == "approximate"


# ─────────────────────────────────────────────────────────────────────────────
# Engine factory
# ─────────────────────────────────────────────────────────────────────────────

def test_create_engine_end_to_end() -> None:
    geo = FakeGeocoder(default=LONDON)
    engine = create_engine(geocoder=geo)
    chart = engine.calculate(BirthData("1990-05-15", "10:30", "London, UK"))
    assert chart.state is ChartState.FULL
    assert engine.resolver.cache is not None
    assert len(geo.calls) == 1


def test_create_engine_geocoder_disabled(monkeypatch) -> None:
    monkeypatch.setenv("NATAL_GEOCODER_ENABLED", "false")
    engine = create_engine(geocoder=FakeGeocoder(default=LONDON))
    assert engine.resolver is None
    chart = engine.calculate(BirthData("1990-05-15", "10:30", "London, UK"))
    assert chart.state is ChartState.NO_LOCATION


def test_create_engine_reads_birth_time_in_configured_zone(monkeypatch) -> None:
    monkeypatch.setenv("NATAL_TIMEZONE", "Asia/Kolkata")
    local = create_engine(geocoder=FakeGeocoder(default=LONDON))
    monkeypatch.setenv("NATAL_TIMEZONE", "UTC")
    utc = create_engine(geocoder=FakeGeocoder(default=LONDON))
    a = local.calculate(BirthData("1990-05-15", "10:30", "x"))
    b = utc.calculate(BirthData("1990-05-15", "05:00", "x"))
    assert a.sun_longitude == pytest.approx(b.sun_longitude, abs=1e-9)
    assert a.ascendant_longitude == pytest.approx(b.ascendant_longitude, abs=1e-6)
