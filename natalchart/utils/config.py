# natalchart/utils/config.py
import copy
import os
import yaml

class AttrDict(dict):
    """Dict that also supports attribute access: cfg.ephemeris.strategy and cfg['ephemeris'] both work."""
    def __getattr__(self, item):
        try:
            return self[item]
        except KeyError as e:
            raise AttributeError(item) from e
    def __setattr__(self, key, value):
        self[key] = value

def _to_attr(obj):
    if isinstance(obj, dict):
        return AttrDict({k: _to_attr(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return [_to_attr(x) for x in obj]
    return obj

DEFAULTS = {
    "ephemeris": {
        "strategy": "approximate",        # "approximate" | "precise"
        "kernel_path": os.path.join("data", "de421.bsp"),
    },
    "time": {
        "timezone": "UTC",                # birth times are read in this IANA zone
        "dut1_seconds": 0.0,
    },
    "geocoder": {
        "enabled": True,
        "user_agent": "natalchart/0.1 (birth chart geocoding)",
        "timeout": 5.0,
        "domain": None,                   # None → nominatim.openstreetmap.org
        "cache_size": 512,                # 0 disables the cache
    },
    "planets": ["mercury", "venus", "mars", "jupiter", "saturn", "uranus", "neptune", "pluto"],
}

def _truthy(val):
    return str(val).strip().lower() in ("1", "true", "t", "yes", "y", "on")

def _deep_merge(base, override):
    out = dict(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out

# env var → (section, key, caster)
_ENV_OVERRIDES = {
    "NATAL_EPHEMERIS_STRATEGY": ("ephemeris", "strategy", lambda s: s.strip().lower()),
    "NATAL_EPHEMERIS_PATH": ("ephemeris", "kernel_path", str),
    "NATAL_TIMEZONE": ("time", "timezone", str),
    "NATAL_DUT1_SECONDS": ("time", "dut1_seconds", float),
    "NATAL_GEOCODER_ENABLED": ("geocoder", "enabled", _truthy),
    "NATAL_GEOCODER_USER_AGENT": ("geocoder", "user_agent", str),
    "NATAL_GEOCODER_TIMEOUT": ("geocoder", "timeout", float),
    "NATAL_GEOCODER_DOMAIN": ("geocoder", "domain", str),
    "NATAL_GEOCODER_CACHE_SIZE": ("geocoder", "cache_size", int),
}

def load_config(path: str = None):
    """
    Build the engine configuration:
      1. built-in DEFAULTS
      2. YAML file at `path` (or $NATAL_CONFIG), deep-merged over the defaults
      3. NATAL_* environment overrides (see _ENV_OVERRIDES)
    Returns an AttrDict for convenient access.
    """
    data = copy.deepcopy(DEFAULTS)

    path = path or os.getenv("NATAL_CONFIG")
    if path:
        with open(path, "r", encoding="utf-8") as f:
            data = _deep_merge(data, yaml.safe_load(f) or {})

    for env_key, (section, key, cast) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_key)
        if raw is None or raw == "":
            continue
        try:
            data[section][key] = cast(raw)
        except ValueError as e:
            raise ValueError(f"{env_key}={raw!r} is not valid: {e}") from e

    strategy = data["ephemeris"]["strategy"]
    if strategy not in ("approximate", "precise"):
        raise ValueError(f"ephemeris.strategy must be 'approximate' or 'precise', got {strategy!r}")

    return _to_attr(data)
