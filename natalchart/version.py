# natalchart/version.py
from __future__ import annotations
import os
from importlib.metadata import PackageNotFoundError, version

try:
    _DIST_VERSION = version("natalchart")
except PackageNotFoundError:  # source checkout, not installed
    _DIST_VERSION = "0.1.0"

# env override for CI/preview builds
VERSION = os.getenv("NATAL_VERSION", _DIST_VERSION)
