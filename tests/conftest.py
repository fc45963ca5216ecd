# tests/conftest.py
from __future__ import annotations

import os

import pytest
from hypothesis import settings

# ERFA/zoneinfo calls make single examples slow on cold caches
settings.register_profile("natal", deadline=None, max_examples=120 if os.getenv("CI") else 60)
settings.load_profile("natal")


@pytest.fixture(autouse=True)
def clean_natal_env(monkeypatch):
    """Every test starts from the built-in config defaults."""
    for key in list(os.environ):
        if key.startswith("NATAL_"):
            monkeypatch.delenv(key, raising=False)
