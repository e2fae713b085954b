# tests/conftest.py
"""Shared fixtures. Points the app at SQLite before anything imports app.config."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import date, timedelta
from app.models.vehicle import Vehicle
from app.services.vehicle_cache import vehicle_cache

VALID_VIN = "LDP95H961PE300001"


def make_vehicle(**overrides) -> Vehicle:
    """Transient Vehicle row with sensible defaults (CAR_INVENTORY / AVAILABLE, PDI done)."""
    fields = dict(
        id=1,
        vin=VALID_VIN,
        brand="Voyah",
        model="Free",
        location="CAR_INVENTORY",
        status="AVAILABLE",
        pdi_completed=True,
    )
    fields.update(overrides)
    return Vehicle(**fields)


def days_from_today(n: int) -> date:
    return date.today() + timedelta(days=n)


@pytest.fixture(autouse=True)
def clear_vehicle_cache():
    vehicle_cache.clear()
    yield
    vehicle_cache.clear()
