# app/services/vehicle_cache.py
"""
Read-through cache of vehicle snapshots, keyed by id and by VIN.

The database stays the source of truth: the cache only holds plain dicts
copied from committed rows, expires them after VEHICLE_CACHE_TTL_SECONDS, and
is invalidated by every service that writes a vehicle. Transitions always
validate against a fresh row, never against a cached snapshot.
"""

import time
from typing import Optional

from sqlalchemy import inspect

from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)


class VehicleCache:
    def __init__(self, ttl_seconds: int = settings.VEHICLE_CACHE_TTL_SECONDS, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._by_id: dict[int, tuple[float, dict]] = {}
        self._vin_to_id: dict[str, int] = {}

    def get(self, key) -> Optional[dict]:
        """Look up by integer id or VIN. Returns a copy, or None on miss/expiry."""
        vehicle_id = self._vin_to_id.get(key) if isinstance(key, str) else key
        if vehicle_id is None:
            return None
        entry = self._by_id.get(vehicle_id)
        if entry is None:
            return None
        stored_at, snapshot = entry
        if self._clock() - stored_at > self.ttl_seconds:
            self.invalidate(vehicle_id)
            return None
        return dict(snapshot)

    def put(self, snapshot: dict) -> None:
        vehicle_id = snapshot["id"]
        self._by_id[vehicle_id] = (self._clock(), dict(snapshot))
        self._vin_to_id[snapshot["vin"]] = vehicle_id

    def invalidate(self, key) -> None:
        vehicle_id = self._vin_to_id.get(key) if isinstance(key, str) else key
        entry = self._by_id.pop(vehicle_id, None)
        if entry is not None:
            self._vin_to_id.pop(entry[1]["vin"], None)
            logger.debug(f"[CACHE] invalidated vehicle {vehicle_id}")

    def clear(self) -> None:
        self._by_id.clear()
        self._vin_to_id.clear()

    def __len__(self):
        return len(self._by_id)


def snapshot(vehicle) -> dict:
    """Column values of a Vehicle row as a plain dict."""
    return {attr.key: getattr(vehicle, attr.key) for attr in inspect(vehicle).mapper.column_attrs}


vehicle_cache = VehicleCache()
