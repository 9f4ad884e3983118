"""In-memory vehicle list cache with a freshness window."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from evconnect._constants import VEHICLE_CACHE_TTL
from evconnect.models.vehicle import VehicleIdentity


@dataclass(frozen=True, slots=True)
class VehicleCacheEntry:
    """An immutable snapshot of one session's vehicle list."""

    vehicles: tuple[VehicleIdentity, ...]
    fetched_at: float

    def age(self, now: float) -> float:
        return now - self.fetched_at


class VehicleListCache:
    """Bound vehicle-list request rate per session.

    Entries are keyed by :attr:`SessionManager.session_key` and are replaced
    wholesale on every write, so a reader sees either the previous list or
    the new one, never a mix.

    Parameters
    ----------
    ttl : float
        Freshness window in seconds.  An entry aged ``>= ttl`` is stale.
    clock : callable
        Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl: float = VEHICLE_CACHE_TTL,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, VehicleCacheEntry] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> list[VehicleIdentity] | None:
        """Return the cached list if present and fresh, else ``None``."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.age(self._clock()) >= self._ttl:
            return None
        return list(entry.vehicles)

    def put(self, key: str, vehicles: Iterable[VehicleIdentity]) -> VehicleCacheEntry:
        entry = VehicleCacheEntry(vehicles=tuple(vehicles), fetched_at=self._clock())
        self._entries[key] = entry
        return entry

    def invalidate(self, key: str | None = None) -> None:
        """Drop the entry for *key*, or every entry when *key* is ``None``."""
        if key is None:
            self._entries = {}
            return
        self._entries.pop(key, None)

    def age_seconds(self, key: str) -> float | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return entry.age(self._clock())
