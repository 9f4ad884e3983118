"""High-level async client for Tesla vehicle telemetry."""

from __future__ import annotations

import logging
from typing import Any

from evconnect._api import fetch_vehicle_data, fetch_vehicle_list, wake_up
from evconnect._cache import VehicleListCache
from evconnect._constants import PROVIDER
from evconnect.config import EvConnectConfig
from evconnect.exceptions import EvConnectError, NotFoundError
from evconnect.ingestion.fallback import (
    fallback_detailed_state,
    fallback_vehicle_state,
    fallback_vehicles,
)
from evconnect.ingestion.vehicle_state import normalize, to_detailed
from evconnect.models.login import LoginResult
from evconnect.models.state import DetailedVehicleState, NormalizedVehicleState
from evconnect.models.vehicle import VehicleIdentity
from evconnect.session import SessionManager

_logger = logging.getLogger(__name__)


def _unexpected(exc: Exception) -> bool:
    """Whether *exc* is outside the library's own error tree and deserves a traceback."""
    return not isinstance(exc, EvConnectError)


class EvConnectClient:
    """Async client for the Tesla Fleet API.

    Data operations never raise: when the session is not authenticated, the
    id is not on the account, or a fetch or parse fails, the synthetic demo
    vehicle is returned instead (flagged ``is_fallback``) and the cause is
    logged at WARNING.

    Usage::

        async with EvConnectClient(EvConnectConfig.from_env()) as client:
            result = client.login("me@example.com", "tesla")
            ...
            await client.authenticate_with_code(code, state)
            vehicles = await client.get_vehicles()
            state = await client.get_vehicle_data(vehicles[0].id)
    """

    def __init__(
        self,
        config: EvConnectConfig | None = None,
        *,
        session: SessionManager | None = None,
        cache: VehicleListCache | None = None,
    ) -> None:
        self._session = session if session is not None else SessionManager(config)
        self._cache = cache if cache is not None else VehicleListCache(self._session.config.vehicle_cache_ttl)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> EvConnectClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._session.close()

    @property
    def session(self) -> SessionManager:
        return self._session

    @property
    def cache(self) -> VehicleListCache:
        return self._cache

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def login(self, email: str, provider: str = PROVIDER) -> LoginResult:
        """Start a login for *email* with *provider*.

        For the live provider the result carries the authorization URL the
        user must visit.  Any other provider runs in demo mode.
        """
        if provider != PROVIDER:
            _logger.info("Provider %r has no live integration, using demo data", provider)
            return LoginResult(email=email, provider=provider, demo=True)
        if not self._session.is_configured():
            _logger.warning("Tesla API not configured; set TESLA_CLIENT_ID and TESLA_CLIENT_SECRET")
            return LoginResult(email=email, provider=provider, configured=False)
        return LoginResult(email=email, provider=provider, auth_url=self._session.build_authorization_url())

    def get_auth_url(self) -> str:
        return self._session.build_authorization_url()

    async def authenticate_with_code(self, code: str, state: str | None = None) -> bool:
        """Complete the login with the code delivered to the redirect URI."""
        authenticated = await self._session.exchange_code(code, state)
        if authenticated:
            self._cache.invalidate(self._session.session_key)
        return authenticated

    def is_authenticated(self) -> bool:
        return self._session.is_authenticated()

    def logout(self) -> None:
        self._session.logout()
        self._cache.invalidate(self._session.session_key)

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    async def _vehicles_cached(self) -> list[VehicleIdentity]:
        key = self._session.session_key
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        vehicles = await fetch_vehicle_list(self._session)
        self._cache.put(key, vehicles)
        _logger.debug("Cached %d vehicle(s)", len(vehicles))
        return vehicles

    async def get_vehicles(self) -> list[VehicleIdentity]:
        """Vehicles on the account, served from cache while fresh."""
        if not self.is_authenticated():
            return fallback_vehicles()
        try:
            return await self._vehicles_cached()
        except Exception as exc:
            _logger.warning("Failed to fetch vehicle list, using demo data: %s", exc, exc_info=_unexpected(exc))
            return fallback_vehicles()

    async def _lookup(self, vehicle_id: str) -> VehicleIdentity:
        for vehicle in await self._vehicles_cached():
            if vehicle.id == str(vehicle_id):
                return vehicle
        raise NotFoundError(f"Vehicle {vehicle_id} not found", vehicle_id=vehicle_id)

    async def _fetch_snapshot(self, vehicle_id: str) -> tuple[VehicleIdentity, dict[str, Any]]:
        await wake_up(self._session, vehicle_id)
        raw = await fetch_vehicle_data(self._session, vehicle_id)
        identity = await self._lookup(vehicle_id)
        return identity, raw

    # ------------------------------------------------------------------
    # Vehicle state
    # ------------------------------------------------------------------

    async def get_vehicle_data(self, vehicle_id: str | int) -> NormalizedVehicleState:
        """Normalized state for one vehicle, or the demo vehicle on failure."""
        vehicle_id = str(vehicle_id)
        if not self.is_authenticated():
            return fallback_vehicle_state()
        try:
            identity, raw = await self._fetch_snapshot(vehicle_id)
            return normalize(raw, identity)
        except Exception as exc:
            _logger.warning(
                "Failed to fetch data for vehicle %s, using demo data: %s",
                vehicle_id,
                exc,
                exc_info=_unexpected(exc),
            )
            return fallback_vehicle_state()

    async def get_detailed_vehicle_data(self, vehicle_id: str | int) -> DetailedVehicleState:
        """Normalized state plus doors, tires, efficiency and system checks."""
        vehicle_id = str(vehicle_id)
        if not self.is_authenticated():
            return fallback_detailed_state()
        try:
            identity, raw = await self._fetch_snapshot(vehicle_id)
            return to_detailed(normalize(raw, identity), raw)
        except Exception as exc:
            _logger.warning(
                "Failed to fetch detailed data for vehicle %s, using demo data: %s",
                vehicle_id,
                exc,
                exc_info=_unexpected(exc),
            )
            return fallback_detailed_state()

    async def refresh_data(self, vehicle_id: str | int | None = None) -> NormalizedVehicleState:
        """Drop the cached vehicle list and refetch.

        Without *vehicle_id* the first vehicle on the account is used.
        """
        self._cache.invalidate(self._session.session_key)
        if not self.is_authenticated():
            return fallback_vehicle_state()
        if vehicle_id is None:
            try:
                vehicles = await self._vehicles_cached()
            except Exception as exc:
                _logger.warning("Failed to fetch vehicle list, using demo data: %s", exc, exc_info=_unexpected(exc))
                return fallback_vehicle_state()
            if not vehicles:
                return fallback_vehicle_state()
            vehicle_id = vehicles[0].id
        return await self.get_vehicle_data(vehicle_id)
