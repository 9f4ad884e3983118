"""Vehicle telemetry endpoints.

Endpoints:
  - ``GET  /api/1/vehicles/{id}/vehicle_data``
  - ``GET  /api/1/vehicles/{id}/data_request/{charge,climate,drive,vehicle}_state``
  - ``POST /api/1/vehicles/{id}/wake_up``
"""

from __future__ import annotations

import logging
from typing import Any

from evconnect._api._common import unwrap_document, vehicle_path
from evconnect.exceptions import EvConnectError
from evconnect.session import SessionManager

_logger = logging.getLogger(__name__)

TELEMETRY_DOMAINS: tuple[str, ...] = ("charge_state", "climate_state", "drive_state", "vehicle_state")


async def fetch_vehicle_data(session: SessionManager, vehicle_id: str) -> dict[str, Any]:
    """Fetch the full telemetry snapshot (all domain sub-documents)."""
    endpoint = vehicle_path(vehicle_id, "/vehicle_data")
    payload = await session.authorized_request(endpoint)
    return unwrap_document(payload, endpoint=endpoint)


async def _fetch_domain(session: SessionManager, vehicle_id: str, domain: str) -> dict[str, Any]:
    if domain not in TELEMETRY_DOMAINS:
        raise ValueError(f"domain must be one of {TELEMETRY_DOMAINS}, got {domain!r}")
    endpoint = vehicle_path(vehicle_id, f"/data_request/{domain}")
    payload = await session.authorized_request(endpoint)
    return unwrap_document(payload, endpoint=endpoint)


async def fetch_charge_state(session: SessionManager, vehicle_id: str) -> dict[str, Any]:
    return await _fetch_domain(session, vehicle_id, "charge_state")


async def fetch_climate_state(session: SessionManager, vehicle_id: str) -> dict[str, Any]:
    return await _fetch_domain(session, vehicle_id, "climate_state")


async def fetch_drive_state(session: SessionManager, vehicle_id: str) -> dict[str, Any]:
    return await _fetch_domain(session, vehicle_id, "drive_state")


async def fetch_vehicle_state(session: SessionManager, vehicle_id: str) -> dict[str, Any]:
    return await _fetch_domain(session, vehicle_id, "vehicle_state")


async def wake_up(session: SessionManager, vehicle_id: str) -> bool:
    """Ask a sleeping vehicle to come online.

    Best effort: failures are logged and reported as ``False`` because a
    stale snapshot may still be served by the telemetry endpoint.
    """
    endpoint = vehicle_path(vehicle_id, "/wake_up")
    try:
        await session.authorized_request(endpoint, method="POST")
    except EvConnectError as exc:
        _logger.warning("Failed to wake up vehicle %s: %s", vehicle_id, exc)
        return False
    return True
