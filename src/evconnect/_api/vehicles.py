"""Vehicle list endpoint: ``GET /api/1/vehicles``."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from evconnect._api._common import unwrap_response
from evconnect.exceptions import RequestError
from evconnect.models.vehicle import VehicleIdentity
from evconnect.session import SessionManager

_logger = logging.getLogger(__name__)

ENDPOINT = "/api/1/vehicles"


async def fetch_vehicle_list(session: SessionManager) -> list[VehicleIdentity]:
    """Fetch all vehicles associated with the authenticated account.

    Items that are not objects or that fail validation are skipped.
    A ``null`` response is an empty account.
    """
    payload = await session.authorized_request(ENDPOINT)
    response = unwrap_response(payload, endpoint=ENDPOINT)
    if response is None:
        return []
    if not isinstance(response, list):
        raise RequestError(f"Expected a list from {ENDPOINT}, got {type(response).__name__}", endpoint=ENDPOINT)

    vehicles: list[VehicleIdentity] = []
    for item in response:
        if not isinstance(item, dict):
            continue
        try:
            vehicle = VehicleIdentity.model_validate(item)
        except ValidationError:
            _logger.debug("Skipping unparseable vehicle list item", exc_info=True)
            continue
        if not vehicle.id:
            _logger.debug("Skipping vehicle list item without id")
            continue
        vehicles.append(vehicle)
    return vehicles
