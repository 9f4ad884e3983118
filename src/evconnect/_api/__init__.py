"""Fleet API endpoint modules (raw, un-normalized documents)."""

from evconnect._api.vehicle_data import (
    TELEMETRY_DOMAINS,
    fetch_charge_state,
    fetch_climate_state,
    fetch_drive_state,
    fetch_vehicle_data,
    fetch_vehicle_state,
    wake_up,
)
from evconnect._api.vehicles import fetch_vehicle_list

__all__ = [
    "TELEMETRY_DOMAINS",
    "fetch_charge_state",
    "fetch_climate_state",
    "fetch_drive_state",
    "fetch_vehicle_data",
    "fetch_vehicle_list",
    "fetch_vehicle_state",
    "wake_up",
]
