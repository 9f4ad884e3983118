"""Synthetic demo vehicle.

Returned when the session is not authenticated, the provider is not the
live one, or a live fetch fails.  Every record built here carries
``is_fallback=True`` so presentation code can label it.
"""

from __future__ import annotations

from datetime import UTC, datetime

from evconnect._constants import MAKE, PROVIDER
from evconnect.ingestion.vehicle_state import DETAILED_ESTIMATED_FIELDS, ESTIMATED_FIELDS
from evconnect.models.state import (
    ChargeState,
    CheckStatus,
    DetailedVehicleState,
    DoorStates,
    Location,
    NormalizedVehicleState,
    SystemCheck,
    TirePressure,
)
from evconnect.models.vehicle import VehicleIdentity

DEMO_VEHICLE_ID = "12345"
DEMO_VIN = "5YJ3E1EA3KF123456"


def fallback_identity() -> VehicleIdentity:
    return VehicleIdentity(
        id=DEMO_VEHICLE_ID,
        vin=DEMO_VIN,
        display_name="Tesla Model 3",
        provider=PROVIDER,
        state="online",
        color="white",
    )


def fallback_vehicles() -> list[VehicleIdentity]:
    """Vehicle list shown when the live list is unavailable."""
    return [fallback_identity()]


def fallback_vehicle_state(*, observed_at: datetime | None = None) -> NormalizedVehicleState:
    """The demo vehicle: a parked, unplugged Model 3 in Sydney."""
    return NormalizedVehicleState(
        make=MAKE,
        model="Model 3",
        year=2023,
        vin=DEMO_VIN,
        registration="ABC123",
        battery_level=78,
        est_battery_range_km=425,
        energy_remaining_kwh=52.8,
        battery_health=92,
        brick_voltage_max=4.15,
        brick_voltage_min=4.12,
        charge_state=ChargeState.DISCONNECTED,
        detailed_charge_state="NotCharging",
        charge_limit_soc=90,
        charge_port_latch="Engaged",
        fast_charger_type="CCS2",
        odometer_km=25847,
        location=Location(latitude=-33.8688, longitude=151.2093, name="Sydney, NSW"),
        bms_state="Active",
        last_update=observed_at or datetime.now(UTC),
        is_fallback=True,
        estimated_fields=ESTIMATED_FIELDS,
    )


def fallback_detailed_state(*, observed_at: datetime | None = None) -> DetailedVehicleState:
    base = fallback_vehicle_state(observed_at=observed_at).model_dump(exclude={"estimated_fields"})
    return DetailedVehicleState(
        **base,
        estimated_fields=DETAILED_ESTIMATED_FIELDS,
        battery_temperature_c=24,
        charging_status="Not Charging",
        charging_power_w=0,
        range_km=425,
        efficiency_kwh_per_100km=15.2,
        door_states=DoorStates(),
        tire_pressure=TirePressure(),
        system_checks=(
            SystemCheck(name="Battery Management System", status=CheckStatus.GOOD, detail="Active - Normal Operation"),
            SystemCheck(name="Battery Heater", status=CheckStatus.GOOD, detail="Off - Temperature Normal"),
            SystemCheck(name="Charge Port System", status=CheckStatus.GOOD, detail="Latch Engaged"),
            SystemCheck(name="Climate Control", status=CheckStatus.GOOD, detail="Standby"),
            SystemCheck(name="Vehicle Safety Systems", status=CheckStatus.GOOD, detail="All Systems Operational"),
        ),
    )
