"""Raw telemetry -> normalized vehicle state.

Pure functions only: no I/O, no provider calls.  Unit conversion happens
here, exactly once; everything downstream is metric.

The raw snapshot is the ``response`` object of ``vehicle_data``: a dict with
``charge_state``, ``climate_state``, ``drive_state`` and ``vehicle_state``
sub-documents, any of which may be missing.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from evconnect._constants import (
    BATTERY_TEMP_DEFAULT_C,
    BATTERY_TEMP_HEATER_ON_C,
    BRICK_VOLTAGE_MAX,
    BRICK_VOLTAGE_MIN,
    DEFAULT_CAPACITY_KWH,
    DEFAULT_MODEL,
    DEFAULT_YEAR,
    ESTIMATED_EFFICIENCY_KWH_PER_100KM,
    HEALTH_SPREAD_WEIGHT,
    KNOWN_MODELS,
    LOW_BATTERY_THRESHOLD,
    MAKE,
    MILES_TO_KM,
    MIN_ESTIMATED_HEALTH,
    NOMINAL_PACK_VOLTAGE,
    RATED_CAPACITY_KWH,
    UNKNOWN_LOCATION,
    VIN_YEAR_CODES,
    VIN_YEAR_INDEX,
)
from evconnect.ingestion.normalize import (
    bool_or,
    clamp,
    float_or,
    round_half_up,
    safe_float,
    safe_int,
    safe_str,
    str_or,
    sub_document,
)
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

_CHARGE_STATE_MAP: dict[str, ChargeState] = {
    "Charging": ChargeState.CHARGING,
    "Complete": ChargeState.COMPLETE,
    "Stopped": ChargeState.STOPPED,
    "Disconnected": ChargeState.DISCONNECTED,
    "NoPower": ChargeState.DISCONNECTED,
}

# Fields of NormalizedVehicleState that are heuristics or placeholders.
ESTIMATED_FIELDS: tuple[str, ...] = (
    "battery_health",
    "energy_remaining_kwh",
    "brick_voltage_max",
    "brick_voltage_min",
)

DETAILED_ESTIMATED_FIELDS: tuple[str, ...] = (
    *ESTIMATED_FIELDS,
    "battery_temperature_c",
    "efficiency_kwh_per_100km",
    "tire_pressure",
)


# ------------------------------------------------------------------
# Unit conversion
# ------------------------------------------------------------------


def miles_to_km(miles: float) -> float:
    """Convert miles (or mph) to km (or km/h), rounded half-up to a whole number.

    A distance too large to represent in km counts as absent and gives ``0``.
    """
    return round_half_up(miles * MILES_TO_KM)


# ------------------------------------------------------------------
# Derived values
# ------------------------------------------------------------------


def voltage_spread_ratio(charge: Mapping[str, Any]) -> float:
    """Spread proxy used for the health estimate.

    The Fleet API has no cell data, so the relative distance of the charger
    voltage from nominal pack voltage stands in for it.  A car that reports
    no charger voltage (unplugged, or the field is missing) has no spread and
    so gets the full 100 % estimate.
    """
    voltage = float_or(charge.get("charger_voltage"), 0.0)
    if voltage <= 0:
        return 0.0
    return abs(voltage - NOMINAL_PACK_VOLTAGE) / NOMINAL_PACK_VOLTAGE


def estimate_battery_health(spread_ratio: float) -> float:
    """Heuristic state of health: ``max(85, 100 - ratio * 50)``, whole percent.

    This is a placeholder estimate, not a measurement.
    """
    health = max(MIN_ESTIMATED_HEALTH, 100.0 - spread_ratio * HEALTH_SPREAD_WEIGHT)
    return round_half_up(clamp(health, 0.0, 100.0))


def rated_capacity(model_name: str) -> float:
    """Rated pack capacity in kWh for the model family in *model_name*."""
    for family, capacity in RATED_CAPACITY_KWH.items():
        if family in model_name:
            return capacity
    return DEFAULT_CAPACITY_KWH


def estimate_energy_remaining(battery_level: float, model_name: str) -> float:
    return round_half_up(battery_level / 100.0 * rated_capacity(model_name), 1)


def map_charge_state(value: Any) -> ChargeState:
    """Map the provider charging state onto :class:`ChargeState`.

    Unrecognized values are ``DISCONNECTED`` rather than an error.
    """
    text = safe_str(value)
    if text is None:
        return ChargeState.DISCONNECTED
    return _CHARGE_STATE_MAP.get(text, ChargeState.DISCONNECTED)


def extract_model(display_name: str) -> str:
    for model in KNOWN_MODELS:
        if model in display_name:
            return model
    return DEFAULT_MODEL


def extract_year(vin: str) -> int:
    """Model year from the 10th VIN character; unknown codes give the default year."""
    if len(vin) <= VIN_YEAR_INDEX:
        return DEFAULT_YEAR
    return VIN_YEAR_CODES.get(vin[VIN_YEAR_INDEX].upper(), DEFAULT_YEAR)


def resolve_location_name(latitude: float, longitude: float) -> str:
    """Display string for a coordinate pair.

    Formatting only; there is no reverse geocoding.  ``(0, 0)`` is what the
    provider reports without a GPS fix.
    """
    if latitude == 0 and longitude == 0:
        return UNKNOWN_LOCATION
    return f"{latitude:.2f}, {longitude:.2f}"


def registration_from_name(display_name: str) -> str:
    parts = display_name.split()
    return parts[0] if parts else "N/A"


# ------------------------------------------------------------------
# Records
# ------------------------------------------------------------------


def normalize(
    raw: Mapping[str, Any] | None,
    identity: VehicleIdentity,
    *,
    observed_at: datetime | None = None,
) -> NormalizedVehicleState:
    """Build a :class:`NormalizedVehicleState` from a raw snapshot.

    Every field falls back to a documented default when the provider omits
    it or sends something unusable.
    """
    snapshot: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    charge = sub_document(snapshot, "charge_state")
    drive = sub_document(snapshot, "drive_state")
    vehicle = sub_document(snapshot, "vehicle_state")

    display_name = identity.display_name or str_or(vehicle.get("vehicle_name"), "")
    model = extract_model(display_name)

    battery_level = clamp(float_or(charge.get("battery_level"), 0.0), 0.0, 100.0)
    provider_charge_state = safe_str(charge.get("charging_state"))
    charger_power_w = float_or(charge.get("charger_power"), 0.0)

    latitude = float_or(drive.get("latitude"), 0.0)
    longitude = float_or(drive.get("longitude"), 0.0)

    return NormalizedVehicleState(
        make=MAKE,
        model=model,
        year=extract_year(identity.vin),
        vin=identity.vin,
        registration=registration_from_name(display_name),
        battery_level=battery_level,
        est_battery_range_km=miles_to_km(float_or(charge.get("est_battery_range"), 0.0)),
        energy_remaining_kwh=estimate_energy_remaining(battery_level, display_name),
        battery_health=estimate_battery_health(voltage_spread_ratio(charge)),
        brick_voltage_max=BRICK_VOLTAGE_MAX,
        brick_voltage_min=BRICK_VOLTAGE_MIN,
        charge_state=map_charge_state(provider_charge_state),
        detailed_charge_state=provider_charge_state or "NotCharging",
        charge_amps=float_or(charge.get("charge_amps"), 0.0),
        charger_voltage=float_or(charge.get("charger_voltage"), 0.0),
        dc_charging_power_w=charger_power_w,
        ac_charging_power_w=charger_power_w,
        charge_limit_soc=float_or(charge.get("charge_limit_soc"), 90.0),
        battery_heater_on=bool_or(charge.get("battery_heater_on"), False),
        ac_charging_energy_in_kwh=float_or(charge.get("charge_energy_added"), 0.0),
        dc_charging_energy_in_kwh=0.0,
        charge_port_door_open=bool_or(charge.get("charge_port_door_open"), False),
        charge_port_latch=str_or(charge.get("charge_port_latch"), "Engaged"),
        charge_port_cold_weather_mode=bool_or(charge.get("charge_port_cold_weather_mode"), False),
        fast_charger_present=bool_or(charge.get("fast_charger_present"), False),
        fast_charger_type=str_or(charge.get("fast_charger_type"), "CCS2"),
        speed_kmh=miles_to_km(max(0.0, float_or(drive.get("speed"), 0.0))),
        odometer_km=miles_to_km(max(0.0, float_or(vehicle.get("odometer"), 0.0))),
        location=Location(
            latitude=latitude,
            longitude=longitude,
            name=resolve_location_name(latitude, longitude),
        ),
        bms_state="Charging" if provider_charge_state == "Charging" else "Active",
        last_update=observed_at or datetime.now(UTC),
        estimated_fields=ESTIMATED_FIELDS,
    )


def _door_open(value: Any) -> bool:
    parsed = safe_int(value)
    return parsed is not None and parsed != 0


def generate_system_checks(normalized: NormalizedVehicleState, raw: Mapping[str, Any] | None) -> list[SystemCheck]:
    """Fixed set of subsystem checks plus a low-battery warning.

    The warning needs a reported battery level; the 0 % default used when the
    level is missing does not count.
    """
    climate = sub_document(raw, "climate_state")
    level_reported = safe_float(sub_document(raw, "charge_state").get("battery_level")) is not None
    climate_on = bool_or(climate.get("is_climate_on"), False)

    checks = [
        SystemCheck(
            name="Battery Management System",
            status=CheckStatus.GOOD,
            detail=f"{normalized.detailed_charge_state} - Normal Operation",
        ),
        SystemCheck(
            name="Battery Heater",
            status=CheckStatus.GOOD,
            detail="On - Preconditioning" if normalized.battery_heater_on else "Off - Temperature Normal",
        ),
        SystemCheck(
            name="Charge Port System",
            status=CheckStatus.GOOD,
            detail="Open - Connected" if normalized.charge_port_door_open else "Closed - Ready",
        ),
        SystemCheck(
            name="Climate Control",
            status=CheckStatus.GOOD,
            detail="Active" if climate_on else "Standby",
        ),
        SystemCheck(
            name="Vehicle Safety Systems",
            status=CheckStatus.GOOD,
            detail="All Systems Operational",
        ),
    ]
    if level_reported and normalized.battery_level < LOW_BATTERY_THRESHOLD:
        checks.append(
            SystemCheck(
                name="Battery Level",
                status=CheckStatus.WARNING,
                detail="Low battery - Consider charging soon",
            )
        )
    return checks


def to_detailed(normalized: NormalizedVehicleState, raw: Mapping[str, Any] | None) -> DetailedVehicleState:
    """Extend a normalized record with doors, tires, efficiency and checks."""
    vehicle = sub_document(raw, "vehicle_state")
    climate = sub_document(raw, "climate_state")
    battery_heater = bool_or(climate.get("battery_heater"), False)

    base = normalized.model_dump(exclude={"estimated_fields"})
    return DetailedVehicleState(
        **base,
        estimated_fields=DETAILED_ESTIMATED_FIELDS,
        battery_temperature_c=BATTERY_TEMP_HEATER_ON_C if battery_heater else BATTERY_TEMP_DEFAULT_C,
        charging_status=normalized.charge_state.value,
        charging_power_w=normalized.dc_charging_power_w or normalized.ac_charging_power_w,
        range_km=normalized.est_battery_range_km,
        efficiency_kwh_per_100km=ESTIMATED_EFFICIENCY_KWH_PER_100KM,
        door_states=DoorStates(
            driver_front=_door_open(vehicle.get("df")),
            passenger_front=_door_open(vehicle.get("pf")),
            driver_rear=_door_open(vehicle.get("dr")),
            passenger_rear=_door_open(vehicle.get("pr")),
            frunk=_door_open(vehicle.get("ft")),
            trunk=_door_open(vehicle.get("rt")),
        ),
        tire_pressure=TirePressure(),
        system_checks=tuple(generate_system_checks(normalized, raw)),
    )

