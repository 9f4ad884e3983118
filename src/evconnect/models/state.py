"""Normalized vehicle state records.

These are the only shapes presentation code sees.  All physical values are
metric and every numeric field is finite; the ingestion layer guarantees
both before a record is built.

Fields listed in :attr:`NormalizedVehicleState.estimated_fields` are
heuristics rather than measurements (the Fleet API exposes no cell-level
battery data).  Display them as estimates.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import Field, field_validator

from evconnect._constants import (
    BATTERY_TEMP_DEFAULT_C,
    BRICK_VOLTAGE_MAX,
    BRICK_VOLTAGE_MIN,
    DEFAULT_MODEL,
    DEFAULT_YEAR,
    ESTIMATED_EFFICIENCY_KWH_PER_100KM,
    MAKE,
    PLACEHOLDER_TIRE_PRESSURE_PSI,
    UNKNOWN_LOCATION,
)
from evconnect.models._base import EvBaseModel


class ChargeState(StrEnum):
    """Internal charging state vocabulary."""

    CHARGING = "Charging"
    COMPLETE = "Complete"
    STOPPED = "Stopped"
    DISCONNECTED = "Disconnected"


class CheckStatus(StrEnum):
    GOOD = "good"
    WARNING = "warning"
    ERROR = "error"


class _FiniteModel(EvBaseModel):
    """Rejects NaN/inf in any float field."""

    @field_validator("*", mode="after")
    @classmethod
    def _require_finite(cls, value: Any) -> Any:
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("numeric fields must be finite")
        return value


class Location(_FiniteModel):
    latitude: float = 0.0
    longitude: float = 0.0
    name: str = UNKNOWN_LOCATION


class DoorStates(EvBaseModel):
    """Door/trunk open flags.  ``True`` means open."""

    driver_front: bool = False
    passenger_front: bool = False
    driver_rear: bool = False
    passenger_rear: bool = False
    frunk: bool = False
    trunk: bool = False

    @property
    def any_open(self) -> bool:
        return any(
            (
                self.driver_front,
                self.passenger_front,
                self.driver_rear,
                self.passenger_rear,
                self.frunk,
                self.trunk,
            )
        )


class TirePressure(_FiniteModel):
    """Tire pressures in psi.

    Placeholder values: the Fleet API does not reliably expose TPMS data.
    """

    front_left: float = PLACEHOLDER_TIRE_PRESSURE_PSI["front_left"]
    front_right: float = PLACEHOLDER_TIRE_PRESSURE_PSI["front_right"]
    rear_left: float = PLACEHOLDER_TIRE_PRESSURE_PSI["rear_left"]
    rear_right: float = PLACEHOLDER_TIRE_PRESSURE_PSI["rear_right"]


class SystemCheck(EvBaseModel):
    name: str
    status: CheckStatus = CheckStatus.GOOD
    detail: str | None = None


class NormalizedVehicleState(_FiniteModel):
    """Flat, metric vehicle state for one vehicle."""

    # Identity
    make: str = MAKE
    model: str = DEFAULT_MODEL
    year: int = DEFAULT_YEAR
    vin: str = ""
    registration: str = "N/A"

    # Battery
    battery_level: float = 0.0
    """State of charge in percent."""
    est_battery_range_km: float = 0.0
    energy_remaining_kwh: float = 0.0
    """Estimated from SoC and the rated capacity of the model family."""
    battery_health: float = 100.0
    """Estimated state of health in percent.  Heuristic, not measured."""
    brick_voltage_max: float = BRICK_VOLTAGE_MAX
    """Highest cell-group voltage.  Placeholder, not exposed by the API."""
    brick_voltage_min: float = BRICK_VOLTAGE_MIN
    """Lowest cell-group voltage.  Placeholder, not exposed by the API."""

    # Charging
    charge_state: ChargeState = ChargeState.DISCONNECTED
    detailed_charge_state: str = "NotCharging"
    """Provider charging state string, unmapped."""
    charge_amps: float = 0.0
    charger_voltage: float = 0.0
    dc_charging_power_w: float = 0.0
    ac_charging_power_w: float = 0.0
    charge_limit_soc: float = 90.0
    battery_heater_on: bool = False
    ac_charging_energy_in_kwh: float = 0.0
    dc_charging_energy_in_kwh: float = 0.0

    # Charge port
    charge_port_door_open: bool = False
    charge_port_latch: str = "Engaged"
    charge_port_cold_weather_mode: bool = False
    fast_charger_present: bool = False
    fast_charger_type: str = "CCS2"

    # Motion / context
    speed_kmh: float = 0.0
    odometer_km: float = 0.0
    location: Location = Field(default_factory=Location)

    bms_state: str = "Active"
    last_update: datetime = Field(default_factory=lambda: datetime.now(UTC))
    is_fallback: bool = False
    """``True`` when this record is the synthetic demo vehicle."""
    estimated_fields: tuple[str, ...] = ()
    """Names of fields whose values are heuristics or placeholders."""

    @property
    def voltage_spread(self) -> float:
        """Cell voltage spread in volts (derived from placeholder bricks)."""
        return round(self.brick_voltage_max - self.brick_voltage_min, 3)

    @property
    def is_charging(self) -> bool:
        return self.charge_state is ChargeState.CHARGING


class DetailedVehicleState(NormalizedVehicleState):
    """Normalized state plus diagnostics.  Built on demand, never cached."""

    battery_temperature_c: float = BATTERY_TEMP_DEFAULT_C
    """Estimated from the battery heater flag."""
    charging_status: str = ChargeState.DISCONNECTED.value
    charging_power_w: float = 0.0
    range_km: float = 0.0
    efficiency_kwh_per_100km: float = ESTIMATED_EFFICIENCY_KWH_PER_100KM
    """Fixed average consumption.  Heuristic, not measured."""
    door_states: DoorStates = Field(default_factory=DoorStates)
    tire_pressure: TirePressure = Field(default_factory=TirePressure)
    system_checks: tuple[SystemCheck, ...] = ()

    @property
    def warnings(self) -> list[SystemCheck]:
        return [check for check in self.system_checks if check.status is not CheckStatus.GOOD]
