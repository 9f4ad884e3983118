from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest
from conftest import VEHICLE_ID, VIN, sample_vehicle_data

from evconnect._constants import MILES_TO_KM
from evconnect.ingestion.fallback import fallback_detailed_state, fallback_vehicle_state, fallback_vehicles
from evconnect.ingestion.normalize import round_half_up, safe_bool, safe_float, safe_str
from evconnect.ingestion.vehicle_state import (
    estimate_battery_health,
    extract_model,
    extract_year,
    map_charge_state,
    miles_to_km,
    normalize,
    rated_capacity,
    resolve_location_name,
    to_detailed,
    voltage_spread_ratio,
)
from evconnect.models.state import ChargeState, CheckStatus
from evconnect.models.vehicle import VehicleIdentity

IDENTITY = VehicleIdentity(id=VEHICLE_ID, vin=VIN, display_name="Model 3 Daily")
BARE_IDENTITY = VehicleIdentity(id="1")


def _with_battery(level: Any) -> dict[str, Any]:
    raw = sample_vehicle_data()
    raw["charge_state"]["battery_level"] = level
    return raw


class TestReaders:
    def test_safe_float_rejects_non_finite_and_bools(self) -> None:
        assert safe_float(float("nan")) is None
        assert safe_float(float("inf")) is None
        assert safe_float(True) is None
        assert safe_float("12.5") == 12.5
        assert safe_float("n/a") is None

    def test_safe_bool_variants(self) -> None:
        assert safe_bool(1) is True
        assert safe_bool("false") is False
        assert safe_bool("maybe") is None

    def test_safe_str_blank_is_none(self) -> None:
        assert safe_str("  ") is None
        assert safe_str(" x ") == "x"

    def test_round_half_up(self) -> None:
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -3
        assert round_half_up(11.25, 1) == 11.3

    def test_round_half_up_non_finite_is_zero(self) -> None:
        assert round_half_up(float("inf")) == 0
        assert round_half_up(float("-inf")) == 0
        assert round_half_up(float("nan")) == 0
        assert round_half_up(1e308, 1) == 0


class TestConversions:
    def test_hundred_miles(self) -> None:
        assert miles_to_km(100) == round_half_up(100 * MILES_TO_KM) == 161

    def test_zero_miles(self) -> None:
        assert miles_to_km(0) == 0

    def test_overflowing_distance_is_zero(self) -> None:
        assert miles_to_km(1.5e308) == 0

    @pytest.mark.parametrize(
        ("vin", "year"),
        [
            ("5YJ3E7EB0PF000001", 2023),
            ("5YJ3E7EB0RF000001", 2024),
            ("5YJ3E7EB0AF000001", 2010),
            ("5YJ3E7EB0ZF000001", 2023),
            ("5YJ3E7EB0pF000001", 2023),
            ("SHORT", 2023),
            ("", 2023),
        ],
    )
    def test_extract_year(self, vin: str, year: int) -> None:
        assert extract_year(vin) == year

    @pytest.mark.parametrize(
        ("name", "model"),
        [
            ("Model S Plaid", "Model S"),
            ("my Model Y", "Model Y"),
            ("Cybertruck", "Cybertruck"),
            ("Sparky", "Tesla"),
            ("", "Tesla"),
        ],
    )
    def test_extract_model(self, name: str, model: str) -> None:
        assert extract_model(name) == model

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Charging", ChargeState.CHARGING),
            ("Complete", ChargeState.COMPLETE),
            ("Stopped", ChargeState.STOPPED),
            ("Disconnected", ChargeState.DISCONNECTED),
            ("NoPower", ChargeState.DISCONNECTED),
            ("Starting", ChargeState.DISCONNECTED),
            (None, ChargeState.DISCONNECTED),
        ],
    )
    def test_map_charge_state(self, value: Any, expected: ChargeState) -> None:
        assert map_charge_state(value) is expected

    def test_rated_capacity(self) -> None:
        assert rated_capacity("Model X Long Range") == 100
        assert rated_capacity("Model 3") == 75
        assert rated_capacity("Roadster") == 75

    def test_location_name(self) -> None:
        assert resolve_location_name(0, 0) == "Unknown Location"
        assert resolve_location_name(-33.8688, 151.2093) == "-33.87, 151.21"


class TestBatteryHealth:
    @pytest.mark.parametrize(
        ("ratio", "health"),
        [(0.0, 100), (0.1, 95), (0.2, 90), (0.4, 85), (1.0, 85), (5.0, 85)],
    )
    def test_estimate(self, ratio: float, health: float) -> None:
        assert estimate_battery_health(ratio) == health

    def test_spread_ratio_from_charger_voltage(self) -> None:
        assert voltage_spread_ratio({}) == 0
        assert voltage_spread_ratio({"charger_voltage": 0}) == 0
        assert voltage_spread_ratio({"charger_voltage": None}) == 0
        assert voltage_spread_ratio({"charger_voltage": 400}) == 0
        assert voltage_spread_ratio({"charger_voltage": 240}) == pytest.approx(0.4)

    def test_parked_car_reports_full_health(self) -> None:
        raw = sample_vehicle_data()
        raw["charge_state"].update(charging_state="Disconnected", charger_voltage=0, charger_power=0)

        assert normalize(raw, IDENTITY).battery_health == 100


class TestNormalize:
    def test_full_snapshot(self) -> None:
        observed = datetime(2026, 1, 1, tzinfo=UTC)

        state = normalize(sample_vehicle_data(), IDENTITY, observed_at=observed)

        assert state.make == "Tesla"
        assert state.model == "Model 3"
        assert state.year == 2023
        assert state.vin == VIN
        assert state.registration == "Model"
        assert state.battery_level == 15
        assert state.est_battery_range_km == 161
        assert state.energy_remaining_kwh == pytest.approx(11.25, abs=0.06)
        assert state.battery_health == 85
        assert state.charge_state is ChargeState.CHARGING
        assert state.is_charging is True
        assert state.detailed_charge_state == "Charging"
        assert state.bms_state == "Charging"
        assert state.charge_amps == 16
        assert state.charger_voltage == 240
        assert state.dc_charging_power_w == state.ac_charging_power_w == 11
        assert state.charge_limit_soc == 80
        assert state.ac_charging_energy_in_kwh == 12.5
        assert state.dc_charging_energy_in_kwh == 0
        assert state.charge_port_door_open is True
        assert state.fast_charger_type == "CCS2"
        assert state.speed_kmh == 0
        assert state.odometer_km == 16093
        assert state.location.name == "37.49, -121.94"
        assert state.last_update == observed
        assert state.is_fallback is False
        assert "battery_health" in state.estimated_fields
        assert state.voltage_spread == pytest.approx(0.03)

    @pytest.mark.parametrize(
        ("field_name", "default"),
        [
            ("model", "Tesla"),
            ("year", 2023),
            ("registration", "N/A"),
            ("battery_level", 0),
            ("est_battery_range_km", 0),
            ("energy_remaining_kwh", 0),
            ("battery_health", 100),
            ("charge_state", ChargeState.DISCONNECTED),
            ("detailed_charge_state", "NotCharging"),
            ("charge_amps", 0),
            ("charger_voltage", 0),
            ("dc_charging_power_w", 0),
            ("ac_charging_power_w", 0),
            ("charge_limit_soc", 90),
            ("battery_heater_on", False),
            ("ac_charging_energy_in_kwh", 0),
            ("charge_port_door_open", False),
            ("charge_port_latch", "Engaged"),
            ("charge_port_cold_weather_mode", False),
            ("fast_charger_present", False),
            ("fast_charger_type", "CCS2"),
            ("speed_kmh", 0),
            ("odometer_km", 0),
            ("bms_state", "Active"),
            ("brick_voltage_max", 4.15),
            ("brick_voltage_min", 4.12),
        ],
    )
    @pytest.mark.parametrize("raw", [None, {}, {"charge_state": None, "drive_state": [], "vehicle_state": "x"}])
    def test_missing_fields_use_defaults(self, raw: Any, field_name: str, default: Any) -> None:
        state = normalize(raw, BARE_IDENTITY)

        assert getattr(state, field_name) == default

    def test_missing_location_defaults(self) -> None:
        state = normalize({}, BARE_IDENTITY)

        assert (state.location.latitude, state.location.longitude) == (0, 0)
        assert state.location.name == "Unknown Location"

    def test_non_finite_values_count_as_absent(self) -> None:
        raw = {
            "charge_state": {"battery_level": float("nan"), "est_battery_range": float("inf")},
            "drive_state": {"latitude": float("nan"), "longitude": 10.0, "speed": float("-inf")},
        }

        state = normalize(raw, BARE_IDENTITY)

        assert state.battery_level == 0
        assert state.est_battery_range_km == 0
        assert state.speed_kmh == 0
        assert state.location.latitude == 0

    def test_oversized_range_is_zero(self) -> None:
        state = normalize({"charge_state": {"est_battery_range": 1.5e308}}, BARE_IDENTITY)

        assert state.est_battery_range_km == 0

    def test_string_numbers_and_out_of_range_level(self) -> None:
        state = normalize({"charge_state": {"battery_level": "140", "charge_amps": "32"}}, BARE_IDENTITY)

        assert state.battery_level == 100
        assert state.charge_amps == 32

    def test_display_name_falls_back_to_vehicle_name(self) -> None:
        raw = {"vehicle_state": {"vehicle_name": "Model Y Weekend"}}

        state = normalize(raw, BARE_IDENTITY)

        assert state.model == "Model Y"
        assert state.registration == "Model"


class TestDetailed:
    def test_low_battery_produces_warning(self) -> None:
        raw = _with_battery(15)

        detailed = to_detailed(normalize(raw, IDENTITY), raw)

        warnings = detailed.warnings
        assert [check.name for check in warnings] == ["Battery Level"]
        assert warnings[0].status is CheckStatus.WARNING
        assert warnings[0].detail == "Low battery - Consider charging soon"

    @pytest.mark.parametrize("level", [20, 50, 100])
    def test_healthy_battery_has_no_warning(self, level: int) -> None:
        raw = _with_battery(level)

        detailed = to_detailed(normalize(raw, IDENTITY), raw)

        assert detailed.warnings == []
        assert all(check.status is CheckStatus.GOOD for check in detailed.system_checks)

    def test_check_details_follow_state(self) -> None:
        raw = sample_vehicle_data()

        detailed = to_detailed(normalize(raw, IDENTITY), raw)

        details = {check.name: check.detail for check in detailed.system_checks}
        assert details["Battery Management System"] == "Charging - Normal Operation"
        assert details["Battery Heater"] == "Off - Temperature Normal"
        assert details["Charge Port System"] == "Open - Connected"
        assert details["Climate Control"] == "Active"
        assert details["Vehicle Safety Systems"] == "All Systems Operational"

    def test_doors_power_and_estimates(self) -> None:
        raw = sample_vehicle_data()
        raw["climate_state"]["battery_heater"] = True

        detailed = to_detailed(normalize(raw, IDENTITY), raw)

        assert detailed.door_states.trunk is True
        assert detailed.door_states.driver_front is False
        assert detailed.door_states.any_open is True
        assert detailed.battery_temperature_c == 26
        assert detailed.charging_status == "Charging"
        assert detailed.charging_power_w == 11
        assert detailed.range_km == 161
        assert detailed.efficiency_kwh_per_100km == 15.2
        assert detailed.tire_pressure.front_left == 42
        assert detailed.tire_pressure.rear_right == 40
        assert {"efficiency_kwh_per_100km", "battery_temperature_c"} <= set(detailed.estimated_fields)

    def test_empty_snapshot(self) -> None:
        detailed = to_detailed(normalize({}, BARE_IDENTITY), {})

        assert detailed.door_states.any_open is False
        assert detailed.battery_temperature_c == 24
        assert detailed.battery_level == 0
        assert detailed.warnings == []

    @pytest.mark.parametrize("level", [None, "n/a", float("nan")])
    def test_unreported_battery_level_has_no_warning(self, level: Any) -> None:
        raw = _with_battery(level)

        detailed = to_detailed(normalize(raw, IDENTITY), raw)

        assert detailed.warnings == []

    def test_reported_zero_battery_level_warns(self) -> None:
        raw = _with_battery(0)

        detailed = to_detailed(normalize(raw, IDENTITY), raw)

        assert [check.name for check in detailed.warnings] == ["Battery Level"]


class TestFallback:
    def test_vehicle_state(self) -> None:
        state = fallback_vehicle_state()

        assert state.is_fallback is True
        assert state.registration == "ABC123"
        assert state.battery_level == 78
        assert state.model == "Model 3"
        assert state.year == 2023
        assert state.vin == "5YJ3E1EA3KF123456"
        assert state.est_battery_range_km == 425
        assert state.energy_remaining_kwh == 52.8
        assert state.battery_health == 92
        assert state.location.name == "Sydney, NSW"

    def test_detailed_state(self) -> None:
        detailed = fallback_detailed_state()

        assert detailed.is_fallback is True
        assert detailed.registration == "ABC123"
        assert detailed.charging_status == "Not Charging"
        assert len(detailed.system_checks) == 5
        assert detailed.warnings == []

    def test_vehicles(self) -> None:
        vehicles = fallback_vehicles()

        assert [v.display_name for v in vehicles] == ["Tesla Model 3"]
        assert vehicles[0].is_online is True
