from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

import pytest

from evconnect._transport import HttpResponse
from evconnect.config import EvConnectConfig
from evconnect.credentials import CredentialStore, MemoryStore
from evconnect.exceptions import RequestError

API_BASE = "https://fleet.example.test"
AUTH_BASE = "https://auth.example.test"
VEHICLE_ID = "1492931520123456"
VIN = "5YJ3E7EB0PF000001"


def sample_vehicle_data() -> dict[str, Any]:
    return {
        "id": int(VEHICLE_ID),
        "vin": VIN,
        "charge_state": {
            "battery_level": 15,
            "est_battery_range": 100,
            "charging_state": "Charging",
            "charger_power": 11,
            "charger_voltage": 240,
            "charge_amps": 16,
            "charge_limit_soc": 80,
            "charge_energy_added": 12.5,
            "charge_port_door_open": True,
            "charge_port_latch": "Engaged",
            "fast_charger_present": False,
            "battery_heater_on": False,
        },
        "climate_state": {"is_climate_on": True, "battery_heater": False},
        "drive_state": {"latitude": 37.4925, "longitude": -121.9447, "speed": None},
        "vehicle_state": {"odometer": 10000, "df": 0, "pf": 0, "dr": 0, "pr": 0, "ft": 0, "rt": 1},
    }


@dataclass
class FakeFleetBackend:
    """In-process stand-in for the OAuth server and the Fleet API."""

    vehicles: list[dict[str, Any]] = field(
        default_factory=lambda: [
            {
                "id": int(VEHICLE_ID),
                "id_s": VEHICLE_ID,
                "vehicle_id": 1234567,
                "vin": VIN,
                "display_name": "Model 3 Daily",
                "state": "online",
                "color": None,
                "in_service": False,
            }
        ]
    )
    vehicle_data: dict[str, Any] = field(default_factory=sample_vehicle_data)
    valid_codes: set[str] = field(default_factory=lambda: {"good-code"})
    valid_access_tokens: set[str] = field(default_factory=set)
    refresh_should_fail: bool = False
    omit_refresh_token_on_refresh: bool = False
    reject_all_bearers: bool = False
    wake_should_fail: bool = False
    status_overrides: dict[str, int] = field(default_factory=dict)
    # Raw 200 bodies served instead of the normal reply
    body_overrides: dict[str, str] = field(default_factory=dict)
    token_reply: str | None = None
    token_network_error: bool = False
    calls: dict[str, int] = field(default_factory=dict)
    token_forms: list[dict[str, str]] = field(default_factory=list)
    _issued: int = 0

    def _record_call(self, method: str, path: str) -> None:
        key = f"{method} {path}"
        self.calls[key] = self.calls.get(key, 0) + 1

    def count(self, method: str, path: str) -> int:
        return self.calls.get(f"{method} {path}", 0)

    def issue_tokens(self) -> tuple[str, str]:
        self._issued += 1
        access = f"access-{self._issued}"
        self.valid_access_tokens.add(access)
        return access, f"refresh-{self._issued}"

    def expire_access_tokens(self) -> None:
        self.valid_access_tokens.clear()

    @staticmethod
    def _json(status: int, body: Any) -> HttpResponse:
        return HttpResponse(status=status, text=json.dumps(body))

    def _token(self, form: Mapping[str, str]) -> HttpResponse:
        self.token_forms.append(dict(form))
        if self.token_network_error:
            raise RequestError("Connection reset by peer", endpoint="/oauth2/v3/token")
        if self.token_reply is not None:
            return HttpResponse(status=200, text=self.token_reply)
        grant = form.get("grant_type")
        if grant == "authorization_code":
            if form.get("code") not in self.valid_codes:
                return self._json(400, {"error": "invalid_grant"})
            access, refresh = self.issue_tokens()
            return self._json(200, {"access_token": access, "refresh_token": refresh, "expires_in": 28800})
        if grant == "refresh_token":
            if self.refresh_should_fail:
                return self._json(401, {"error": "login_required"})
            access, refresh = self.issue_tokens()
            body: dict[str, Any] = {"access_token": access, "expires_in": 28800}
            if not self.omit_refresh_token_on_refresh:
                body["refresh_token"] = refresh
            return self._json(200, body)
        return self._json(400, {"error": "unsupported_grant_type"})

    def _api(self, method: str, path: str) -> HttpResponse:
        if path in self.status_overrides:
            return self._json(self.status_overrides[path], {"error": "override"})
        if path in self.body_overrides:
            return HttpResponse(status=200, text=self.body_overrides[path])

        if path == "/api/1/vehicles":
            return self._json(200, {"response": copy.deepcopy(self.vehicles), "count": len(self.vehicles)})

        prefix = "/api/1/vehicles/"
        vehicle_id, _, rest = path[len(prefix) :].partition("/")
        if vehicle_id not in {str(v.get("id")) for v in self.vehicles}:
            return self._json(404, {"error": "not_found"})

        if rest == "wake_up" and method == "POST":
            if self.wake_should_fail:
                return self._json(408, {"error": "vehicle unavailable"})
            return self._json(200, {"response": {"id": int(vehicle_id), "state": "online"}})
        if rest == "vehicle_data":
            return self._json(200, {"response": copy.deepcopy(self.vehicle_data)})
        if rest.startswith("data_request/"):
            domain = rest.split("/", 1)[1]
            return self._json(200, {"response": copy.deepcopy(self.vehicle_data.get(domain, {}))})
        raise AssertionError(f"Unexpected endpoint in fake backend: {method} {path}")

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        data: Mapping[str, str] | None = None,
        json_body: Any = None,
    ) -> HttpResponse:
        parts = urlsplit(url)
        self._record_call(method, parts.path)

        if url.startswith(AUTH_BASE):
            assert parts.path == "/oauth2/v3/token"
            assert data is not None
            return self._token(data)

        assert url.startswith(API_BASE), url
        authorization = (headers or {}).get("authorization", "")
        token = authorization.removeprefix("Bearer ")
        if self.reject_all_bearers or token not in self.valid_access_tokens:
            return self._json(401, {"error": "invalid bearer token"})
        return self._api(method, parts.path)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def config() -> EvConnectConfig:
    return EvConnectConfig(
        client_id="client-abc",
        client_secret="secret-xyz",
        redirect_uri="https://app.example.test/callback",
        api_base_url=API_BASE,
        auth_base_url=AUTH_BASE,
    )


@pytest.fixture
def backend() -> FakeFleetBackend:
    return FakeFleetBackend()


@pytest.fixture
def memory_backend() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def credential_store(memory_backend: MemoryStore) -> CredentialStore:
    return CredentialStore(memory_backend)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TESLA_CLIENT_ID",
        "TESLA_CLIENT_SECRET",
        "TESLA_REDIRECT_URI",
        "TESLA_API_BASE_URL",
        "TESLA_AUTH_URL",
        "TESLA_LOCALE",
        "TESLA_SCOPES",
        "EVCONNECT_CREDENTIALS_PATH",
        "EVCONNECT_CREDENTIALS_KEY",
        "EVCONNECT_VEHICLE_CACHE_TTL",
    ):
        monkeypatch.delenv(name, raising=False)
