"""Vehicle identity model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from evconnect._constants import PROVIDER
from evconnect.ingestion.normalize import safe_bool, safe_int, safe_str
from evconnect.models._base import EvBaseModel


class VehicleIdentity(EvBaseModel):
    """A vehicle associated with the account.

    Fields are mapped from one item of the ``GET /api/1/vehicles`` response.
    ``id`` is kept as a string so it can be compared with path parameters
    directly.
    """

    id: str = Field(default="", validation_alias=AliasChoices("id", "id_s"))
    """Fleet API vehicle id used in request paths."""
    vin: str = ""
    """Vehicle Identification Number."""
    display_name: str = ""
    """User-assigned name (e.g. ``"Model 3 Daily"``)."""
    provider: str = PROVIDER
    """Telemetry provider the identity was fetched from."""
    vehicle_id: int | None = None
    """Secondary identifier used by the streaming API."""
    state: str = ""
    """Connectivity state reported by the list endpoint (``online``, ``asleep``, ...)."""
    color: str = ""
    in_service: bool = False

    raw: dict[str, Any] = Field(default_factory=dict, repr=False)
    """Original list item."""

    @model_validator(mode="before")
    @classmethod
    def _ensure_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        merged.setdefault("raw", values)
        return merged

    @field_validator("id", "vin", "display_name", "state", "color", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return safe_str(value) or ""

    @field_validator("vehicle_id", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("in_service", mode="before")
    @classmethod
    def _coerce_bool(cls, value: Any) -> bool:
        return bool(safe_bool(value))

    @property
    def is_online(self) -> bool:
        return self.state == "online"
