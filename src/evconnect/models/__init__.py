"""Data models for Fleet API documents and normalized vehicle state."""

from evconnect.models._base import EvBaseModel
from evconnect.models.login import LoginResult
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
from evconnect.models.token import Credentials, TokenResponse
from evconnect.models.vehicle import VehicleIdentity

__all__ = [
    "ChargeState",
    "CheckStatus",
    "Credentials",
    "DetailedVehicleState",
    "DoorStates",
    "EvBaseModel",
    "Location",
    "LoginResult",
    "NormalizedVehicleState",
    "SystemCheck",
    "TirePressure",
    "TokenResponse",
    "VehicleIdentity",
]
