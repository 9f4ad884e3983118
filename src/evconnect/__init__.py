"""evconnect - Async Python client for Tesla Fleet API vehicle telemetry."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("evconnect")
except PackageNotFoundError:
    __version__ = "0+local"
from evconnect._cache import VehicleListCache
from evconnect.client import EvConnectClient
from evconnect.config import EvConnectConfig
from evconnect.credentials import (
    CredentialStore,
    EncryptedFileStore,
    JsonFileStore,
    MemoryStore,
    build_credential_store,
)
from evconnect.exceptions import (
    AuthenticationError,
    ConfigurationError,
    CredentialStoreError,
    EvConnectError,
    NotFoundError,
    RequestError,
)
from evconnect.models import (
    ChargeState,
    CheckStatus,
    Credentials,
    DetailedVehicleState,
    DoorStates,
    Location,
    LoginResult,
    NormalizedVehicleState,
    SystemCheck,
    TirePressure,
    VehicleIdentity,
)
from evconnect.session import SessionManager, SessionState

__all__ = [
    "__version__",
    "AuthenticationError",
    "ChargeState",
    "CheckStatus",
    "ConfigurationError",
    "CredentialStore",
    "CredentialStoreError",
    "Credentials",
    "DetailedVehicleState",
    "DoorStates",
    "EncryptedFileStore",
    "EvConnectClient",
    "EvConnectConfig",
    "EvConnectError",
    "JsonFileStore",
    "Location",
    "LoginResult",
    "MemoryStore",
    "NormalizedVehicleState",
    "NotFoundError",
    "RequestError",
    "SessionManager",
    "SessionState",
    "SystemCheck",
    "TirePressure",
    "VehicleIdentity",
    "VehicleListCache",
    "build_credential_store",
]
