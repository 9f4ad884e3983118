"""Custom exception hierarchy for evconnect."""

from __future__ import annotations


class EvConnectError(Exception):
    """Base exception for all evconnect errors."""


class ConfigurationError(EvConnectError):
    """Client id/secret missing or still set to placeholder values."""


class CredentialStoreError(EvConnectError):
    """Durable credential store could not be read, written or decrypted."""


class AuthenticationError(EvConnectError):
    """Token exchange or refresh failed, or the session was rejected twice.

    Raised by :meth:`SessionManager.authorized_request` when a 401 could not
    be recovered with a single refresh.  When the refresh itself failed the
    stored credentials have already been cleared.
    """


class RequestError(EvConnectError):
    """HTTP-level failure other than 401 (non-2xx, network, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class NotFoundError(EvConnectError):
    """Requested vehicle id is not in the account's vehicle list."""

    def __init__(self, message: str, *, vehicle_id: str = "") -> None:
        self.vehicle_id = vehicle_id
        super().__init__(message)
