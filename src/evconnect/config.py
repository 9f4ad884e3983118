"""Client configuration for evconnect."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from evconnect._constants import (
    API_BASE_URL,
    AUTH_BASE_URL,
    DEFAULT_SCOPES,
    PLACEHOLDER_CLIENT_ID,
    PLACEHOLDER_CLIENT_SECRET,
    REDIRECT_URI,
    VEHICLE_CACHE_TTL,
)


def _is_placeholder(value: str | None, placeholder: str) -> bool:
    return value is None or not value.strip() or value == placeholder


@dataclasses.dataclass(frozen=True)
class EvConnectConfig:
    """Client configuration.

    Parameters
    ----------
    client_id : str
        OAuth client id from the Tesla developer console.
    client_secret : str
        OAuth client secret.
    redirect_uri : str
        Redirect URI registered for the application.  The authorization
        code is delivered to this URI.
    api_base_url : str
        Fleet API base URL.  Defaults to the North America region.
    auth_base_url : str
        OAuth server base URL.
    scopes : tuple[str, ...]
        Scopes requested in the authorization URL.
    locale : str
        Locale hint for the login page.
    vehicle_cache_ttl : float
        Freshness window of the in-memory vehicle list cache in seconds.
    credentials_path : str or None
        File used to persist the token pair.  ``None`` keeps tokens in
        memory only.
    credentials_key : str or None
        64-character hex AES-256 key.  When set together with
        ``credentials_path`` the token file is encrypted at rest.
    """

    client_id: str = PLACEHOLDER_CLIENT_ID
    client_secret: str = PLACEHOLDER_CLIENT_SECRET
    redirect_uri: str = REDIRECT_URI
    api_base_url: str = API_BASE_URL
    auth_base_url: str = AUTH_BASE_URL
    scopes: tuple[str, ...] = DEFAULT_SCOPES
    locale: str = "en-US"
    vehicle_cache_ttl: float = VEHICLE_CACHE_TTL
    credentials_path: str | None = None
    credentials_key: str | None = None

    @property
    def is_configured(self) -> bool:
        """Whether both client credentials are set to real values."""
        return not self.missing_fields()

    def missing_fields(self) -> list[str]:
        """Names of credential fields that are blank or still set to their placeholder value."""
        missing: list[str] = []
        if _is_placeholder(self.client_id, PLACEHOLDER_CLIENT_ID):
            missing.append("client_id")
        if _is_placeholder(self.client_secret, PLACEHOLDER_CLIENT_SECRET):
            missing.append("client_secret")
        return missing

    @classmethod
    def from_env(cls, **overrides: Any) -> EvConnectConfig:
        """Create configuration from environment variables.

        Reads ``TESLA_CLIENT_ID``, ``TESLA_CLIENT_SECRET``,
        ``TESLA_REDIRECT_URI``, ``TESLA_API_BASE_URL`` and ``TESLA_AUTH_URL``
        plus the optional ``TESLA_*``/``EVCONNECT_*`` variables below.
        Explicit keyword arguments override environment values, which
        override the field defaults.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.
            ``None`` and empty-string values are ignored.

        Returns
        -------
        EvConnectConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "TESLA_CLIENT_ID": "client_id",
            "TESLA_CLIENT_SECRET": "client_secret",
            "TESLA_REDIRECT_URI": "redirect_uri",
            "TESLA_API_BASE_URL": "api_base_url",
            "TESLA_AUTH_URL": "auth_base_url",
            "TESLA_LOCALE": "locale",
            "EVCONNECT_CREDENTIALS_PATH": "credentials_path",
            "EVCONNECT_CREDENTIALS_KEY": "credentials_key",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        # Non-string fields are parsed separately
        scopes_env = env.get("TESLA_SCOPES")
        if scopes_env and "scopes" not in overrides:
            config_kwargs["scopes"] = tuple(scopes_env.split())

        ttl_env = env.get("EVCONNECT_VEHICLE_CACHE_TTL")
        if ttl_env is not None and "vehicle_cache_ttl" not in overrides:
            config_kwargs["vehicle_cache_ttl"] = float(ttl_env)

        config_kwargs.update({key: value for key, value in overrides.items() if value is not None and value != ""})

        return cls(**config_kwargs)
