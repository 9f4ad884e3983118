"""OAuth session management for authenticated Fleet API calls.

:class:`SessionManager` is an explicitly constructed session handle: it owns
the authorization-code flow, token refresh, and the bearer-token request
path.  Create one per account and pass it to whatever needs API access.

State machine::

    UNAUTHENTICATED --exchange_code ok--> AUTHENTICATED
    AUTHENTICATED --401, refresh ok--> AUTHENTICATED
    AUTHENTICATED --401, refresh failed | logout()--> UNAUTHENTICATED

Concurrent requests that hit 401 at the same time may each refresh; the
refresh grant is idempotent and the last credential write wins.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from collections.abc import Mapping
from enum import StrEnum
from typing import Any
from urllib.parse import urlencode

from pydantic import ValidationError

from evconnect._constants import AUTHORIZE_PATH, TOKEN_PATH
from evconnect._redact import mask_token
from evconnect._transport import HttpResponse, HttpTransport, Transport
from evconnect.config import EvConnectConfig
from evconnect.credentials import CredentialStore, build_credential_store
from evconnect.exceptions import (
    AuthenticationError,
    ConfigurationError,
    CredentialStoreError,
    EvConnectError,
    RequestError,
)
from evconnect.models.token import Credentials, TokenResponse

_logger = logging.getLogger(__name__)

_FORM_HEADERS = {"content-type": "application/x-www-form-urlencoded"}


class SessionState(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class SessionManager:
    """Owns one account's OAuth tokens and the authenticated request path.

    Parameters
    ----------
    config : EvConnectConfig or None
        Client configuration.  Read once here; defaults to
        :meth:`EvConnectConfig.from_env`.
    credential_store : CredentialStore or None
        Where the token pair is persisted.  Defaults to the backend selected
        by :func:`build_credential_store`.
    transport : Transport or None
        HTTP transport.  Defaults to an :class:`HttpTransport` that this
        manager closes in :meth:`close`.
    """

    def __init__(
        self,
        config: EvConnectConfig | None = None,
        *,
        credential_store: CredentialStore | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config if config is not None else EvConnectConfig.from_env()
        self._store = credential_store if credential_store is not None else build_credential_store(self._config)
        self._owns_transport = transport is None
        self._transport: Transport = transport if transport is not None else HttpTransport()
        self._session_key = uuid.uuid4().hex
        self._credentials: Credentials | None = self._load_credentials()
        self._pending_state: str | None = self._load_pending_state()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> EvConnectConfig:
        return self._config

    @property
    def session_key(self) -> str:
        """Opaque key identifying this session handle (stable for its lifetime)."""
        return self._session_key

    @property
    def state(self) -> SessionState:
        if self.is_authenticated():
            return SessionState.AUTHENTICATED
        return SessionState.UNAUTHENTICATED

    # ------------------------------------------------------------------
    # Credential bookkeeping
    # ------------------------------------------------------------------

    def _load_credentials(self) -> Credentials | None:
        try:
            credentials = self._store.load()
        except CredentialStoreError as exc:
            _logger.warning("Stored credentials unavailable, starting unauthenticated: %s", exc)
            return None
        if credentials is not None:
            _logger.debug("Loaded stored credentials (access token %s)", mask_token(credentials.access_token))
        return credentials

    def _load_pending_state(self) -> str | None:
        try:
            return self._store.load_pending_state()
        except CredentialStoreError as exc:
            _logger.warning("Stored OAuth state unavailable: %s", exc)
            return None

    def _set_pending_state(self, state: str | None) -> None:
        self._pending_state = state
        try:
            if state is None:
                self._store.clear_pending_state()
            else:
                self._store.save_pending_state(state)
        except CredentialStoreError as exc:
            _logger.warning("Could not persist OAuth state: %s", exc)

    def _set_credentials(self, credentials: Credentials) -> None:
        self._credentials = credentials
        try:
            self._store.save(credentials)
        except CredentialStoreError as exc:
            _logger.warning("Could not persist credentials, keeping them in memory only: %s", exc)

    def _clear_credentials(self) -> None:
        self._credentials = None
        try:
            self._store.clear()
        except CredentialStoreError as exc:
            _logger.warning("Could not clear persisted credentials: %s", exc)

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    def is_configured(self) -> bool:
        """Whether client id and secret are set to non-placeholder values."""
        return self._config.is_configured

    def is_authenticated(self) -> bool:
        """Local readiness check: an access token is held and config is valid.

        The token is not validated against the server.
        """
        return self._credentials is not None and self.is_configured()

    # ------------------------------------------------------------------
    # Authorization-code flow
    # ------------------------------------------------------------------

    def build_authorization_url(self) -> str:
        """Build the OAuth authorize URL the user must be redirected to.

        A fresh anti-replay ``state`` token is generated on every call and
        persisted through the credential store, so :meth:`exchange_code` can
        check it even when the redirect is handled by another process.

        Raises
        ------
        ConfigurationError
            If client id or secret are still placeholders.
        """
        if not self.is_configured():
            missing = ", ".join(self._config.missing_fields())
            raise ConfigurationError(f"Tesla API is not configured (missing: {missing})")

        state = secrets.token_urlsafe(16)
        self._set_pending_state(state)
        params = {
            "client_id": self._config.client_id,
            "locale": self._config.locale,
            "prompt": "login",
            "redirect_uri": self._config.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self._config.scopes),
            "state": state,
        }
        return f"{self._config.auth_base_url}{AUTHORIZE_PATH}?{urlencode(params)}"

    async def _post_token(self, form: Mapping[str, str]) -> TokenResponse:
        url = f"{self._config.auth_base_url}{TOKEN_PATH}"
        response = await self._transport.request("POST", url, headers=_FORM_HEADERS, data=form)
        if not response.ok:
            raise AuthenticationError(f"Token endpoint returned HTTP {response.status}: {response.text[:200]}")
        payload = response.json()
        try:
            return TokenResponse.model_validate(payload)
        except ValidationError as exc:
            raise AuthenticationError("Token endpoint response is missing access_token") from exc

    async def exchange_code(self, code: str, state: str | None = None) -> bool:
        """Exchange an authorization code for a token pair.

        Returns ``True`` and persists the pair on success.  Every failure
        (not configured, empty code, ``state`` mismatch, HTTP error,
        malformed body, network error) returns ``False``; callers treat it
        as a recoverable UI state.

        Once :meth:`build_authorization_url` has issued a state token, the
        matching ``state`` from the redirect is required.  A code obtained
        without an issued token is accepted as is.
        """
        if not self.is_configured():
            _logger.warning("Tesla API not configured, cannot exchange code for token")
            return False
        code = (code or "").strip()
        if not code:
            _logger.warning("Empty authorization code")
            return False
        pending = self._pending_state
        if pending is not None and (state is None or not secrets.compare_digest(state.encode(), pending.encode())):
            _logger.warning("OAuth state missing or mismatched, rejecting authorization code")
            return False

        form = {
            "grant_type": "authorization_code",
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "code": code,
            "redirect_uri": self._config.redirect_uri,
        }
        try:
            token = await self._post_token(form)
            credentials = token.to_credentials()
        except (EvConnectError, ValueError) as exc:
            _logger.error("Token exchange failed: %s", exc)
            return False

        self._set_pending_state(None)
        self._set_credentials(credentials)
        _logger.info("Authenticated (access token %s)", mask_token(credentials.access_token))
        return True

    async def refresh(self) -> bool:
        """Renew the token pair with the stored refresh token.

        On success the new pair is persisted.  Any failure clears the
        stored credentials (the session cannot be recovered without a new
        login) and returns ``False``.
        """
        if not self.is_configured():
            _logger.warning("Tesla API not configured, cannot refresh token")
            return False
        current = self._credentials
        if current is None:
            _logger.warning("No refresh token available")
            self._clear_credentials()
            return False

        form = {
            "grant_type": "refresh_token",
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "refresh_token": current.refresh_token,
        }
        try:
            token = await self._post_token(form)
            credentials = token.to_credentials(current.refresh_token)
        except (EvConnectError, ValueError) as exc:
            _logger.warning("Token refresh failed, clearing session: %s", exc)
            self._clear_credentials()
            return False

        self._set_credentials(credentials)
        _logger.info("Access token refreshed (%s)", mask_token(credentials.access_token))
        return True

    def logout(self) -> None:
        """Forget the token pair and any outstanding state.  Always ends unauthenticated."""
        self._set_pending_state(None)
        self._clear_credentials()
        _logger.info("Logged out")

    # ------------------------------------------------------------------
    # Authenticated requests
    # ------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        params: Mapping[str, str] | None,
        json_body: Any,
    ) -> HttpResponse:
        credentials = self._credentials
        if credentials is None:
            raise AuthenticationError("No access token available")
        headers = {"authorization": f"Bearer {credentials.access_token}"}
        if json_body is not None:
            headers["content-type"] = "application/json"
        return await self._transport.request(
            method,
            f"{self._config.api_base_url}{path}",
            headers=headers,
            params=params,
            json_body=json_body,
        )

    async def authorized_request(
        self,
        path: str,
        *,
        method: str = "GET",
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
    ) -> Any:
        """Issue a bearer-authenticated request against the Fleet API.

        On HTTP 401 exactly one :meth:`refresh` and one retry are performed.

        Returns
        -------
        Any
            The decoded JSON body (``{}`` for an empty body).

        Raises
        ------
        ConfigurationError
            If client credentials are placeholders.
        AuthenticationError
            No token, refresh failed, or the retried request was rejected
            again.
        RequestError
            Any other non-2xx status, a network failure or invalid JSON.
        """
        if not self.is_configured():
            raise ConfigurationError("Tesla API not configured")

        response = await self._send(method, path, params, json_body)
        if response.status == 401:
            _logger.info("HTTP 401 from %s, refreshing access token", path)
            if not await self.refresh():
                raise AuthenticationError(f"{path} rejected the session and token refresh failed")
            response = await self._send(method, path, params, json_body)
            if response.status == 401:
                raise AuthenticationError(f"{path} rejected the session after token refresh")

        if not response.ok:
            raise RequestError(
                f"HTTP {response.status} from {path}: {response.text[:200]}",
                status_code=response.status,
                endpoint=path,
            )
        if not response.text.strip():
            return {}
        return response.json()

    async def close(self) -> None:
        """Close the transport if this manager created it."""
        if self._owns_transport and isinstance(self._transport, HttpTransport):
            await self._transport.close()
