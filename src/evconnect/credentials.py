"""Credential persistence.

The session manager persists its token pair through :class:`CredentialStore`,
which writes two fixed keys into a small key-value backend:

* :class:`MemoryStore`: process-local, used by default and in tests.
* :class:`JsonFileStore`: one JSON object on disk, written atomically.
* :class:`EncryptedFileStore`: same file layout, AES-256-GCM encrypted.

Backends only need ``get``/``set``/``delete``; any object with those
methods can be passed in.
"""

from __future__ import annotations

import json
import logging
import os
import secrets
import tempfile
from pathlib import Path
from typing import Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import ValidationError

from evconnect._constants import ACCESS_TOKEN_KEY, OAUTH_STATE_KEY, REFRESH_TOKEN_KEY
from evconnect.config import EvConnectConfig
from evconnect.exceptions import CredentialStoreError
from evconnect.models.token import Credentials

_logger = logging.getLogger(__name__)

_NONCE_BYTES = 12


class KeyValueStore(Protocol):
    """Structural interface for durable string storage."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """Dictionary-backed store that lives as long as the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Persist keys as one JSON object in *path*.

    Every write replaces the whole file via a temporary file and
    :func:`os.replace`, so a crash never leaves a half-written document.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _decode(self, blob: bytes) -> dict[str, str]:
        try:
            data = json.loads(blob.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CredentialStoreError(f"Credential file {self._path} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise CredentialStoreError(f"Credential file {self._path} does not contain an object")
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _encode(self, data: dict[str, str]) -> bytes:
        return json.dumps(data, separators=(",", ":"), sort_keys=True).encode("utf-8")

    def _read_all(self) -> dict[str, str]:
        try:
            blob = self._path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise CredentialStoreError(f"Cannot read credential file {self._path}: {exc}") from exc
        if not blob.strip():
            return {}
        return self._decode(blob)

    def _write_all(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=self._path.parent)
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(self._encode(data))
                os.chmod(tmp_name, 0o600)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise CredentialStoreError(f"Cannot write credential file {self._path}: {exc}") from exc

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)

    def set_many(self, items: dict[str, str]) -> None:
        data = self._read_all()
        data.update(items)
        self._write_all(data)

    def delete_many(self, keys: tuple[str, ...]) -> None:
        data = self._read_all()
        if any(key in data for key in keys):
            for key in keys:
                data.pop(key, None)
            self._write_all(data)


class EncryptedFileStore(JsonFileStore):
    """:class:`JsonFileStore` whose file content is AES-256-GCM encrypted.

    File layout: ``nonce (12 bytes) || ciphertext+tag``.
    """

    def __init__(self, path: str | os.PathLike[str], key_hex: str) -> None:
        super().__init__(path)
        text = key_hex.strip()
        try:
            key = bytes.fromhex(text)
        except ValueError as exc:
            raise CredentialStoreError("Credential key must be hex-encoded") from exc
        if len(key) != 32:
            raise CredentialStoreError(f"Credential key must be 32 bytes (got {len(key)})")
        self._aead = AESGCM(key)

    @staticmethod
    def generate_key() -> str:
        """Return a new random key in the hex form the constructor expects."""
        return AESGCM.generate_key(bit_length=256).hex()

    def _decode(self, blob: bytes) -> dict[str, str]:
        if len(blob) <= _NONCE_BYTES:
            raise CredentialStoreError(f"Credential file {self._path} is truncated")
        nonce, ciphertext = blob[:_NONCE_BYTES], blob[_NONCE_BYTES:]
        try:
            plaintext = self._aead.decrypt(nonce, ciphertext, None)
        except InvalidTag as exc:
            raise CredentialStoreError(f"Cannot decrypt credential file {self._path} (wrong key?)") from exc
        return super()._decode(plaintext)

    def _encode(self, data: dict[str, str]) -> bytes:
        nonce = secrets.token_bytes(_NONCE_BYTES)
        return nonce + self._aead.encrypt(nonce, super()._encode(data), None)


class CredentialStore:
    """Passive persistence surface for the session's token pair.

    Access and refresh tokens are stored under two fixed keys and are always
    written and removed together.  A store holding only one of the two keys
    loads as "no credentials".

    The outstanding OAuth ``state`` token lives under a third key so that a
    redirect handled by another process can still be checked against it.
    """

    def __init__(self, backend: KeyValueStore | None = None) -> None:
        self._backend: KeyValueStore = backend if backend is not None else MemoryStore()

    @property
    def backend(self) -> KeyValueStore:
        return self._backend

    def load(self) -> Credentials | None:
        access_token = self._backend.get(ACCESS_TOKEN_KEY)
        refresh_token = self._backend.get(REFRESH_TOKEN_KEY)
        if not access_token or not refresh_token:
            if access_token or refresh_token:
                _logger.warning("Ignoring incomplete stored token pair")
            return None
        try:
            return Credentials(access_token=access_token, refresh_token=refresh_token)
        except ValidationError:
            _logger.warning("Ignoring malformed stored token pair")
            return None

    def save(self, credentials: Credentials) -> None:
        items = {
            ACCESS_TOKEN_KEY: credentials.access_token,
            REFRESH_TOKEN_KEY: credentials.refresh_token,
        }
        set_many = getattr(self._backend, "set_many", None)
        if callable(set_many):
            set_many(items)
            return
        for key, value in items.items():
            self._backend.set(key, value)

    def clear(self) -> None:
        keys = (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY)
        delete_many = getattr(self._backend, "delete_many", None)
        if callable(delete_many):
            delete_many(keys)
            return
        for key in keys:
            self._backend.delete(key)

    def load_pending_state(self) -> str | None:
        return self._backend.get(OAUTH_STATE_KEY) or None

    def save_pending_state(self, state: str) -> None:
        self._backend.set(OAUTH_STATE_KEY, state)

    def clear_pending_state(self) -> None:
        self._backend.delete(OAUTH_STATE_KEY)


def build_credential_store(config: EvConnectConfig) -> CredentialStore:
    """Pick the storage backend described by *config*."""
    if not config.credentials_path:
        return CredentialStore(MemoryStore())
    if config.credentials_key:
        return CredentialStore(EncryptedFileStore(config.credentials_path, config.credentials_key))
    return CredentialStore(JsonFileStore(config.credentials_path))
