"""OAuth token models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from evconnect.ingestion.normalize import safe_int


class Credentials(BaseModel):
    """Access/refresh token pair.

    Both tokens are opaque strings.  The provider's ``expires_in`` is not
    reliable, so no expiry is tracked; a 401 is the only expiry signal.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)

    def __repr__(self) -> str:
        return "Credentials(access_token=<redacted>, refresh_token=<redacted>)"

    __str__ = __repr__


class TokenResponse(BaseModel):
    """Body returned by the token endpoint.

    ``refresh_token`` may be absent on a refresh grant; the caller keeps the
    previous one in that case.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str = Field(min_length=1)
    refresh_token: str | None = None
    expires_in: int | None = None
    token_type: str = "Bearer"
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    @model_validator(mode="before")
    @classmethod
    def _ensure_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = {key: value for key, value in values.items() if value not in (None, "")}
        merged.setdefault("raw", values)
        return merged

    @field_validator("expires_in", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int | None:
        return safe_int(value)

    def to_credentials(self, previous_refresh_token: str | None = None) -> Credentials:
        refresh_token = self.refresh_token or previous_refresh_token
        if not refresh_token:
            raise ValueError("token response did not include a refresh_token")
        return Credentials(access_token=self.access_token, refresh_token=refresh_token)
