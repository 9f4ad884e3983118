"""Login outcome returned to presentation code."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class LoginResult(BaseModel):
    """Result of :meth:`EvConnectClient.login`.

    For the live provider the caller redirects the user to ``auth_url`` and
    later passes the returned code to ``authenticate_with_code``.  When
    ``configured`` is ``False`` no URL is produced and the caller should
    explain that client credentials are missing.  ``demo`` is set for any
    other provider; data calls then return the synthetic vehicle.
    """

    model_config = ConfigDict(frozen=True)

    email: str
    provider: str
    auth_url: str | None = None
    configured: bool = True
    demo: bool = False

    @property
    def requires_redirect(self) -> bool:
        return self.auth_url is not None
