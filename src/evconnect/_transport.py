"""HTTP transport for the OAuth server and the Fleet API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from evconnect._constants import USER_AGENT
from evconnect._redact import redact_for_log
from evconnect.exceptions import RequestError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """Status and body of a completed request."""

    status: int
    text: str
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        try:
            return json.loads(self.text)
        except json.JSONDecodeError as exc:
            raise RequestError(
                f"Invalid JSON from {self.url}: {self.text[:200]}",
                status_code=self.status,
                endpoint=self.url,
            ) from exc


class Transport(Protocol):
    """Structural transport interface used by the session manager.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (:class:`HttpTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        data: Mapping[str, str] | None = None,
        json_body: Any = None,
    ) -> HttpResponse: ...


class HttpTransport:
    """aiohttp-backed transport.

    The :class:`aiohttp.ClientSession` is created lazily on first use unless
    one is passed in; an injected session is never closed by this class.
    """

    def __init__(self, http_session: aiohttp.ClientSession | None = None) -> None:
        self._external_session = http_session is not None
        self._http = http_session

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession()
            self._external_session = False
        return self._http

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
        """Send one request and return status and body text.

        Non-2xx statuses are returned, not raised; interpreting them is the
        caller's job.  Connection failures raise :class:`RequestError` with
        ``status_code=None``.  A body that cannot be decoded raises it with
        the response status.
        """
        merged_headers: dict[str, str] = {"accept": "application/json", "user-agent": USER_AGENT}
        if headers:
            merged_headers.update(headers)

        _logger.debug(
            "%s %s params=%s data=%s json=%s",
            method,
            url,
            redact_for_log(params),
            redact_for_log(data),
            redact_for_log(json_body),
        )

        http = self._require_session()
        try:
            async with http.request(
                method,
                url,
                headers=merged_headers,
                params=dict(params) if params else None,
                data=dict(data) if data is not None else None,
                json=json_body,
            ) as resp:
                status = resp.status
                try:
                    text = await resp.text()
                except UnicodeDecodeError as exc:
                    raise RequestError(
                        f"{method} {url} returned an undecodable body: {exc}",
                        status_code=status,
                        endpoint=url,
                    ) from exc
        except aiohttp.ClientError as exc:
            raise RequestError(f"{method} {url} failed: {exc}", endpoint=url) from exc
        except TimeoutError as exc:
            raise RequestError(f"{method} {url} timed out", endpoint=url) from exc

        _logger.debug("%s %s -> HTTP %s", method, url, status)
        return HttpResponse(status=status, text=text, url=url)

    async def close(self) -> None:
        if not self._external_session and self._http is not None:
            await self._http.close()
        self._http = None
