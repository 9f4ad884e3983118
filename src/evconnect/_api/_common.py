"""Shared helpers for Fleet API endpoint modules.

It is internal to evconnect and may change at any time.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from evconnect.exceptions import RequestError


def vehicle_path(vehicle_id: str | int, suffix: str = "") -> str:
    """Build ``/api/1/vehicles/{id}{suffix}`` with the id path-escaped."""
    return f"/api/1/vehicles/{quote(str(vehicle_id), safe='')}{suffix}"


def unwrap_response(payload: Any, *, endpoint: str) -> Any:
    """Return the ``response`` member of a Fleet API envelope.

    Every Fleet API read wraps its data as ``{"response": ...}``.  A body
    without that envelope is treated as malformed.
    """
    if not isinstance(payload, dict) or "response" not in payload:
        raise RequestError(f"Missing 'response' field from {endpoint}", endpoint=endpoint)
    return payload["response"]


def unwrap_document(payload: Any, *, endpoint: str) -> dict[str, Any]:
    """Like :func:`unwrap_response` but requires an object."""
    response = unwrap_response(payload, endpoint=endpoint)
    if not isinstance(response, dict):
        raise RequestError(f"Expected an object from {endpoint}, got {type(response).__name__}", endpoint=endpoint)
    return response
