"""Base model for Fleet API documents and normalized records.

:class:`EvBaseModel` provides:

* frozen, ``extra="ignore"`` configuration so unknown provider keys are
  tolerated and records are immutable once built.
* A ``model_validator(mode="before")`` that drops ``None``, empty strings
  and non-finite floats so the field default is used instead.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class EvBaseModel(BaseModel):
    """Base for evconnect models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            if isinstance(value, float) and not math.isfinite(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _drop_absent_values(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return EvBaseModel._clean_dict(values)
