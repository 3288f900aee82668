"""
Health contract shared between the server and its probes.

The payload shape is fixed: any deviation is a programming error and must
surface as a ``pydantic.ValidationError``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

SERVICE_NAME = "tenant-boilerplate"


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 datetime string (date and time required, ``Z`` accepted)."""
    if "T" not in value and " " not in value:
        raise ValueError("timestamp must include a time component")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class HealthResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    status: Literal["ok"]
    service: Literal[SERVICE_NAME]
    timestamp: str

    @field_validator("timestamp")
    @classmethod
    def _timestamp_is_iso_datetime(cls, value: str) -> str:
        parse_iso_datetime(value)
        return value


def validate_health_payload(payload: dict[str, Any]) -> HealthResponse:
    """Validate a health payload. Raises ValidationError if it breaks the contract."""
    return HealthResponse.model_validate(payload)
