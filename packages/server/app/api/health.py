"""
Liveness and readiness probes.

GET /api/health - fixed-shape liveness payload, validated before it leaves the process
GET /api/ready  - checks that a database session can execute a query
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from tenant_shared.schemas.health import SERVICE_NAME, HealthResponse, validate_health_payload

log = structlog.get_logger()
router = APIRouter()

PROCESS_STARTED_AT = datetime.now(timezone.utc)


def _iso_timestamp(now: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_health_payload(now: Optional[datetime] = None) -> dict:
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "timestamp": _iso_timestamp(now or datetime.now(timezone.utc)),
    }


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint for liveness probes."""
    # A ValidationError here is a bug and must fail the request.
    return validate_health_payload(build_health_payload())


@router.get("/ready")
async def readiness_check(session: AsyncSession = Depends(get_session)):
    """Readiness check endpoint: the database must answer a trivial query."""
    try:
        await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        log.warning("health.db_unavailable", error=str(exc))
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {"status": "ready"}
