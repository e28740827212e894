"""Service status endpoints: health, readiness and liveness."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from royalty_ledger import __version__
from royalty_ledger.api.dependencies import DbSession
from royalty_ledger.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Service status with the ledger settings in effect."""

    status: str
    version: str
    timestamp: datetime
    database: str
    verify_ledger_totals: bool
    completeness_tolerance: str


async def _database_reachable(db: AsyncSession) -> bool:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Database check failed", exc_info=True)
        return False
    return True


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession) -> HealthResponse:
    """Report service status; a database outage degrades rather than fails."""
    settings = get_settings()
    reachable = await _database_reachable(db)

    return HealthResponse(
        status="healthy" if reachable else "degraded",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        database="healthy" if reachable else "unhealthy",
        verify_ledger_totals=settings.verify_ledger_totals,
        completeness_tolerance=str(settings.completeness_tolerance),
    )


@router.get("/ready")
async def readiness_check(db: DbSession, response: Response) -> dict[str, str]:
    """Ready only when ledger queries can reach the database."""
    if not await _database_reachable(db):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "unavailable"}
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
