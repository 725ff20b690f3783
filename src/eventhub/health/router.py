"""Liveness, readiness and version endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.config import get_settings
from eventhub.database import get_session
from eventhub.redis_client import get_redis

router = APIRouter()


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.scalar(text("SELECT 1"))
    except Exception as exc:
        return f"error: {exc}"
    return "ok"


async def _check_redis() -> str:
    try:
        await get_redis().ping()
    except Exception as exc:
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness: the process is up."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_session)) -> dict[str, object]:  # noqa: B008
    """Readiness: the database and Redis answer. The prize contract is not probed here."""
    checks = {
        "database": await _check_database(db),
        "redis": await _check_redis(),
    }
    status = "ready" if all(v == "ok" for v in checks.values()) else "degraded"
    return {"status": status, "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"service": "eventhub-api", "version": settings.app_version, "environment": settings.environment}
