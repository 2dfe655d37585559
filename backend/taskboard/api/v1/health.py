"""Liveness and readiness checks for the task board."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.deps import AppSettings, Storage
from taskboard.db.session import get_db_session
from taskboard.models.task import Task

router = APIRouter()


@router.get("/health")
async def health_check(settings: AppSettings) -> dict[str, str]:
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def readiness_check(
    settings: AppSettings,
    storage: Storage,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Ready when the database answers and uploads can be written."""
    checks: dict[str, str] = {}
    task_count = None

    try:
        await db.execute(text("SELECT 1"))
        task_count = (await db.execute(select(func.count(Task.id)))).scalar_one()
        checks["database"] = "healthy"
    except Exception as e:
        checks["database"] = f"unhealthy: {e}"

    if storage.is_writable():
        checks["uploads"] = "healthy"
    else:
        checks["uploads"] = "unhealthy: upload directory is not writable"

    overall_status = "healthy" if all(v == "healthy" for v in checks.values()) else "unhealthy"
    return {
        "status": overall_status,
        "version": settings.app_version,
        "checks": checks,
        "tasks": task_count,
    }
