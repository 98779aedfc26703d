"""Health check endpoints for debugging and monitoring."""

from fastapi import APIRouter
from sqlalchemy import text

from src.api.core.dependencies import AsyncSessionDep
from src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
async def health_check(db: AsyncSessionDep) -> dict:
    """Check that the database answers."""
    try:
        await db.execute(text("SELECT 1"))
        database = "healthy"
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        database = "unhealthy"

    return {
        "status": "healthy" if database == "healthy" else "degraded",
        "checks": {"database": database},
    }


@router.get("/liveness")
async def liveness_check():
    """Simple liveness check - indicates if service is running."""
    return {"status": "alive", "service": "plantscan-api"}
