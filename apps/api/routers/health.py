"""
Health check endpoints for the catalog API and its backing stores.
"""

from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import redis.asyncio as redis
from sqlalchemy import text

from config import settings
import database

router = APIRouter()


async def _database_error() -> Optional[str]:
    try:
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        return str(e)
    return None


async def _redis_error() -> Optional[str]:
    client = redis.from_url(settings.REDIS_URL)
    try:
        await client.ping()
    except Exception as e:
        return str(e)
    finally:
        await client.aclose()
    return None


@router.get("/health")
async def health_check():
    """
    Report catalog health.

    Redis only backs rate limiting, so an outage there marks the API as
    degraded while requests keep being served.
    """
    database_error = await _database_error()
    redis_error = await _redis_error()
    return {
        "status": "degraded" if database_error or redis_error else "healthy",
        "api": "up",
        "database": f"down: {database_error}" if database_error else "up",
        "redis": f"down: {redis_error}" if redis_error else "up",
        "scraper": "integration" if settings.WEB_SCRAPER_URL else "direct",
    }


@router.get("/health/ready")
async def readiness_check():
    """Kubernetes-style readiness probe; the catalog cannot serve without its database."""
    if await _database_error():
        return JSONResponse(
            status_code=503,
            content={"ready": False, "missing": ["database"]},
        )
    return {"ready": True}


@router.get("/health/live")
async def liveness_check():
    return {"alive": True}
