"""Health check endpoint.

Verifies the server is running and its dependencies (database, Redis)
are reachable. Redis is optional, so a Redis failure only degrades.
"""

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare import __version__
from demoshare.db.engine import get_db
from demoshare.realtime.pubsub import get_redis

router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as e:
        checks["database"] = f"error: {e}"

    redis = get_redis()
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except RedisError as e:
            checks["redis"] = f"error: {e}"

    healthy = checks["database"] == "ok" and checks["redis"] in ("ok", "disabled")
    status = "healthy" if healthy else "degraded"
    return {"status": status, **checks}
