"""Health check endpoints.

- /health: Basic health check
- /health/live: Liveness probe (is the app running?)
- /health/ready: Readiness probe (can the app reach its database?)

Redis only backs rate limiting, which fails open, so an unreachable Redis
is reported as degraded without failing readiness.
"""

from datetime import datetime
from typing import Any, Dict

import redis
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketplace import __version__
from marketplace.api.deps import get_db
from marketplace.core.config import get_settings

router = APIRouter(tags=["health"])
settings = get_settings()


def check_database(db: Session) -> Dict[str, Any]:
    """Check database connectivity."""
    try:
        db.execute(text("SELECT 1")).fetchone()
        return {"status": "healthy", "dialect": db.get_bind().dialect.name}
    except SQLAlchemyError as e:
        return {"status": "unhealthy", "error": e.__class__.__name__}


def check_redis() -> Dict[str, Any]:
    """Check Redis connectivity."""
    if not settings.rate_limit_enabled:
        return {"status": "disabled"}
    try:
        r = redis.from_url(settings.redis_url, socket_connect_timeout=2, socket_timeout=2)
        try:
            r.ping()
            info = r.info("server")
        finally:
            r.close()
        return {"status": "healthy", "version": info.get("redis_version", "unknown")}
    except (RedisError, OSError) as e:
        return {"status": "degraded", "error": e.__class__.__name__}


@router.get("/health")
async def health_check():
    """Returns 200 if the application is running."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/health/live")
async def liveness_probe():
    return {"status": "alive", "timestamp": datetime.utcnow().isoformat()}


@router.get("/health/ready")
def readiness_probe(db: Session = Depends(get_db)):
    """Returns 503 when the database cannot be reached."""
    checks = {
        "database": check_database(db),
        "redis": check_redis(),
    }
    ready = checks["database"]["status"] == "healthy"
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "not_ready",
            "checks": checks,
            "timestamp": datetime.utcnow().isoformat(),
        },
    )
