"""
Health Check Endpoints

- /health       - Liveness (process is running)
- /health/ready - Readiness (database reachable)
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime, timezone
import logging
import time

from ..database import get_db
from ..config import settings
from ..schemas.response import ok, error_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


def get_db_health(db: Session) -> dict:
    """Check database connectivity and latency"""
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000
        return {
            "status": "up",
            "latency_ms": round(latency_ms, 2),
            "type": db.bind.dialect.name
        }
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "down"}


@router.get("")
@router.get("/")
def liveness():
    return ok({
        "status": "healthy",
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }, "Service is running")


@router.get("/ready")
def readiness(db: Session = Depends(get_db)):
    database = get_db_health(db)
    if database["status"] != "up":
        return JSONResponse(
            status_code=503,
            content=error_body(503, "Database unavailable", {"database": database})
        )
    return ok({"status": "ready", "database": database}, "Service is ready")
