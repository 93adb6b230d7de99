from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from hotelpms.core.db import get_db
from hotelpms.workers.queue import redis_conn

router = APIRouter(tags=["health"])


@router.get("/health")
def healthcheck():
    """Basic liveness check - returns 200 if API is running."""
    return {"status": "ok"}


@router.get("/health/ready")
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness check - verifies the database and Redis (job queue) respond.
    Returns 503 with per-dependency status otherwise.
    """
    errors = []

    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except Exception as e:
        db_status = "failed"
        errors.append(f"Database: {e}")

    try:
        redis_conn.ping()
        redis_status = "ok"
    except Exception as e:
        redis_status = "failed"
        errors.append(f"Redis: {e}")

    if errors:
        raise HTTPException(
            status_code=503,
            detail={
                "status": "not_ready",
                "db": db_status,
                "redis": redis_status,
                "errors": errors,
            },
        )

    return {"status": "ready", "db": db_status, "redis": redis_status}
