"""
Liveness check for deployment monitoring.

Always 200 while the process is up; the database check only downgrades the
status to "degraded".
"""
import logging
import time
from datetime import datetime

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.db.session import engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])

STARTED_AT = time.monotonic()


@router.get("")
def health_check():
    status = "healthy"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        logger.warning(f"Health check could not reach the database: {e}")
        db_status = "error"
        status = "degraded"

    return {
        "status": status,
        "timestamp": datetime.utcnow().isoformat(),
        "database": db_status,
        "database_dialect": engine.dialect.name,
        "uptime_seconds": int(time.monotonic() - STARTED_AT),
        "version": "1.0.0",
    }
