"""
HeartSpace Health Check Routes
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_db
from ..logging_config import db_logger

router = APIRouter(prefix="/api/health", tags=["health"])

settings = get_settings()
START_TIME = datetime.now(timezone.utc)


def format_uptime(seconds: int) -> str:
    """Render seconds as the two most significant units, e.g. ``3h 12m``"""
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    units = [(days, "d"), (hours, "h"), (minutes, "m"), (seconds, "s")]
    while len(units) > 2 and units[0][0] == 0:
        units.pop(0)
    return " ".join(f"{value}{suffix}" for value, suffix in units[:2])


def check_database(db: Session) -> str:
    """Run a trivial query to confirm the store answers"""
    try:
        db.execute(text("SELECT 1"))
        return "healthy"
    except SQLAlchemyError as e:
        db_logger.error("Health check query failed", error=e)
        return "unhealthy"


@router.get("")
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint for load balancers and monitoring."""
    database = check_database(db)
    uptime_seconds = int((datetime.now(timezone.utc) - START_TIME).total_seconds())
    return {
        "status": "healthy" if database == "healthy" else "degraded",
        "database": database,
        "environment": settings.environment,
        "uptime": format_uptime(uptime_seconds),
        "uptimeSeconds": uptime_seconds,
        "version": "1.0.0",
    }
