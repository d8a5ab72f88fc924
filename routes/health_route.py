"""Liveness and database health checks."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from utils.database_init import AsyncDatabaseInitializer

router = APIRouter(prefix="/api/health", tags=["health"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/status")
async def health_status():
    return {"status": "OK", "message": "Application is healthy", "timestamp": _timestamp()}


@router.get("/db")
async def health_db(request: Request):
    """Run a trivial query against the database; the in-memory backend is always healthy."""
    db_initializer: AsyncDatabaseInitializer | None = getattr(request.app.state, "db_initializer", None)
    healthy = True if db_initializer is None else await db_initializer.ping()
    if healthy:
        return {"status": "Database connection is healthy", "timestamp": _timestamp()}
    return JSONResponse(
        status_code=500,
        content={"status": "Database connection is not healthy", "timestamp": _timestamp()},
    )
