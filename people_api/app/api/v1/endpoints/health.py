"""
Health endpoint for API v1.

Reports the application version and whether MongoDB answers a
``ping``.  The endpoint itself always responds with HTTP 200 so that
liveness probes keep working while the database is down; readiness
checks should look at the ``database`` field.
"""

from typing import Any

from fastapi import APIRouter, Depends

from people_api.app.core.config import settings
from people_api.app.core.db import get_database, ping
from people_api.app.schemas.health import HealthRead

router = APIRouter()


@router.get("/health", response_model=HealthRead)
async def health(database: Any = Depends(get_database)) -> HealthRead:
    """Return application and database status."""
    reachable = await ping(database)
    return HealthRead(
        status="ok",
        version=settings.api_version,
        database="ok" if reachable else "unavailable",
    )
