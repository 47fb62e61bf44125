# This project was developed with assistance from AI tools.
"""Liveness and readiness probes."""

from db import get_db_service
from db.database import DatabaseService
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready")
async def ready(db_service: DatabaseService = Depends(get_db_service)):
    """503 until the database answers a trivial query."""
    if await db_service.health_check():
        return {"status": "ok", "database": "ok"}
    return JSONResponse(status_code=503, content={"status": "degraded", "database": "unavailable"})
