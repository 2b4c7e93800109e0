"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from hrdocs.api.deps import get_persistence
from hrdocs.persistence import Persistence

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
def ready(persistence: Persistence = Depends(get_persistence)):
    if not persistence.users.ping():
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ready"}
