"""Storage maintenance endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from hrdocs.api.deps import get_persistence
from hrdocs.persistence import Persistence
from hrdocs.storage.relocator import reconcile_storage

router = APIRouter(tags=["storage"])


@router.post("/normalize")
def normalize(persistence: Persistence = Depends(get_persistence)) -> dict[str, Any]:
    """Move every payslip file to its canonical path and report what happened."""
    summary = reconcile_storage(persistence.files, persistence.payslips.list_locations())
    return {"ok": True, **summary.model_dump(mode="json", by_alias=True)}
