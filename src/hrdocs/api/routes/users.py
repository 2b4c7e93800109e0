"""Roster import endpoints: dry-run preview and transactional commit."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from hrdocs.api.deps import get_importer, get_persistence
from hrdocs.core.exceptions import ValidationError
from hrdocs.models.roster import RosterRecord
from hrdocs.persistence import Persistence
from hrdocs.roster.reader import read_roster
from hrdocs.services.roster_import import RosterImporter

router = APIRouter(tags=["users"])


def _records(file: UploadFile) -> list[RosterRecord]:
    data = file.file.read()
    if not data:
        raise ValidationError("roster file is empty")
    return read_roster(data, file.filename or "roster.csv")


@router.post("/import/dry-run")
def import_dry_run(
    file: UploadFile = File(...),
    importer: RosterImporter = Depends(get_importer),
) -> dict[str, Any]:
    report = importer.dry_run(_records(file))
    return {"ok": True, "mode": "dry-run", **report.model_dump(mode="json", by_alias=True)}


@router.post("/import/commit")
def import_commit(
    file: UploadFile = File(...),
    importer: RosterImporter = Depends(get_importer),
) -> dict[str, Any]:
    outcome = importer.commit(_records(file))
    return {
        "ok": True,
        "preview": outcome.preview.model_dump(mode="json", by_alias=True),
        "result": outcome.result.model_dump(mode="json", by_alias=True),
    }


@router.get("/ping")
def ping(persistence: Persistence = Depends(get_persistence)):
    if not persistence.users.ping():
        return JSONResponse(status_code=503, content={"ok": False, "error": "user store unreachable"})
    return {"ok": True}
