"""Roster reconciliation results: preview report and commit result.

Field aliases are the wire contract consumed by the HTTP layer and must not change.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReconciliationAction(StrEnum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DEACTIVATE = "DEACTIVATE"
    NONE = "NONE"
    INVALID = "INVALID"


class Classification(BaseModel):
    """Action decided for one roster record, with an optional human-readable reason."""

    model_config = ConfigDict(frozen=True)

    action: ReconciliationAction
    reason: Optional[str] = None


class InvalidEntry(BaseModel):
    row: int
    reason: str


class PreviewRow(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    row: int
    cedula: str
    action: ReconciliationAction
    why: Optional[str] = None


class Report(BaseModel):
    """Dry-run outcome for a whole roster."""

    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    will_insert: int = Field(default=0, alias="willInsert")
    will_update: int = Field(default=0, alias="willUpdate")
    will_deactivate: int = Field(default=0, alias="willDeactivate")
    invalid: list[InvalidEntry] = Field(default_factory=list)
    preview: list[PreviewRow] = Field(default_factory=list)

    def actions(self) -> list[ReconciliationAction]:
        return [row.action for row in self.preview]


class CommitResult(BaseModel):
    """What a committed roster actually changed."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    total: int = 0
    inserted: int = 0
    updated: int = 0
    deactivated: int = 0
    unchanged: int = 0
    skipped_invalid: int = Field(default=0, alias="skippedInvalid")
    applied: list[PreviewRow] = Field(default_factory=list)

    def actions(self) -> list[ReconciliationAction]:
        return [row.action for row in self.applied]
