"""Roster rows and the authoritative user records they reconcile against."""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TriState(StrEnum):
    TRUE = "true"
    FALSE = "false"
    UNKNOWN = "unknown"


class RosterRecord(BaseModel):
    """One row of an imported roster.

    The cedula is kept verbatim: format checks belong to the analyzer, which must
    report malformed rows as INVALID instead of refusing to build them.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default="", alias="Cedula")
    first_name: Optional[str] = Field(default=None, alias="FirstName")
    last_name: Optional[str] = Field(default=None, alias="LastName")
    email: Optional[str] = Field(default=None, alias="Email")
    active_flag: TriState = Field(default=TriState.UNKNOWN, alias="IsActive")


class AuthoritativeUser(BaseModel):
    """A user row of the system of record (``Users`` table)."""

    model_config = ConfigDict(frozen=True)

    internal_id: int
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    is_active: bool = True
