"""Roster record validation and normalization. Pure functions, never raise."""

from __future__ import annotations

import re
import unicodedata
from typing import Any, Mapping, Optional

from hrdocs.models.roster import RosterRecord, TriState

CEDULA_PATTERN = re.compile(r"^[0-9]{5,12}$")

TRUE_WORDS = frozenset({"si", "true", "1", "activo", "activa"})
FALSE_WORDS = frozenset({"no", "false", "0", "inactivo", "inactiva"})


def validate_id(value: Any) -> bool:
    """True iff ``value`` is a 5-12 digit cedula. No trimming, no padding."""
    return isinstance(value, str) and CEDULA_PATTERN.fullmatch(value) is not None


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text.strip().casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def parse_tri_state(value: Any) -> TriState:
    if value is None:
        return TriState.UNKNOWN
    if isinstance(value, bool):
        return TriState.TRUE if value else TriState.FALSE
    word = _fold(str(value))
    if word in TRUE_WORDS:
        return TriState.TRUE
    if word in FALSE_WORDS:
        return TriState.FALSE
    return TriState.UNKNOWN


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_row(row: Mapping[str, Any]) -> RosterRecord:
    """Build a RosterRecord from a roster row keyed ``Cedula``, ``FirstName``, ...

    Blank optional cells become ``None`` ("leave unchanged"); the cedula is only
    stripped of surrounding whitespace, never validated here.
    """
    cedula = row.get("Cedula")
    return RosterRecord(
        id="" if cedula is None else str(cedula).strip(),
        first_name=_optional_text(row.get("FirstName")),
        last_name=_optional_text(row.get("LastName")),
        email=_optional_text(row.get("Email")),
        active_flag=parse_tri_state(row.get("IsActive")),
    )
