"""Roster dry-run: classify every record against the existing users.

``classify`` is the single decision table shared with the committer, so a preview
and the commit that follows it always agree on each row's action.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from hrdocs.models.reconciliation import (
    Classification,
    InvalidEntry,
    PreviewRow,
    ReconciliationAction,
    Report,
)
from hrdocs.models.roster import AuthoritativeUser, RosterRecord, TriState
from hrdocs.reconciliation.validator import validate_id

REASON_INVALID_ID = "invalid identifier"
REASON_ABSENT_INACTIVE = "does not exist and arrives inactive"

_INVALID = Classification(action=ReconciliationAction.INVALID, reason=REASON_INVALID_ID)


def _differs(incoming: Optional[str], stored: Optional[str]) -> bool:
    return bool(incoming) and incoming != stored


def needs_update(record: RosterRecord, prev: AuthoritativeUser) -> bool:
    return (
        _differs(record.first_name, prev.first_name)
        or _differs(record.last_name, prev.last_name)
        or _differs(record.email, prev.email)
        or (record.active_flag is TriState.TRUE and not prev.is_active)
    )


def classify(record: RosterRecord, prev: AuthoritativeUser | None) -> Classification:
    if not validate_id(record.id):
        return _INVALID
    flag = record.active_flag
    if prev is None:
        if flag is TriState.FALSE:
            return Classification(action=ReconciliationAction.NONE, reason=REASON_ABSENT_INACTIVE)
        return Classification(action=ReconciliationAction.INSERT)
    if flag is TriState.FALSE and prev.is_active:
        return Classification(action=ReconciliationAction.DEACTIVATE)
    if needs_update(record, prev):
        return Classification(action=ReconciliationAction.UPDATE)
    return Classification(action=ReconciliationAction.NONE)


def updated_active_state(record: RosterRecord) -> bool:
    """``is_active`` written by an UPDATE: forced true unless the row says inactive."""
    return record.active_flag is not TriState.FALSE


def project(
    record: RosterRecord,
    prev: AuthoritativeUser | None,
    action: ReconciliationAction,
) -> AuthoritativeUser | None:
    """State of the user after ``action`` is applied; inserts get internal_id 0."""
    if action is ReconciliationAction.INSERT:
        return AuthoritativeUser(
            internal_id=0,
            id=record.id,
            first_name=record.first_name,
            last_name=record.last_name,
            email=record.email,
            is_active=True,
        )
    if prev is None:
        return None
    if action is ReconciliationAction.DEACTIVATE:
        return prev.model_copy(update={"is_active": False})
    if action is ReconciliationAction.UPDATE:
        return prev.model_copy(update={
            "first_name": record.first_name or prev.first_name,
            "last_name": record.last_name or prev.last_name,
            "email": record.email or prev.email,
            "is_active": updated_active_state(record),
        })
    return prev


def analyze(
    records: Iterable[RosterRecord],
    index: Mapping[str, AuthoritativeUser],
) -> Report:
    """Classify ``records`` in order without touching ``index`` or any store.

    Rows repeating a cedula are judged against the state the earlier rows would
    leave behind, exactly as the committer sees its own writes.
    """
    report = Report()
    projected: dict[str, AuthoritativeUser | None] = {}

    for row, record in enumerate(records, start=1):
        report.total += 1
        prev = projected[record.id] if record.id in projected else index.get(record.id)
        decision = classify(record, prev)

        if decision.action is ReconciliationAction.INVALID:
            report.invalid.append(InvalidEntry(row=row, reason=decision.reason or REASON_INVALID_ID))
        elif decision.action is ReconciliationAction.INSERT:
            report.will_insert += 1
        elif decision.action is ReconciliationAction.UPDATE:
            report.will_update += 1
        elif decision.action is ReconciliationAction.DEACTIVATE:
            report.will_deactivate += 1

        if decision.action is not ReconciliationAction.INVALID:
            projected[record.id] = project(record, prev, decision.action)

        report.preview.append(
            PreviewRow(row=row, cedula=record.id, action=decision.action, why=decision.reason)
        )

    return report
