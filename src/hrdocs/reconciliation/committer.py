"""Apply a roster to the user store inside a single transaction."""

from __future__ import annotations

import logging
from typing import Sequence

from hrdocs.core.exceptions import CommitFailed, LookupFailure
from hrdocs.core.protocols import IUserStore, IUserTransaction
from hrdocs.models.reconciliation import CommitResult, PreviewRow, ReconciliationAction
from hrdocs.models.roster import RosterRecord
from hrdocs.reconciliation.analyzer import classify, updated_active_state
from hrdocs.reconciliation.validator import validate_id

logger = logging.getLogger(__name__)


class RosterCommitter:
    """Replays the analyzer's decision table against live store state, all-or-nothing.

    Every row is re-read inside the transaction, so a row repeating a cedula sees
    the effect of the earlier one. Any error rolls the whole batch back and is
    re-raised as CommitFailed with the original error as its cause.
    """

    def __init__(self, store: IUserStore) -> None:
        self._store = store

    def commit(self, records: Sequence[RosterRecord]) -> CommitResult:
        result = CommitResult(total=len(records))
        try:
            with self._store.transaction() as tx:
                for row, record in enumerate(records, start=1):
                    action = self._apply(tx, record)
                    self._count(result, action)
                    result.applied.append(PreviewRow(row=row, cedula=record.id, action=action))
        except (LookupFailure, CommitFailed):
            raise
        except Exception as exc:
            logger.error("Roster commit of %d rows rolled back: %s", len(records), exc)
            raise CommitFailed(exc) from exc

        logger.info(
            "Roster committed: %d inserted, %d updated, %d deactivated, %d unchanged, %d invalid",
            result.inserted, result.updated, result.deactivated,
            result.unchanged, result.skipped_invalid,
        )
        return result

    @staticmethod
    def _apply(tx: IUserTransaction, record: RosterRecord) -> ReconciliationAction:
        prev = tx.get_user(record.id) if validate_id(record.id) else None
        action = classify(record, prev).action

        if action is ReconciliationAction.INSERT:
            tx.insert_user(
                record.id, record.first_name, record.last_name, record.email, is_active=True,
            )
        elif action is ReconciliationAction.DEACTIVATE:
            tx.set_active(prev.internal_id, False)
        elif action is ReconciliationAction.UPDATE:
            tx.update_user(
                prev.internal_id,
                record.first_name,
                record.last_name,
                record.email,
                is_active=updated_active_state(record),
            )
        return action

    @staticmethod
    def _count(result: CommitResult, action: ReconciliationAction) -> None:
        if action is ReconciliationAction.INSERT:
            result.inserted += 1
        elif action is ReconciliationAction.UPDATE:
            result.updated += 1
        elif action is ReconciliationAction.DEACTIVATE:
            result.deactivated += 1
        elif action is ReconciliationAction.INVALID:
            result.skipped_invalid += 1
        else:
            result.unchanged += 1


def commit_roster(store: IUserStore, records: Sequence[RosterRecord]) -> CommitResult:
    return RosterCommitter(store).commit(records)
