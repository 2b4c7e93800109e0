"""Two-phase roster import: dry-run preview, then transactional commit."""

from __future__ import annotations

import logging
from typing import Sequence

from pydantic import BaseModel

from hrdocs.core.protocols import IUserStore
from hrdocs.models.reconciliation import CommitResult, Report
from hrdocs.models.roster import RosterRecord
from hrdocs.reconciliation.analyzer import analyze
from hrdocs.reconciliation.committer import RosterCommitter
from hrdocs.reconciliation.index import ExistingStateIndex

logger = logging.getLogger(__name__)


class ImportOutcome(BaseModel):
    preview: Report
    result: CommitResult


class RosterImporter:
    def __init__(self, users: IUserStore) -> None:
        self._users = users

    def dry_run(self, records: Sequence[RosterRecord]) -> Report:
        index = ExistingStateIndex.build(self._users, records)
        report = analyze(records, index)
        logger.info(
            "Roster dry-run: %d rows, %d insert, %d update, %d deactivate, %d invalid",
            report.total, report.will_insert, report.will_update,
            report.will_deactivate, len(report.invalid),
        )
        return report

    def commit(self, records: Sequence[RosterRecord]) -> ImportOutcome:
        """Preview first so the caller gets both what was planned and what was applied."""
        preview = self.dry_run(records)
        result = RosterCommitter(self._users).commit(records)
        return ImportOutcome(preview=preview, result=result)
