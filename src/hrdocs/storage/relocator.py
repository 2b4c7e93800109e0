"""Move payslip files into their canonical location.

Each payslip is handled on its own: a missing file or a failed rename is recorded
in the summary and the run goes on with the next one. Files already at their
canonical path are never touched, so a second run reports ``moved == 0``.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, Iterable, Optional, Sequence

from hrdocs.core.exceptions import HRDocsError, RelocationMiss, ValidationError
from hrdocs.core.protocols import IFileStore
from hrdocs.models.payslip import (
    PayslipLocation,
    RelocationEntry,
    RelocationOutcome,
    RelocationSummary,
)
from hrdocs.storage.paths import canonical_path, native_path

logger = logging.getLogger(__name__)

CandidateStrategy = Callable[[PayslipLocation], Optional[str]]


def target_for(doc: PayslipLocation) -> str:
    if not 1 <= doc.period_month <= 12:
        raise ValidationError(f"Payslip {doc.payslip_id}: period month out of range: {doc.period_month}")
    return canonical_path(doc.cedula, doc.period_year, doc.period_month, doc.file_name)


def recorded_location(doc: PayslipLocation) -> Optional[str]:
    """The path the store currently records, when it is not already the target."""
    if not doc.recorded_path:
        return None
    current = native_path(doc.recorded_path)
    return None if current == target_for(doc) else current


def loose_in_root(doc: PayslipLocation) -> Optional[str]:
    return doc.file_name


def legacy_numbered_subdir(doc: PayslipLocation) -> Optional[str]:
    """Old uploads nested one extra ``2`` directory under the month."""
    return os.path.join(os.path.dirname(target_for(doc)), "2", doc.file_name)


def legacy_fortnight_subdir(doc: PayslipLocation) -> Optional[str]:
    """Old uploads split each month into ``Q1``/``Q2`` (fortnightly) or ``M`` (monthly)."""
    period_dir = f"Q{doc.fortnight}" if doc.fortnight else "M"
    return os.path.join(os.path.dirname(target_for(doc)), period_dir, doc.file_name)


DEFAULT_STRATEGIES: tuple[tuple[str, CandidateStrategy], ...] = (
    ("recorded", recorded_location),
    ("loose", loose_in_root),
    ("legacy /2/", legacy_numbered_subdir),
    ("legacy fortnight", legacy_fortnight_subdir),
)


class StorageRelocator:
    """Reconciles a file store against the payslips the database knows about."""

    def __init__(
        self,
        files: IFileStore,
        strategies: Sequence[tuple[str, CandidateStrategy]] = DEFAULT_STRATEGIES,
    ) -> None:
        self._files = files
        self._strategies = tuple(strategies)

    def reconcile(self, records: Iterable[PayslipLocation]) -> RelocationSummary:
        summary = RelocationSummary()
        for doc in records:
            target = ""
            try:
                target = target_for(doc)
                self._relocate(doc, target, summary)
            except (HRDocsError, OSError) as exc:
                summary.failed += 1
                summary.entries.append(RelocationEntry(
                    payslip_id=doc.payslip_id,
                    outcome=RelocationOutcome.FAILED,
                    target=target,
                    detail=str(exc),
                ))
                logger.error("[FAIL] Id=%s expected=%s: %s", doc.payslip_id, target, exc)

        logger.info(
            "Storage summary => moved=%d, already=%d, missing=%d, failed=%d",
            summary.moved, summary.already_correct, summary.missing, summary.failed,
        )
        return summary

    def _relocate(self, doc: PayslipLocation, target: str, summary: RelocationSummary) -> None:
        if self._files.exists(target):
            summary.already_correct += 1
            return

        self._files.ensure_dir(os.path.dirname(target))

        for name, strategy in self._strategies:
            candidate = strategy(doc)
            if not candidate or candidate == target or not self._files.exists(candidate):
                continue
            self._files.move(candidate, target)
            summary.moved += 1
            summary.entries.append(RelocationEntry(
                payslip_id=doc.payslip_id,
                outcome=RelocationOutcome.MOVED,
                target=target,
                source=candidate,
                strategy=name,
            ))
            logger.info("[MOVE] (%s) %s -> %s", name, candidate, target)
            return

        miss = RelocationMiss(doc.payslip_id, target)
        summary.missing += 1
        summary.entries.append(RelocationEntry(
            payslip_id=doc.payslip_id,
            outcome=RelocationOutcome.MISSING,
            target=target,
            source=doc.recorded_path,
            detail=str(miss),
        ))
        logger.warning("[MISS] Id=%s expected=%s current=%s", doc.payslip_id, target, doc.recorded_path)


def reconcile_storage(files: IFileStore, records: Iterable[PayslipLocation]) -> RelocationSummary:
    return StorageRelocator(files).reconcile(records)
