"""Payslip upload, listing and download.

Uploaded files go straight to their canonical path; the payslip persistence
service assigns the id and version. A file whose registration fails is removed
again (or the version it replaced is restored) so storage never holds payslips
the database does not know about.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Optional, Sequence

from hrdocs.core.config import UploadConfig
from hrdocs.core.exceptions import (
    HRDocsError,
    PayslipNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from hrdocs.core.protocols import IFileStore, IPayslipStore, IUserStore
from hrdocs.models.payslip import (
    BatchTotals,
    BatchUploadItem,
    BatchUploadResult,
    NewPayslip,
    PayslipFile,
    PayslipSummary,
    UploadResult,
)
from hrdocs.reconciliation.validator import validate_id
from hrdocs.storage.paths import canonical_path, cedula_from_file_name, sanitize_file_name

logger = logging.getLogger(__name__)


def _as_int(value: Any, field: str) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field} is not a number: {value!r}") from None


def parse_period(period_year: Any, period_month: Any,
                 fortnight: Any = None) -> tuple[int, int, Optional[int]]:
    if period_year is None or str(period_year).strip() == "":
        raise ValidationError("periodYear is required")
    year = _as_int(period_year, "periodYear")
    if period_month is None or str(period_month).strip() == "":
        raise ValidationError("periodMonth is required")
    month = _as_int(period_month, "periodMonth")
    if not 1 <= month <= 12:
        raise ValidationError(f"periodMonth out of range: {month}")
    fort: Optional[int] = None
    if fortnight is not None and str(fortnight).strip() != "":
        fort = _as_int(fortnight, "fortnight")
        if fort not in (1, 2):
            raise ValidationError(f"fortnight must be 1 or 2, got {fort}")
    return year, month, fort


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest().upper()


class PayslipService:
    def __init__(self, users: IUserStore, payslips: IPayslipStore, files: IFileStore,
                 config: UploadConfig | None = None) -> None:
        self._users = users
        self._payslips = payslips
        self._files = files
        self._config = config or UploadConfig()

    def _store(self, cedula: str, year: int, month: int, fortnight: Optional[int],
               file_name: str, data: bytes, note: str) -> UploadResult:
        user = self._users.find_active_user(cedula)
        if user is None:
            raise UserNotFoundError(cedula)

        final_name = sanitize_file_name(file_name)
        if not final_name:
            raise ValidationError("file name is empty")
        relative = canonical_path(cedula, year, month, final_name)
        # An earlier version may own this path; it gets its bytes back on failure
        previous = self._files.read(relative) if self._files.exists(relative) else None
        self._files.write(relative, data)
        absolute = self._files.absolute(relative)

        try:
            registration = self._payslips.add_payslip(NewPayslip(
                user_internal_id=user.internal_id,
                period_year=year,
                period_month=month,
                fortnight=fortnight,
                file_name=final_name,
                relative_path=relative,
                storage_path=absolute,
                file_hash_hex=sha256_hex(data),
                file_size_bytes=len(data),
                note=note,
            ))
        except Exception:
            if previous is None:
                self._files.delete(relative)
            else:
                self._files.write(relative, previous)
            raise

        return UploadResult(
            filename=final_name, path=absolute,
            db_id=registration.id, version=registration.version,
        )

    def upload(self, cedula: Optional[str], period_year: Any, period_month: Any,
               fortnight: Any, file_name: str, data: bytes) -> UploadResult:
        if not validate_id(cedula):
            raise ValidationError("cedula is missing or invalid")
        year, month, fort = parse_period(period_year, period_month, fortnight)
        return self._store(cedula, year, month, fort, file_name, data, self._config.single_note)

    def upload_batch(self, files: Sequence[tuple[str, bytes]], period_year: Any,
                     period_month: Any, fortnight: Any = None,
                     cedula: Optional[str] = None) -> BatchUploadResult:
        """Store several files for one period; each file succeeds or fails on its own.

        Without a valid ``cedula`` every file name must start with one
        (``CEDULA_APELLIDO_NOMBRE.pdf``).
        """
        year, month, fort = parse_period(period_year, period_month, fortnight)
        if not files:
            raise ValidationError("no files uploaded")
        if len(files) > self._config.max_batch_files:
            raise ValidationError(
                f"too many files: {len(files)} (max {self._config.max_batch_files})"
            )

        items: list[BatchUploadItem] = []
        for name, data in files:
            owner = cedula if validate_id(cedula) else cedula_from_file_name(name)
            if not owner:
                items.append(BatchUploadItem(
                    filename=name, ok=False,
                    msg="Invalid file name, expected CEDULA_APELLIDO_NOMBRE.pdf",
                ))
                continue
            try:
                stored = self._store(owner, year, month, fort, name, data, self._config.batch_note)
            except HRDocsError as exc:
                items.append(BatchUploadItem(filename=name, ok=False, msg=str(exc)))
                continue
            except Exception as exc:
                logger.exception("Batch upload of %s failed", name)
                items.append(BatchUploadItem(filename=name, ok=False, msg=str(exc) or "storage error"))
                continue
            items.append(BatchUploadItem(
                filename=name, ok=True, db_id=stored.db_id,
                version=stored.version, path=stored.path,
            ))

        ok = sum(1 for item in items if item.ok)
        return BatchUploadResult(
            success=ok == len(items),
            totals=BatchTotals(ok=ok, failed=len(items) - ok),
            items=items,
        )

    def list_for_cedula(self, cedula: str) -> list[PayslipSummary]:
        if not validate_id(cedula):
            raise ValidationError("cedula is missing or invalid")
        return self._payslips.list_for_cedula(cedula)

    def get_payslip(self, payslip_id: int) -> tuple[PayslipFile, bytes]:
        payslip = self._payslips.get_file(payslip_id)
        if payslip is None:
            raise PayslipNotFoundError(f"No payslip with id {payslip_id}")
        if not payslip.relative_path or not self._files.exists(payslip.relative_path):
            raise PayslipNotFoundError(f"Payslip file is not on disk: {payslip.storage_path}")
        return payslip, self._files.read(payslip.relative_path)

