"""hrdocs exception hierarchy."""

from __future__ import annotations


class HRDocsError(Exception):
    """Base exception for all hrdocs errors."""


class ValidationError(HRDocsError):
    """Input rejected before reaching the store (malformed cedula, bad period, ...)."""

    def __init__(self, message: str, row: int | None = None) -> None:
        self.row = row
        super().__init__(message if row is None else f"Row {row}: {message}")


class UserNotFoundError(HRDocsError):
    """No (active) user exists for the given cedula."""

    def __init__(self, cedula: str) -> None:
        self.cedula = cedula
        super().__init__(f"No active user with cedula {cedula}")


class LookupFailure(HRDocsError):
    """The authoritative store could not be read."""


class CommitFailed(HRDocsError):
    """A roster commit was rolled back; ``cause`` holds the original error."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Roster commit rolled back: {cause}")


class StorageError(HRDocsError):
    """File storage backend failure."""


class FilesystemError(StorageError):
    """A single filesystem operation (rename, mkdir, write) failed."""

    def __init__(self, operation: str, path: str, message: str) -> None:
        self.operation = operation
        self.path = path
        super().__init__(f"{operation} failed for {path!r}: {message}")


class RelocationMiss(HRDocsError):
    """No recovery candidate exists for a payslip file."""

    def __init__(self, payslip_id: int, target: str) -> None:
        self.payslip_id = payslip_id
        self.target = target
        super().__init__(f"Payslip {payslip_id}: no file found for expected {target}")


class PayslipNotFoundError(HRDocsError):
    """No payslip row, or its file is gone from storage."""
