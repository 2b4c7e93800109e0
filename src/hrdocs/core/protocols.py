"""Protocol interfaces for all hrdocs abstractions.

All inter-layer communication uses these Protocols: structural typing,
no inheritance required, easy to test with isinstance().
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Iterable, Optional, Protocol, runtime_checkable

from hrdocs.models.payslip import (
    NewPayslip,
    PayslipFile,
    PayslipLocation,
    PayslipRegistration,
    PayslipSummary,
)
from hrdocs.models.roster import AuthoritativeUser


# ---------------------------------------------------------------------------
# Persistence: Users (authoritative store)
# ---------------------------------------------------------------------------

@runtime_checkable
class IUserTransaction(Protocol):
    """Single-user operations inside one open transaction."""

    def get_user(self, cedula: str) -> AuthoritativeUser | None: ...

    def insert_user(
        self,
        cedula: str,
        first_name: Optional[str],
        last_name: Optional[str],
        email: Optional[str],
        is_active: bool,
    ) -> int: ...

    def update_user(
        self,
        internal_id: int,
        first_name: Optional[str],
        last_name: Optional[str],
        email: Optional[str],
        is_active: bool,
    ) -> None:
        """Coalesce-on-null update: ``None`` leaves the stored value in place."""
        ...

    def set_active(self, internal_id: int, is_active: bool) -> None: ...


@runtime_checkable
class IUserStore(Protocol):
    """Authoritative user directory."""

    def get_users_by_ids(self, cedulas: Iterable[str]) -> list[AuthoritativeUser]: ...

    def find_active_user(self, cedula: str) -> AuthoritativeUser | None: ...

    def transaction(self) -> AbstractContextManager[IUserTransaction]:
        """Begin a transaction; commits on clean exit, rolls back on exception."""
        ...

    def ping(self) -> bool: ...


# ---------------------------------------------------------------------------
# Persistence: Payslips
# ---------------------------------------------------------------------------

@runtime_checkable
class IPayslipStore(Protocol):
    """Payslip metadata plus the external versioned-insert service."""

    def add_payslip(self, payslip: NewPayslip) -> PayslipRegistration: ...

    def list_locations(self) -> list[PayslipLocation]: ...

    def list_for_cedula(self, cedula: str) -> list[PayslipSummary]: ...

    def get_file(self, payslip_id: int) -> PayslipFile | None: ...


# ---------------------------------------------------------------------------
# Persistence: File Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IFileStore(Protocol):
    """Payslip file storage addressed by paths relative to the storage root."""

    def exists(self, path: str) -> bool: ...

    def ensure_dir(self, path: str) -> None: ...

    def move(self, src: str, dst: str) -> None: ...

    def write(self, path: str, data: bytes) -> str: ...

    def read(self, path: str) -> bytes: ...

    def delete(self, path: str) -> None: ...

    def absolute(self, path: str) -> str: ...
