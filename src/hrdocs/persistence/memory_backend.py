"""In-memory backends for unit tests: dict-backed fakes."""

from __future__ import annotations

import os
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterable, Iterator, Optional

from hrdocs.core.exceptions import FilesystemError
from hrdocs.models.payslip import (
    NewPayslip,
    PayslipFile,
    PayslipLocation,
    PayslipRegistration,
    PayslipSummary,
)
from hrdocs.models.roster import AuthoritativeUser


class _MemoryUserTransaction:
    """Works on a private copy of the users; the store swaps it in on commit."""

    def __init__(self, users: dict[str, AuthoritativeUser], next_id: int,
                 on_write: Callable[[str, str], None] | None) -> None:
        self.users = users
        self.next_id = next_id
        self._on_write = on_write

    def _write(self, operation: str, cedula: str) -> None:
        if self._on_write is not None:
            self._on_write(operation, cedula)

    def _by_internal_id(self, internal_id: int) -> AuthoritativeUser:
        for user in self.users.values():
            if user.internal_id == internal_id:
                return user
        raise KeyError(internal_id)

    def get_user(self, cedula: str) -> AuthoritativeUser | None:
        return self.users.get(cedula)

    def insert_user(self, cedula: str, first_name: Optional[str], last_name: Optional[str],
                    email: Optional[str], is_active: bool) -> int:
        self._write("insert", cedula)
        if cedula in self.users:
            raise ValueError(f"duplicate cedula {cedula}")
        internal_id = self.next_id
        self.next_id += 1
        self.users[cedula] = AuthoritativeUser(
            internal_id=internal_id, id=cedula, first_name=first_name,
            last_name=last_name, email=email, is_active=is_active,
        )
        return internal_id

    def update_user(self, internal_id: int, first_name: Optional[str], last_name: Optional[str],
                    email: Optional[str], is_active: bool) -> None:
        user = self._by_internal_id(internal_id)
        self._write("update", user.id)
        self.users[user.id] = user.model_copy(update={
            "first_name": first_name if first_name is not None else user.first_name,
            "last_name": last_name if last_name is not None else user.last_name,
            "email": email if email is not None else user.email,
            "is_active": is_active,
        })

    def set_active(self, internal_id: int, is_active: bool) -> None:
        user = self._by_internal_id(internal_id)
        self._write("set_active", user.id)
        self.users[user.id] = user.model_copy(update={"is_active": is_active})


class MemoryUserStore:
    """Dict-backed IUserStore for unit tests.

    ``on_write`` is called before every write with ``(operation, cedula)``; raise
    from it to simulate a failing store.
    """

    def __init__(self, users: Iterable[AuthoritativeUser] = (),
                 on_write: Callable[[str, str], None] | None = None) -> None:
        self._users: dict[str, AuthoritativeUser] = {u.id: u for u in users}
        self._next_id = max((u.internal_id for u in self._users.values()), default=0) + 1
        self.on_write = on_write
        self.lookups = 0

    def add(self, cedula: str, first_name: str | None = None, last_name: str | None = None,
            email: str | None = None, is_active: bool = True) -> AuthoritativeUser:
        user = AuthoritativeUser(
            internal_id=self._next_id, id=cedula, first_name=first_name,
            last_name=last_name, email=email, is_active=is_active,
        )
        self._next_id += 1
        self._users[cedula] = user
        return user

    def get(self, cedula: str) -> AuthoritativeUser | None:
        return self._users.get(cedula)

    def all(self) -> list[AuthoritativeUser]:
        return sorted(self._users.values(), key=lambda u: u.internal_id)

    def get_users_by_ids(self, cedulas: Iterable[str]) -> list[AuthoritativeUser]:
        self.lookups += 1
        return [self._users[c] for c in set(cedulas) if c in self._users]

    def find_active_user(self, cedula: str) -> AuthoritativeUser | None:
        user = self._users.get(cedula)
        return user if user is not None and user.is_active else None

    @contextmanager
    def transaction(self) -> Iterator[_MemoryUserTransaction]:
        tx = _MemoryUserTransaction(dict(self._users), self._next_id, self.on_write)
        yield tx
        self._users = tx.users
        self._next_id = tx.next_id

    def ping(self) -> bool:
        return True


class MemoryPayslipStore:
    """Dict-backed IPayslipStore; assigns ids and per-period versions like the stored procedure."""

    def __init__(self, users: MemoryUserStore | None = None) -> None:
        self._users = users
        self._rows: dict[int, dict] = {}
        self._next_id = 1

    def add_payslip(self, payslip: NewPayslip) -> PayslipRegistration:
        key = (payslip.user_internal_id, payslip.period_year, payslip.period_month, payslip.fortnight)
        version = 1 + sum(
            1 for row in self._rows.values()
            if (row["user_internal_id"], row["period_year"], row["period_month"], row["fortnight"]) == key
        )
        payslip_id = self._next_id
        self._next_id += 1
        self._rows[payslip_id] = {
            **payslip.model_dump(),
            "id": payslip_id,
            "version": version,
            "uploaded_at": datetime.now(),
        }
        return PayslipRegistration(id=payslip_id, version=version)

    def add_location(self, location: PayslipLocation) -> None:
        """Seed a stored payslip directly, bypassing upload."""
        self._rows[location.payslip_id] = {
            "id": location.payslip_id,
            "cedula": location.cedula,
            "user_internal_id": 0,
            "period_year": location.period_year,
            "period_month": location.period_month,
            "fortnight": location.fortnight,
            "file_name": location.file_name,
            "relative_path": location.recorded_path,
            "storage_path": location.recorded_path or "",
            "file_size_bytes": 0,
            "version": 1,
            "uploaded_at": None,
        }
        self._next_id = max(self._next_id, location.payslip_id + 1)

    def _cedula(self, row: dict) -> str:
        if row.get("cedula"):
            return row["cedula"]
        if self._users is not None:
            for user in self._users.all():
                if user.internal_id == row["user_internal_id"]:
                    return user.id
        return ""

    def list_locations(self) -> list[PayslipLocation]:
        return [
            PayslipLocation(
                payslip_id=row["id"],
                cedula=self._cedula(row),
                period_year=row["period_year"],
                period_month=row["period_month"],
                fortnight=row["fortnight"],
                file_name=row["file_name"],
                recorded_path=row["relative_path"],
            )
            for row in sorted(self._rows.values(), key=lambda r: r["id"])
        ]

    def list_for_cedula(self, cedula: str) -> list[PayslipSummary]:
        rows = [row for row in self._rows.values() if self._cedula(row) == cedula]
        rows.sort(key=lambda r: (r["period_year"], r["period_month"], r["fortnight"] or 0,
                                 r["version"], r["id"]), reverse=True)
        return [
            PayslipSummary.build(
                payslip_id=row["id"], cedula=cedula, year=row["period_year"],
                month=row["period_month"], fortnight=row["fortnight"],
                file_name=row["file_name"], size_bytes=row["file_size_bytes"],
                version=row["version"], uploaded_at=row["uploaded_at"],
            )
            for row in rows
        ]

    def get_file(self, payslip_id: int) -> PayslipFile | None:
        row = self._rows.get(payslip_id)
        if row is None:
            return None
        return PayslipFile(
            id=row["id"], file_name=row["file_name"],
            storage_path=row["storage_path"], relative_path=row["relative_path"],
        )


class MemoryFileStore:
    """Dict-backed IFileStore for unit tests."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = set()

    @staticmethod
    def _key(path: str) -> str:
        return os.path.normpath(path)

    def exists(self, path: str) -> bool:
        return self._key(path) in self._files

    def ensure_dir(self, path: str) -> None:
        self._dirs.add(self._key(path))

    def move(self, src: str, dst: str) -> None:
        if self._key(src) not in self._files:
            raise FilesystemError("move", src, "no such file")
        self._files[self._key(dst)] = self._files.pop(self._key(src))

    def write(self, path: str, data: bytes) -> str:
        self._files[self._key(path)] = data
        return path

    def read(self, path: str) -> bytes:
        try:
            return self._files[self._key(path)]
        except KeyError as exc:
            raise FilesystemError("read", path, "no such file") from exc

    def delete(self, path: str) -> None:
        self._files.pop(self._key(path), None)

    def absolute(self, path: str) -> str:
        return os.path.join(os.sep, "memory", path)

    def list_files(self) -> list[str]:
        return sorted(self._files)
