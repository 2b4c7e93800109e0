"""SQL Server (hr schema) stores built on SQLAlchemy Core.

Production runs against SQL Server through pyodbc; unit tests run the same
statements against SQLite with ``schema=None``.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    func,
    insert,
    select,
    text,
    true,
    update,
)
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.sql import Select
from sqlalchemy.exc import SQLAlchemyError

from hrdocs.core.config import DatabaseConfig
from hrdocs.core.exceptions import HRDocsError, LookupFailure
from hrdocs.models.payslip import (
    NewPayslip,
    PayslipFile,
    PayslipLocation,
    PayslipRegistration,
    PayslipSummary,
)
from hrdocs.models.roster import AuthoritativeUser

LOOKUP_CHUNK = 1000  # SQL Server caps a statement at 2100 parameters
_PROCEDURE_NAME = re.compile(r"^[\w\[\]]+(\.[\w\[\]]+)*$")


class HRTables:
    """``Users`` and ``PaySlips`` table definitions for one schema."""

    def __init__(self, schema: str | None = "hr") -> None:
        self.metadata = MetaData(schema=schema)
        self.users = Table(
            "Users", self.metadata,
            Column("Id", Integer, primary_key=True, autoincrement=True),
            Column("Cedula", String(16), nullable=False, unique=True),
            Column("FirstName", String(80)),
            Column("LastName", String(80)),
            Column("Email", String(120)),
            Column("IsActive", Boolean, nullable=False, default=True),
            Column("CreatedAt", DateTime, server_default=func.current_timestamp()),
        )
        self.payslips = Table(
            "PaySlips", self.metadata,
            Column("Id", Integer, primary_key=True, autoincrement=True),
            Column("UserId", Integer, ForeignKey(self.users.c.Id), nullable=False),
            Column("PeriodYear", Integer, nullable=False),
            Column("PeriodMonth", Integer, nullable=False),
            Column("Fortnight", Integer),
            Column("FileName", String(260), nullable=False),
            Column("StoragePath", String(400), nullable=False),
            Column("RelativePath", String(400)),
            Column("FileHashHex", String(64)),
            Column("FileSizeBytes", BigInteger),
            Column("Version", Integer, nullable=False, default=1),
            Column("Note", String(200)),
            Column("UploadedAt", DateTime, server_default=func.current_timestamp()),
        )


def create_engine_from_config(config: DatabaseConfig) -> Engine:
    url = config.sqlalchemy_url()
    kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if make_url(url).get_backend_name() != "sqlite":
        kwargs["pool_size"] = config.pool_size
        kwargs["isolation_level"] = config.isolation_level
    return create_engine(url, **kwargs)


def _chunks(values: list[str], size: int) -> Iterator[list[str]]:
    for start in range(0, len(values), size):
        yield values[start:start + size]


def _to_user(row: Any) -> AuthoritativeUser:
    return AuthoritativeUser(
        internal_id=row.Id,
        id=row.Cedula,
        first_name=row.FirstName,
        last_name=row.LastName,
        email=row.Email,
        is_active=bool(row.IsActive),
    )


def locked_user_select(users: Table, cedula: str) -> Select:
    """First user row for a cedula, locked until the transaction ends.

    SQL Server ignores FOR UPDATE, so the row lock there is a table hint.
    """
    return (
        select(users.c.Id, users.c.Cedula, users.c.FirstName, users.c.LastName,
               users.c.Email, users.c.IsActive)
        .where(users.c.Cedula == cedula)
        .order_by(users.c.Id)
        .limit(1)
        .with_hint(users, "WITH (UPDLOCK, ROWLOCK)", dialect_name="mssql")
        .with_for_update()
    )


class _SqlUserTransaction:
    """IUserTransaction over an open connection with a begun transaction."""

    def __init__(self, conn: Connection, tables: HRTables) -> None:
        self._conn = conn
        self._users = tables.users

    def get_user(self, cedula: str) -> AuthoritativeUser | None:
        row = self._conn.execute(locked_user_select(self._users, cedula)).first()
        return _to_user(row) if row is not None else None

    def insert_user(self, cedula: str, first_name: Optional[str], last_name: Optional[str],
                    email: Optional[str], is_active: bool) -> int:
        result = self._conn.execute(
            insert(self._users).values(
                Cedula=cedula,
                FirstName=first_name,
                LastName=last_name,
                Email=email,
                IsActive=is_active,
                CreatedAt=func.current_timestamp(),
            )
        )
        return int(result.inserted_primary_key[0])

    def update_user(self, internal_id: int, first_name: Optional[str], last_name: Optional[str],
                    email: Optional[str], is_active: bool) -> None:
        values: dict[str, Any] = {"IsActive": is_active}
        # None means "keep the stored value"
        if first_name is not None:
            values["FirstName"] = first_name
        if last_name is not None:
            values["LastName"] = last_name
        if email is not None:
            values["Email"] = email
        self._conn.execute(
            update(self._users).where(self._users.c.Id == internal_id).values(**values)
        )

    def set_active(self, internal_id: int, is_active: bool) -> None:
        self._conn.execute(
            update(self._users).where(self._users.c.Id == internal_id).values(IsActive=is_active)
        )


class SqlUserStore:
    """Production IUserStore backed by the ``Users`` table."""

    def __init__(self, engine: Engine, schema: str | None = "hr") -> None:
        self._engine = engine
        self._tables = HRTables(schema)

    @property
    def tables(self) -> HRTables:
        return self._tables

    def get_users_by_ids(self, cedulas: Iterable[str]) -> list[AuthoritativeUser]:
        wanted = sorted(set(cedulas))
        if not wanted:
            return []
        users = self._tables.users
        found: list[AuthoritativeUser] = []
        try:
            with self._engine.connect() as conn:
                for chunk in _chunks(wanted, LOOKUP_CHUNK):
                    stmt = (
                        select(users.c.Id, users.c.Cedula, users.c.FirstName,
                               users.c.LastName, users.c.Email, users.c.IsActive)
                        .where(users.c.Cedula.in_(chunk))
                    )
                    found.extend(_to_user(row) for row in conn.execute(stmt))
        except SQLAlchemyError as exc:
            raise LookupFailure(f"User lookup failed for {len(wanted)} cedulas: {exc}") from exc
        return found

    def find_active_user(self, cedula: str) -> AuthoritativeUser | None:
        users = self._tables.users
        stmt = (
            select(users.c.Id, users.c.Cedula, users.c.FirstName, users.c.LastName,
                   users.c.Email, users.c.IsActive)
            .where(users.c.Cedula == cedula, users.c.IsActive == true())
            .order_by(users.c.Id)
            .limit(1)
        )
        try:
            with self._engine.connect() as conn:
                row = conn.execute(stmt).first()
        except SQLAlchemyError as exc:
            raise LookupFailure(f"User lookup failed for cedula {cedula}: {exc}") from exc
        return _to_user(row) if row is not None else None

    @contextmanager
    def transaction(self) -> Iterator[_SqlUserTransaction]:
        try:
            conn = self._engine.connect()
        except SQLAlchemyError as exc:
            raise LookupFailure(f"User store unreachable: {exc}") from exc
        with conn:
            with conn.begin():
                yield _SqlUserTransaction(conn, self._tables)

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                return conn.execute(text("SELECT 1")).scalar() == 1
        except SQLAlchemyError:
            return False


class SqlPayslipStore:
    """Production IPayslipStore backed by ``PaySlips`` and the versioning procedure."""

    def __init__(self, engine: Engine, schema: str | None = "hr",
                 procedure: str = "hr.sp_PaySlips_Add") -> None:
        if not _PROCEDURE_NAME.match(procedure):
            raise ValueError(f"Invalid stored procedure name: {procedure!r}")
        self._engine = engine
        self._tables = HRTables(schema)
        self._procedure = procedure

    @property
    def tables(self) -> HRTables:
        return self._tables

    def add_payslip(self, payslip: NewPayslip) -> PayslipRegistration:
        """Run the versioned-insert procedure and return its ``NewId``/``NewVersion`` outputs."""
        if self._engine.dialect.name != "mssql":
            raise HRDocsError(f"{self._procedure} requires SQL Server, not {self._engine.dialect.name}")
        stmt = text(
            "SET NOCOUNT ON; "
            "DECLARE @NewId int, @NewVersion int; "
            f"EXEC {self._procedure} "
            "@UserId = :user_id, @PeriodYear = :period_year, @PeriodMonth = :period_month, "
            "@Fortnight = :fortnight, @FileName = :file_name, @StoragePath = :storage_path, "
            "@FileHashHex = :file_hash_hex, @FileSizeBytes = :file_size_bytes, @Note = :note, "
            "@ActorUserId = :user_id, @NewId = @NewId OUTPUT, @NewVersion = @NewVersion OUTPUT; "
            "SELECT @NewId AS NewId, @NewVersion AS NewVersion;"
        )
        params = {
            "user_id": payslip.user_internal_id,
            "period_year": payslip.period_year,
            "period_month": payslip.period_month,
            "fortnight": payslip.fortnight,
            "file_name": payslip.file_name,
            "storage_path": payslip.storage_path,
            "file_hash_hex": payslip.file_hash_hex,
            "file_size_bytes": payslip.file_size_bytes,
            "note": payslip.note,
        }
        with self._engine.begin() as conn:
            row = conn.execute(stmt, params).one()
            conn.execute(
                update(self._tables.payslips)
                .where(self._tables.payslips.c.Id == row.NewId)
                .values(RelativePath=payslip.relative_path)
            )
        return PayslipRegistration(id=row.NewId, version=row.NewVersion)

    def list_locations(self) -> list[PayslipLocation]:
        p, u = self._tables.payslips, self._tables.users
        stmt = (
            select(p.c.Id, u.c.Cedula, p.c.PeriodYear, p.c.PeriodMonth, p.c.Fortnight,
                   p.c.FileName, p.c.RelativePath)
            .join_from(p, u, p.c.UserId == u.c.Id)
            .order_by(p.c.Id)
        )
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise LookupFailure(f"Payslip listing failed: {exc}") from exc
        return [
            PayslipLocation(
                payslip_id=row.Id,
                cedula=row.Cedula,
                period_year=row.PeriodYear,
                period_month=row.PeriodMonth,
                fortnight=row.Fortnight,
                file_name=row.FileName,
                recorded_path=row.RelativePath,
            )
            for row in rows
        ]

    def list_for_cedula(self, cedula: str) -> list[PayslipSummary]:
        p, u = self._tables.payslips, self._tables.users
        stmt = (
            select(p.c.Id, u.c.Cedula, p.c.PeriodYear, p.c.PeriodMonth, p.c.Fortnight,
                   p.c.FileName, p.c.FileSizeBytes, p.c.Version, p.c.UploadedAt)
            .join_from(u, p, p.c.UserId == u.c.Id)
            .where(u.c.Cedula == cedula)
            .order_by(
                p.c.PeriodYear.desc(),
                p.c.PeriodMonth.desc(),
                func.coalesce(p.c.Fortnight, 0).desc(),
                p.c.Version.desc(),
                p.c.Id.desc(),
            )
        )
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise LookupFailure(f"Payslip listing failed for cedula {cedula}: {exc}") from exc
        return [
            PayslipSummary.build(
                payslip_id=row.Id, cedula=row.Cedula, year=row.PeriodYear,
                month=row.PeriodMonth, fortnight=row.Fortnight, file_name=row.FileName,
                size_bytes=row.FileSizeBytes, version=row.Version, uploaded_at=row.UploadedAt,
            )
            for row in rows
        ]

    def get_file(self, payslip_id: int) -> PayslipFile | None:
        p = self._tables.payslips
        stmt = select(p.c.Id, p.c.FileName, p.c.StoragePath, p.c.RelativePath).where(p.c.Id == payslip_id)
        try:
            with self._engine.connect() as conn:
                row = conn.execute(stmt).first()
        except SQLAlchemyError as exc:
            raise LookupFailure(f"Payslip lookup failed for id {payslip_id}: {exc}") from exc
        if row is None:
            return None
        return PayslipFile(
            id=row.Id, file_name=row.FileName,
            storage_path=row.StoragePath, relative_path=row.RelativePath,
        )
