"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from typing import NamedTuple

from hrdocs.core.config import AppSettings
from hrdocs.persistence.protocols import IFileStore, IPayslipStore, IUserStore
from hrdocs.persistence.local_files import LocalFileStore
from hrdocs.persistence.s3_backend import S3FileStore
from hrdocs.persistence.sql_server import (
    SqlPayslipStore,
    SqlUserStore,
    create_engine_from_config,
)


class Persistence(NamedTuple):
    users: IUserStore
    payslips: IPayslipStore
    files: IFileStore


def create_file_store(settings: AppSettings) -> IFileStore:
    if settings.storage.backend == "s3":
        return S3FileStore(
            bucket=settings.storage.bucket,
            region=settings.storage.region,
            endpoint_url=settings.storage.endpoint_url,
        )
    return LocalFileStore(settings.storage.root)


def create_persistence(settings: AppSettings | None = None) -> Persistence:
    """Create wired-up persistence backends from application settings.

    Returns:
        Persistence(users, payslips, files); unpacks like a tuple.
    """
    if settings is None:
        settings = AppSettings()

    engine = create_engine_from_config(settings.database)
    schema = settings.database.schema_name or None

    users = SqlUserStore(engine, schema=schema)
    payslips = SqlPayslipStore(
        engine, schema=schema, procedure=settings.database.payslip_procedure,
    )
    return Persistence(users=users, payslips=payslips, files=create_file_store(settings))
