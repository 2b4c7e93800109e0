"""Move payslip files on disk to their canonical <cedula>/<year>/<MM>/ location.

Usage:
    python scripts/normalize_files.py --root /srv/hrdocs/storage
    python scripts/normalize_files.py --database-url sqlite:///hr.db --schema ""
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError

from hrdocs.core.config import AppSettings
from hrdocs.core.exceptions import HRDocsError
from hrdocs.core.logging import configure_logging
from hrdocs.models.payslip import RelocationSummary
from hrdocs.persistence.local_files import LocalFileStore
from hrdocs.persistence.sql_server import SqlPayslipStore, create_engine_from_config
from hrdocs.storage.relocator import reconcile_storage

logger = logging.getLogger("normalize_files")


def format_summary(summary: RelocationSummary) -> str:
    return (
        f"moved={summary.moved}, already={summary.already_correct}, "
        f"missing={summary.missing}, failed={summary.failed}"
    )


def normalize(settings: AppSettings) -> RelocationSummary:
    engine = create_engine_from_config(settings.database)
    try:
        payslips = SqlPayslipStore(
            engine,
            schema=settings.database.schema_name or None,
            procedure=settings.database.payslip_procedure,
        )
        files = LocalFileStore(settings.storage.root)
        logger.info("Normalizing payslip files under %s", files.root)
        return reconcile_storage(files, payslips.list_locations())
    finally:
        engine.dispose()


def main(argv: Sequence[str] | None = None) -> int:
    settings = AppSettings()
    parser = argparse.ArgumentParser(description="Normalize payslip file locations")
    parser.add_argument("--root", default=settings.storage.root, help="Storage root directory")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy URL (overrides HRDOCS_DB_*)")
    parser.add_argument("--schema", default=None, help="Schema holding Users/PaySlips (empty for none)")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    database = settings.database
    if args.database_url:
        database = database.model_copy(update={"url": args.database_url})
    if args.schema is not None:
        database = database.model_copy(update={"schema_name": args.schema})
    settings = settings.model_copy(update={
        "database": database,
        "storage": settings.storage.model_copy(update={"root": args.root}),
    })

    try:
        summary = normalize(settings)
    except (HRDocsError, SQLAlchemyError, OSError) as exc:
        print(f"Normalization failed: {exc}", file=sys.stderr)
        return 1

    print(format_summary(summary))
    return 0


if __name__ == "__main__":
    sys.exit(main())
