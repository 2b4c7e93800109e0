"""Turn an uploaded roster export (CSV or XLSX) into RosterRecords."""

from __future__ import annotations

import csv
import io
from pathlib import PurePath
from typing import Any, Iterable, List

from openpyxl import load_workbook

from hrdocs.core.exceptions import ValidationError
from hrdocs.models.roster import RosterRecord
from hrdocs.reconciliation.validator import normalize_row

CSV_SUFFIXES = {".csv", ".txt", ""}
XLSX_SUFFIXES = {".xlsx", ".xlsm"}


def _is_blank(row: dict[str, Any]) -> bool:
    return all(value is None or str(value).strip() == "" for value in row.values())


def read_csv_rows(data: bytes) -> List[dict[str, Any]]:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = data.decode("latin-1")
    reader = csv.DictReader(io.StringIO(text))
    if reader.fieldnames is None:
        return []
    reader.fieldnames = [name.strip() for name in reader.fieldnames]
    rows = []
    for raw in reader:
        row = {key: (value.strip() if isinstance(value, str) else value)
               for key, value in raw.items() if key is not None}
        if not _is_blank(row):
            rows.append(row)
    return rows


def read_xlsx_rows(data: bytes) -> List[dict[str, Any]]:
    workbook = load_workbook(filename=io.BytesIO(data), read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        headers_row = next(rows, None)  # First row holds the column headers
        if headers_row is None:
            return []
        headers = [str(h).strip() if h is not None else "" for h in headers_row]

        out: List[dict[str, Any]] = []
        for values in rows:
            row: dict[str, Any] = {}
            for header, value in zip(headers, values):
                if not header:
                    continue
                if isinstance(value, float) and value.is_integer():
                    value = int(value)  # Excel stores cedulas typed as numbers as floats
                row[header] = str(value).strip() if value is not None else None
            if not _is_blank(row):
                out.append(row)
        return out
    finally:
        workbook.close()


def records_from_rows(rows: Iterable[dict[str, Any]]) -> List[RosterRecord]:
    return [normalize_row(row) for row in rows]


def read_roster(data: bytes, filename: str = "roster.csv") -> List[RosterRecord]:
    suffix = PurePath(filename or "").suffix.lower()
    if suffix in XLSX_SUFFIXES:
        return records_from_rows(read_xlsx_rows(data))
    if suffix in CSV_SUFFIXES:
        return records_from_rows(read_csv_rows(data))
    raise ValidationError(f"Unsupported roster file type: {suffix!r} (expected .csv or .xlsx)")
