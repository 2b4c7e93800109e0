"""Where a payslip file belongs, and file-name helpers used at upload time."""

from __future__ import annotations

import os
import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")
_FILENAME_CEDULA = re.compile(r"^([0-9]{5,12})_")


def canonical_path(cedula: str, period_year: int, period_month: int, file_name: str) -> str:
    """``<cedula>/<year>/<MM>/<file_name>`` with the native separator.

    The one layout used when a payslip is stored and when misplaced files are
    relocated.
    """
    return os.path.join(cedula, str(period_year), f"{int(period_month):02d}", file_name)


def native_path(path: str) -> str:
    """Rewrite ``/`` and ``\\`` separators of a recorded path to ``os.sep``."""
    return path.replace("\\", "/").replace("/", os.sep)


def sanitize_file_name(name: str) -> str:
    base = os.path.basename(native_path(name))
    return _WHITESPACE.sub("_", base.strip())


def cedula_from_file_name(name: str) -> Optional[str]:
    """Cedula prefix of ``CEDULA_APELLIDO_NOMBRE.pdf`` style names."""
    stem, _ = os.path.splitext(os.path.basename(native_path(name)))
    match = _FILENAME_CEDULA.match(stem)
    return match.group(1) if match else None
