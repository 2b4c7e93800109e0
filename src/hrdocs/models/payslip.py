"""Payslip records, upload results and storage relocation summaries."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PayslipLocation(BaseModel):
    """A stored payslip joined with its owner's cedula, as the relocator needs it."""

    model_config = ConfigDict(frozen=True)

    payslip_id: int
    cedula: str
    period_year: int
    period_month: int  # Range-checked per record by the relocator
    fortnight: Optional[int] = None
    file_name: str
    recorded_path: Optional[str] = None  # RelativePath column, may use "\" separators


class NewPayslip(BaseModel):
    """Arguments handed to the payslip persistence service on upload."""

    user_internal_id: int
    period_year: int
    period_month: int = Field(ge=1, le=12)
    fortnight: Optional[int] = None
    file_name: str
    relative_path: str
    storage_path: str
    file_hash_hex: Optional[str] = None
    file_size_bytes: int = 0
    note: str = ""


class PayslipRegistration(BaseModel):
    """Identity assigned by the persistence service."""

    id: int
    version: int


class PayslipSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    cedula: str
    period: str
    year: int
    month: int
    fortnight: Optional[int] = None
    file_name: str = Field(alias="fileName")
    size_bytes: int = Field(default=0, alias="sizeBytes")
    version: int
    uploaded_at: Optional[datetime] = Field(default=None, alias="uploadedAt")
    download_url: str = Field(alias="downloadUrl")

    @classmethod
    def build(cls, payslip_id: int, cedula: str, year: int, month: int,
              fortnight: Optional[int], file_name: str, size_bytes: Optional[int],
              version: int, uploaded_at: Optional[datetime]) -> "PayslipSummary":
        return cls(
            id=payslip_id, cedula=cedula, period=period_label(year, month, fortnight),
            year=year, month=month, fortnight=fortnight, file_name=file_name,
            size_bytes=int(size_bytes or 0), version=version, uploaded_at=uploaded_at,
            download_url=download_url(payslip_id),
        )


class PayslipFile(BaseModel):
    id: int
    file_name: str
    storage_path: str
    relative_path: Optional[str] = None


class UploadResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    filename: str
    path: str
    db_id: int = Field(alias="dbId")
    version: int


class BatchUploadItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    ok: bool
    msg: Optional[str] = None
    db_id: Optional[int] = Field(default=None, alias="dbId")
    version: Optional[int] = None
    path: Optional[str] = None


class BatchTotals(BaseModel):
    ok: int = 0
    failed: int = 0


class BatchUploadResult(BaseModel):
    success: bool
    totals: BatchTotals
    items: list[BatchUploadItem] = Field(default_factory=list)


class RelocationOutcome(StrEnum):
    MOVED = "moved"
    ALREADY_CORRECT = "alreadyCorrect"
    MISSING = "missing"
    FAILED = "failed"


class RelocationEntry(BaseModel):
    """Log line for one payslip that was moved, missing or failed."""

    model_config = ConfigDict(populate_by_name=True)

    payslip_id: int = Field(alias="payslipId")
    outcome: RelocationOutcome
    target: str
    source: Optional[str] = None
    strategy: Optional[str] = None
    detail: Optional[str] = None


class RelocationSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    moved: int = 0
    already_correct: int = Field(default=0, alias="alreadyCorrect")
    missing: int = 0
    failed: int = 0
    entries: list[RelocationEntry] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.moved + self.already_correct + self.missing + self.failed


def period_label(year: int, month: int, fortnight: Optional[int] = None) -> str:
    label = f"{year}-{int(month):02d}"
    return f"{label} Q{fortnight}" if fortnight else label


def download_url(payslip_id: int) -> str:
    return f"/api/recibos/{payslip_id}/pdf"
