"""Payslip upload, listing and download endpoints."""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import Response

from hrdocs.api.deps import get_payslip_service
from hrdocs.services.payslips import PayslipService

router = APIRouter(tags=["payslips"])


@router.post("/upload")
def upload(
    file: UploadFile = File(...),
    cedula: Optional[str] = Form(None),
    period_year: Optional[str] = Form(None, alias="periodYear"),
    period_month: Optional[str] = Form(None, alias="periodMonth"),
    fortnight: Optional[str] = Form(None),
    service: PayslipService = Depends(get_payslip_service),
) -> dict[str, Any]:
    data = file.file.read()
    result = service.upload(
        cedula.strip() if cedula else None, period_year, period_month, fortnight,
        file.filename or "", data,
    )
    return result.model_dump(by_alias=True)


@router.post("/upload/batch")
def upload_batch(
    files: list[UploadFile] = File(...),
    cedula: Optional[str] = Form(None),
    period_year: Optional[str] = Form(None, alias="periodYear"),
    period_month: Optional[str] = Form(None, alias="periodMonth"),
    fortnight: Optional[str] = Form(None),
    service: PayslipService = Depends(get_payslip_service),
) -> dict[str, Any]:
    contents = [(upload.filename or "", upload.file.read()) for upload in files]
    result = service.upload_batch(
        contents, period_year, period_month, fortnight,
        cedula=cedula.strip() if cedula else None,
    )
    return result.model_dump(by_alias=True)


@router.get("/recibos/by-cedula")
def list_by_cedula(
    cedula: str = Query(""),
    service: PayslipService = Depends(get_payslip_service),
) -> dict[str, Any]:
    cedula = cedula.strip()
    items = service.list_for_cedula(cedula)
    return {
        "ok": True,
        "cedula": cedula,
        "count": len(items),
        "items": [item.model_dump(mode="json", by_alias=True) for item in items],
    }


@router.get("/recibos/{payslip_id}/pdf")
def download(
    payslip_id: int,
    service: PayslipService = Depends(get_payslip_service),
) -> Response:
    payslip, data = service.get_payslip(payslip_id)
    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename*=UTF-8''{quote(payslip.file_name)}"},
    )
