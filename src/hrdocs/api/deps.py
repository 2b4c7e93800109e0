"""Request dependencies resolved from application state."""

from __future__ import annotations

from fastapi import Request

from hrdocs.core.config import AppSettings
from hrdocs.persistence import Persistence
from hrdocs.services.payslips import PayslipService
from hrdocs.services.roster_import import RosterImporter


def get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_persistence(request: Request) -> Persistence:
    return request.app.state.persistence


def get_importer(request: Request) -> RosterImporter:
    return RosterImporter(get_persistence(request).users)


def get_payslip_service(request: Request) -> PayslipService:
    persistence = get_persistence(request)
    return PayslipService(
        persistence.users, persistence.payslips, persistence.files,
        config=get_settings(request).upload,
    )
