"""Report listing, sharing, PDF export and dashboard API route declarations."""

from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from dependencies import get_current_user, get_storage, require_admin
from models.report_model import InspectionReport
from models.user_model import User, UserRole
from services.report_service import (
    build_share_link,
    build_share_text,
    export_report_pdf,
    report_pdf_filename,
    search_reports,
)
from services.storage_service import InspectionStorage
from utils.pdf_generator import ReportRenderError

router = APIRouter(tags=["report"])


class ShareResponse(BaseModel):
    text: str
    url: str


class DashboardResponse(BaseModel):
    templates: int
    reports: int
    role: UserRole


def _get_report_or_404(storage: InspectionStorage, report_id: str) -> InspectionReport:
    report = storage.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Relatório não encontrado.")
    return report


@router.get("/reports", response_model=list[InspectionReport])
def list_reports(
    search: str | None = Query(default=None, description="Match on checklist title or technician name"),
    _: User = Depends(get_current_user),
    storage: InspectionStorage = Depends(get_storage),
):
    return search_reports(storage.get_reports(), search)


@router.get("/reports/{report_id}", response_model=InspectionReport)
def get_report(
    report_id: str,
    _: User = Depends(get_current_user),
    storage: InspectionStorage = Depends(get_storage),
):
    return _get_report_or_404(storage, report_id)


@router.get("/reports/{report_id}/share", response_model=ShareResponse)
def share_report(
    report_id: str,
    _: User = Depends(get_current_user),
    storage: InspectionStorage = Depends(get_storage),
):
    text = build_share_text(_get_report_or_404(storage, report_id))
    return ShareResponse(text=text, url=build_share_link(text))


@router.get("/reports/{report_id}/pdf")
def report_pdf(
    report_id: str,
    _: User = Depends(get_current_user),
    storage: InspectionStorage = Depends(get_storage),
):
    report = _get_report_or_404(storage, report_id)
    try:
        pdf_content = export_report_pdf(report)
    except ReportRenderError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return StreamingResponse(
        iter([pdf_content]),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(report_pdf_filename(report))}"},
    )


@router.delete("/reports/{report_id}")
def delete_report(
    report_id: str,
    _: User = Depends(require_admin),
    storage: InspectionStorage = Depends(get_storage),
):
    storage.delete_report(report_id)
    return {"deleted": report_id}


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    user: User = Depends(get_current_user),
    storage: InspectionStorage = Depends(get_storage),
):
    return DashboardResponse(
        templates=len(storage.get_templates()),
        reports=len(storage.get_reports()),
        role=user.role,
    )
