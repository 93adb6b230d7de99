from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from hotelpms.api.deps import ACCOUNTING_ROLES, Pagination, get_or_404, require_roles
from hotelpms.core.db import get_db
from hotelpms.models import FinancialReport, ReportStatus, ReportType, User
from hotelpms.services import reports as report_service

router = APIRouter(prefix="/reports", tags=["reports"])
require_accounting = require_roles(*ACCOUNTING_ROLES)


class GenerateReportRequest(BaseModel):
    report_type: ReportType
    period_start: date
    period_end: date
    name: Optional[str] = None
    status: ReportStatus = ReportStatus.FINAL


def serialize_report(report: FinancialReport, with_data: bool = True) -> dict:
    data = {
        "id": report.id,
        "name": report.name,
        "report_type": report.report_type.value,
        "period_start": report.period_start,
        "period_end": report.period_end,
        "status": report.status.value,
        "summary": report.summary,
        "generated_at": report.generated_at.isoformat() if report.generated_at else None,
        "generated_by": report.generated_by.email if report.generated_by else None,
    }
    if with_data:
        data["data"] = report.data
    return data


@router.get("")
def list_reports(
    report_type: Optional[ReportType] = None,
    status: Optional[ReportStatus] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    query = db.query(FinancialReport)
    if report_type:
        query = query.filter(FinancialReport.report_type == report_type)
    if status:
        query = query.filter(FinancialReport.status == status)
    reports, meta = pagination.apply(
        query.order_by(FinancialReport.generated_at.desc(), FinancialReport.id.desc())
    )
    return {"reports": [serialize_report(r, with_data=False) for r in reports], "pagination": meta}


@router.get("/preview/{report_type}")
def preview_report(
    report_type: ReportType,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    """Build a report without saving it."""
    data, summary = report_service.build_report(db, report_type, start_date, end_date)
    return {
        "report_type": report_type.value,
        "period_start": start_date,
        "period_end": end_date,
        "data": data,
        "summary": summary,
    }


@router.post("", status_code=201)
def generate_report(
    payload: GenerateReportRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_accounting),
):
    report = report_service.generate_report(db, generated_by_id=user.id, **payload.model_dump())
    return serialize_report(report)


@router.get("/{report_id}")
def get_report(report_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    return serialize_report(get_or_404(db, FinancialReport, report_id, "Report"))


@router.delete("/{report_id}")
def delete_report(report_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    report = get_or_404(db, FinancialReport, report_id, "Report")
    db.delete(report)
    db.commit()
    return {"success": True}
