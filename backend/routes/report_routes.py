from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from schemas import ReportGenerateRequest
from services.report_service import ReportService
from services.report_writer import ReportWriter

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])


def get_report_writer() -> ReportWriter:
    return ReportWriter.from_config()


@router.get("")
async def list_reports(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    return [r.to_dict() for r in ReportService.list_reports(db, user_id)]


@router.post("/generate")
async def generate_report(body: ReportGenerateRequest, user_id: str = Depends(get_current_user),
                          db: Session = Depends(get_db), writer: ReportWriter = Depends(get_report_writer)):
    """Return the month's report, generating it on first request."""
    report = await ReportService.generate(db, user_id, body.year, body.month, writer)
    return {"status": "success", "data": report.to_dict()}


@router.post("/regenerate")
async def regenerate_report(body: ReportGenerateRequest, user_id: str = Depends(get_current_user),
                            db: Session = Depends(get_db), writer: ReportWriter = Depends(get_report_writer)):
    report = await ReportService.regenerate(db, user_id, body.year, body.month, writer)
    return {"status": "success", "data": report.to_dict()}


@router.get("/{month}")
async def get_report(month: str, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    return ReportService.get_report(db, user_id, month).to_dict()
