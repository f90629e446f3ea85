from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from schemas import DailyLogUpsert, LearningNoteCreate
from services.log_service import LogService

router = APIRouter(prefix="/api/v1/logs", tags=["Logs"])


@router.post("")
async def upsert_log(body: DailyLogUpsert, user_id: str = Depends(get_current_user),
                     db: Session = Depends(get_db)):
    """Create or update the log for (habit_id, log_date)."""
    log = LogService.create_or_update_log(db, user_id, body)
    return {"status": "success", "data": log.to_dict()}


@router.get("")
async def list_logs(start_date: str, end_date: str, user_id: str = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    return [l.to_dict() for l in LogService.get_by_date_range(db, user_id, start_date, end_date)]


@router.get("/calendar")
async def calendar(year: int, month: int, user_id: str = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    return LogService.get_calendar(db, user_id, year, month)


@router.get("/habit/{habit_id}")
async def habit_logs(habit_id: str, limit: int = 30, offset: int = 0,
                     user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    return [l.to_dict() for l in LogService.get_by_habit(db, user_id, habit_id, limit, offset)]


@router.post("/habit/{habit_id}/note")
async def add_note(habit_id: str, body: LearningNoteCreate, user_id: str = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    log = LogService.add_learning_note(db, user_id, habit_id, body.note)
    return {"status": "success", "data": log.to_dict()}
