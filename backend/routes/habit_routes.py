from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from schemas import HabitCreate, HabitUpdate
from services.habit_service import HabitService
from services.log_service import LogService
from services.streak_service import StreakService
from services.user_service import UserService
from utils.dates import today_for

router = APIRouter(prefix="/api/v1/habits", tags=["Habits"])


@router.get("")
async def list_habits(active_only: bool = False, user_id: str = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    return [h.to_dict() for h in HabitService.get_all(db, user_id, active_only=active_only)]


@router.post("", status_code=201)
async def create_habit(body: HabitCreate, user_id: str = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    habit = HabitService.create(db, user_id, body)
    return {"status": "success", "data": habit.to_dict()}


@router.get("/today")
async def list_habits_today(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    """Active habits with today's completion status, in the user's timezone."""
    user = UserService.get(db, user_id)
    return HabitService.get_today(db, user_id, today_for(user.timezone))


@router.get("/streaks")
async def habit_streaks(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    return [s.to_dict() for s in StreakService.get_user_streaks(db, user_id)]


@router.get("/{habit_id}")
async def get_habit(habit_id: str, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    return HabitService.get(db, user_id, habit_id).to_dict()


@router.put("/{habit_id}")
async def update_habit(habit_id: str, body: HabitUpdate, user_id: str = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    habit = HabitService.update(db, user_id, habit_id, body)
    return {"status": "success", "data": habit.to_dict()}


@router.delete("/{habit_id}")
async def delete_habit(habit_id: str, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    HabitService.delete(db, user_id, habit_id)
    return {"status": "success"}


@router.post("/{habit_id}/check")
async def check_habit(habit_id: str, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    """Mark the habit completed for today."""
    log = LogService.quick_complete(db, user_id, habit_id)
    streak = StreakService.get(db, user_id, habit_id)
    return {"status": "success", "data": {"log": log.to_dict(), "streak": streak.to_dict()}}


@router.get("/{habit_id}/streak")
async def habit_streak(habit_id: str, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    return StreakService.get(db, user_id, habit_id).to_dict()
