from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from schemas import UserUpdate
from services.gamification_service import GamificationService
from services.streak_service import StreakService
from services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/me")
async def get_profile(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    return UserService.get(db, user_id).to_dict()


@router.put("/me")
async def update_profile(body: UserUpdate, user_id: str = Depends(get_current_user),
                         db: Session = Depends(get_db)):
    return {"status": "success", "data": UserService.update(db, user_id, body).to_dict()}


@router.delete("/me")
async def delete_account(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    UserService.delete(db, user_id)
    return {"status": "success"}


@router.get("/me/stats")
async def gamification_stats(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    """XP, level and progress towards the next level."""
    return GamificationService.get_stats(db, user_id)


@router.get("/me/streaks")
async def user_streaks(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    return [s.to_dict() for s in StreakService.get_user_streaks(db, user_id)]
