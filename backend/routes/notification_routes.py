from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from services.notification_service import NotificationService
from services.user_service import UserService
from utils.dates import today_for

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


@router.get("")
async def list_notifications(unread_only: bool = False, user_id: str = Depends(get_current_user),
                             db: Session = Depends(get_db)):
    return [n.to_dict() for n in NotificationService.get_all(db, user_id, unread_only=unread_only)]


@router.put("/{notification_id}/read")
async def mark_as_read(notification_id: str, user_id: str = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    NotificationService.mark_read(db, user_id, notification_id)
    return {"status": "success"}


@router.post("/streak-alerts")
async def streak_alerts(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    """Notify about streaks that end today unless their habit is completed."""
    user = UserService.get(db, user_id)
    sent = NotificationService.send_streak_alerts(db, user_id, today_for(user.timezone))
    return {"status": "success", "data": [n.to_dict() for n in sent]}
