from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from schemas import SyncPushRequest
from services.sync_service import SyncService

router = APIRouter(prefix="/api/v1/sync", tags=["Sync"])


@router.post("/push")
async def push(body: SyncPushRequest, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    """Apply offline changes. Failed items are reported, not raised."""
    return SyncService.push_changes(db, user_id, body.items)


@router.get("/pull")
async def pull(since: Optional[datetime] = None, user_id: str = Depends(get_current_user),
               db: Session = Depends(get_db)):
    return SyncService.pull_changes(db, user_id, since)


@router.get("/status")
async def sync_status(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    return SyncService.get_status(db, user_id)
