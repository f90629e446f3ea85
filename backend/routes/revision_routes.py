from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from services.revision_service import RevisionService

router = APIRouter(prefix="/api/v1/revisions", tags=["Revisions"])


@router.get("")
async def list_revisions(pending_only: bool = False, user_id: str = Depends(get_current_user),
                         db: Session = Depends(get_db)):
    return [r.to_dict() for r in RevisionService.get_all(db, user_id, pending_only=pending_only)]


@router.post("/{revision_id}/accept")
async def accept_revision(revision_id: str, user_id: str = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    """Accept the proposal and create its revision habit."""
    result = RevisionService.accept(db, user_id, revision_id)
    return {"status": "success", "data": {
        "revision": result["revision"].to_dict(),
        "habit": result["habit"].to_dict(),
    }}


@router.post("/{revision_id}/decline")
async def decline_revision(revision_id: str, user_id: str = Depends(get_current_user),
                           db: Session = Depends(get_db)):
    return {"status": "success", "data": RevisionService.decline(db, user_id, revision_id).to_dict()}


@router.post("/{revision_id}/complete")
async def complete_revision(revision_id: str, user_id: str = Depends(get_current_user),
                            db: Session = Depends(get_db)):
    return {"status": "success", "data": RevisionService.complete(db, user_id, revision_id).to_dict()}
