from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from schemas import RegisterRequest, LoginRequest
from services.user_service import UserService

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


@router.post("/register", status_code=201)
async def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account and return a session token."""
    result = UserService.register(db, body)
    return {"status": "success", "data": {"token": result["token"], "user": result["user"].to_dict()}}


@router.post("/login")
async def login(body: LoginRequest, db: Session = Depends(get_db)):
    result = UserService.authenticate(db, body)
    return {"status": "success", "data": {"token": result["token"], "user": result["user"].to_dict()}}
