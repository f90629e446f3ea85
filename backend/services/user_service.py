"""
user_service.py — Accounts and profiles
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from auth import create_token, hash_password, verify_password
from exceptions import AuthenticationError, ConflictError, NotFoundError, PersistenceError
from models.user import User
from schemas import RegisterRequest, LoginRequest, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    @staticmethod
    def register(db: Session, data: RegisterRequest) -> dict:
        if db.query(User).filter_by(username=data.username).first() is not None:
            raise ConflictError("User", "username", data.username)
        user = User(
            username=data.username,
            hashed_password=hash_password(data.password),
            display_name=data.display_name or data.username,
            timezone=data.timezone,
        )
        try:
            db.add(user)
            db.commit()
            db.refresh(user)
        except IntegrityError:
            db.rollback()
            raise ConflictError("User", "username", data.username)
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("register_user", e) from e

        logger.info(f"Registered user {user.id} ({user.username})")
        return {"token": create_token({"user_id": user.id, "username": user.username}), "user": user}

    @staticmethod
    def authenticate(db: Session, data: LoginRequest) -> dict:
        user = db.query(User).filter(User.username == data.username, User.deleted_at.is_(None)).first()
        if user is None or not verify_password(data.password, user.hashed_password):
            logger.info(f"Failed login for '{data.username}'")
            raise AuthenticationError()
        return {"token": create_token({"user_id": user.id, "username": user.username}), "user": user}

    @staticmethod
    def get(db: Session, user_id: str) -> User:
        user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    @staticmethod
    def update(db: Session, user_id: str, data: UserUpdate) -> User:
        user = UserService.get(db, user_id)
        try:
            for k, v in data.model_dump(exclude_unset=True).items():
                setattr(user, k, v)
            db.commit()
            db.refresh(user)
            return user
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("update_user", e) from e

    @staticmethod
    def delete(db: Session, user_id: str) -> None:
        user = UserService.get(db, user_id)
        try:
            user.deleted_at = datetime.now(timezone.utc)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("delete_user", e) from e
        logger.info(f"Deleted account {user_id}")
