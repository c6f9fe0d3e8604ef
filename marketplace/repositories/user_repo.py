import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from marketplace.core.errors import ConflictError, NotFoundError
from marketplace.models.user import User, UserCreate, UserUpdate

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    stmt = select(User).where(User.email == normalize_email(email))
    return db.exec(stmt).first()


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def create_user(db: Session, user: UserCreate) -> int:
    """
    Insert a user and return its id.

    Uniqueness is left to the database's constraint on ``email`` so that two
    concurrent registrations cannot both succeed.
    """
    db_user = User(
        full_name=user.full_name,
        nickname=user.nickname,
        email=normalize_email(user.email),
        password_hash=user.password_hash,
        photo_path=user.photo_path,
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Registration refused: email already registered")
        raise ConflictError() from None
    db.refresh(db_user)
    return db_user.id


def update_user(db: Session, user_id: int, patch: UserUpdate) -> User:
    db_user = db.get(User, user_id)
    if db_user is None:
        raise NotFoundError()
    for key, value in patch.model_dump(exclude_none=True).items():
        setattr(db_user, key, value)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user
