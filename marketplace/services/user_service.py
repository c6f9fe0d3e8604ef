import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from fastapi import UploadFile
from sqlmodel import Session

from marketplace.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailed,
)
from marketplace.core.security import (
    TokenIssuer,
    burn_verification,
    check_password_length,
    hash_password,
    verify_password,
)
from marketplace.forms.fields import LOGIN_FIELDS, USER_FORM_FIELDS, USER_UPDATE_FIELDS
from marketplace.forms.validation import compile_validator
from marketplace.models.user import User, UserCreate, UserUpdate
from marketplace.repositories.user_repo import (
    create_user as repo_create_user,
    get_user as repo_get_user,
    get_user_by_email,
    update_user as repo_update_user,
)
from marketplace.services.upload_service import PhotoIntake

logger = logging.getLogger(__name__)

# compiled once, shared read-only by every request
validate_registration = compile_validator(USER_FORM_FIELDS)
validate_update = compile_validator(USER_UPDATE_FIELDS)
validate_login = compile_validator(LOGIN_FIELDS)

INVALID_CREDENTIALS = "Invalid credentials"


@dataclass(frozen=True)
class AuthResult:
    user: User
    token: str


def _validated(validator, values: Mapping[str, Optional[str]]) -> None:
    errors = validator(values)
    if errors:
        raise ValidationFailed(field_errors=errors)


def register_user(
    db: Session,
    values: Mapping[str, Optional[str]],
    photo: Optional[UploadFile],
    *,
    photos: PhotoIntake,
    tokens: TokenIssuer,
    bcrypt_rounds: int = 12,
) -> AuthResult:
    """
    Register a new user:
    validate -> store photo -> hash password -> insert -> issue token.

    Nothing is written when validation or the photo checks fail.
    """
    _validated(validate_registration, values)
    check_password_length(values["password"])

    photo_path = photos.store(photo)
    password_hash = hash_password(values["password"], bcrypt_rounds)

    candidate = UserCreate(
        full_name=values["fullName"].strip(),
        nickname=values["nickname"].strip(),
        email=values["email"],
        password_hash=password_hash,
        photo_path=photo_path,
    )
    try:
        user_id = repo_create_user(db, candidate)
    except ConflictError:
        if photo_path:
            # accepted gap: the stored photo is not removed
            logger.warning("Orphaned upload left at %s after refused registration", photo_path)
        raise

    user = repo_get_user(db, user_id)
    logger.info("Registered user %s", user_id)
    return AuthResult(user=user, token=tokens.issue(user_id))


def authenticate_user(
    db: Session,
    email: Optional[str],
    password: Optional[str],
    *,
    tokens: TokenIssuer,
    bcrypt_rounds: int = 12,
) -> AuthResult:
    _validated(validate_login, {"email": email, "password": password})

    user = get_user_by_email(db, email)
    if user is None:
        burn_verification(password, bcrypt_rounds)
        logger.info("Login failed")
        raise UnauthorizedError(INVALID_CREDENTIALS)
    if not verify_password(password, user.password_hash):
        logger.info("Login failed")
        raise UnauthorizedError(INVALID_CREDENTIALS)

    logger.info("User %s logged in", user.id)
    return AuthResult(user=user, token=tokens.issue(user.id))


def get_user(db: Session, user_id: int) -> User:
    user = repo_get_user(db, user_id)
    if not user:
        raise NotFoundError()
    return user


def update_profile(
    db: Session,
    current_user: User,
    user_id: int,
    values: Mapping[str, Optional[str]],
    photo: Optional[UploadFile],
    *,
    photos: PhotoIntake,
) -> User:
    """Owner-only update of name, nickname and photo."""
    if repo_get_user(db, user_id) is None:
        raise NotFoundError()
    if current_user.id != user_id:
        logger.warning("User %s attempted to update user %s", current_user.id, user_id)
        raise ForbiddenError()

    _validated(validate_update, values)

    patch = UserUpdate(
        full_name=(values.get("fullName") or "").strip() or None,
        nickname=(values.get("nickname") or "").strip() or None,
        photo_path=photos.store(photo),
    )
    user = repo_update_user(db, user_id, patch)
    logger.info("Updated user %s", user_id)
    return user
