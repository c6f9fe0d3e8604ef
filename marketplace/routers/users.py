from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status
from sqlmodel import Session

from marketplace.core.config import Settings, get_app_settings
from marketplace.core.security import TokenIssuer, get_current_user, get_token_issuer
from marketplace.database import get_db
from marketplace.models.user import User
from marketplace.schemas.user import (
    RegistrationResponse,
    UserEnvelope,
    UserIdResponse,
    UserRead,
)
from marketplace.services.upload_service import PhotoIntake, get_photo_intake
from marketplace.services.user_service import get_user, register_user, update_profile

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post(
    "",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_user(
    full_name: Optional[str] = Form(None, alias="fullName"),
    nickname: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    password2: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    photos: PhotoIntake = Depends(get_photo_intake),
    tokens: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_app_settings),
):
    """
    Register a new user from a multipart form.
    - Validates the fields against the registration form
    - Stores the optional photo
    - Hashes the password and returns the new id with a session token
    """
    values = {
        "fullName": full_name,
        "nickname": nickname,
        "email": email,
        "password": password,
        "password2": password2,
    }
    result = register_user(
        db,
        values,
        photo,
        photos=photos,
        tokens=tokens,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )
    return RegistrationResponse(user_id=result.user.id, token=result.token)


@router.get(
    "/me",
    response_model=UserEnvelope,
    status_code=status.HTTP_200_OK,
)
def read_current_user(current_user: User = Depends(get_current_user)):
    return UserEnvelope(user=UserRead.model_validate(current_user))


@router.get(
    "/{user_id}",
    response_model=UserEnvelope,
    status_code=status.HTTP_200_OK,
)
def read_user(
    user_id: int = Path(..., description="The ID of the user to fetch"),
    db: Session = Depends(get_db),
):
    """
    Fetch a user's public profile by ID.
    Raises 404 if not found.
    """
    return UserEnvelope(user=UserRead.model_validate(get_user(db, user_id)))


@router.put(
    "/{user_id}",
    response_model=UserIdResponse,
    status_code=status.HTTP_200_OK,
)
def update_user(
    user_id: int = Path(..., description="The ID of the user to update"),
    full_name: Optional[str] = Form(None, alias="fullName"),
    nickname: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    photos: PhotoIntake = Depends(get_photo_intake),
):
    """
    Update the authenticated user's own profile (name, nickname, photo).
    """
    user = update_profile(
        db,
        current_user,
        user_id,
        {"fullName": full_name, "nickname": nickname},
        photo,
        photos=photos,
    )
    return UserIdResponse(user_id=user.id)
