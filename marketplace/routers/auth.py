# marketplace/routers/auth.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from marketplace.core.config import Settings, get_app_settings
from marketplace.core.security import TokenIssuer, get_token_issuer
from marketplace.database import get_db
from marketplace.schemas.token import LoginRequest, Token
from marketplace.schemas.user import UserRead
from marketplace.services.user_service import authenticate_user

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=Token)
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_app_settings),
):
    # unknown email and wrong password fail the same way
    result = authenticate_user(
        db,
        credentials.email,
        credentials.password,
        tokens=tokens,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )
    return Token(token=result.token, user=UserRead.model_validate(result.user))


@router.post("/logout")
def logout():
    # tokens are stateless; the client discards its copy
    return {"message": "Logged out"}
