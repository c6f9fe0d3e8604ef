# marketplace/core/security.py
import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from marketplace.core.config import Settings
from marketplace.core.errors import InvalidInputError, UnauthorizedError
from marketplace.database import get_db
from marketplace.models.user import User
from marketplace.repositories.user_repo import get_user

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes; anything longer is refused
MAX_PASSWORD_BYTES = 72

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# ─── Credentials ──────────────────────────────────────────────────────────────

def _encode_password(password: str) -> bytes:
    try:
        return password.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidInputError(
            "Invalid password",
            field_errors={"password": "Password contains invalid characters"},
        ) from None


def check_password_length(password: str) -> None:
    if len(_encode_password(password)) > MAX_PASSWORD_BYTES:
        raise InvalidInputError(
            "Password too long",
            field_errors={"password": f"Password must be at most {MAX_PASSWORD_BYTES} bytes"},
        )


def hash_password(password: str, rounds: int = 12) -> str:
    check_password_length(password)
    return bcrypt.hashpw(_encode_password(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        encoded = password.encode("utf-8")
    except UnicodeEncodeError:
        return False
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        # unparseable stored hash
        logger.warning("Stored password hash has an unknown format")
        return False


@lru_cache
def _dummy_hash(rounds: int) -> str:
    return hash_password("dummy-password", rounds)


def burn_verification(password: str, rounds: int = 12) -> None:
    """Spend the same bcrypt work as a real check when there is no user."""
    verify_password(password, _dummy_hash(rounds))


# ─── Session tokens ───────────────────────────────────────────────────────────

class TokenIssuer:
    """Signs and verifies stateless bearer tokens (HS256 JWT by default)."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", ttl: timedelta = timedelta(days=7)):
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret_key=settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
            ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )

    def issue(self, user_id: int, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        """Return the user id bound to ``token`` or raise UnauthorizedError."""
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
            return int(claims["sub"])
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            logger.debug("Token rejected: %s", type(exc).__name__)
            raise UnauthorizedError() from None


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.tokens


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    tokens: TokenIssuer = Depends(get_token_issuer),
    db: Session = Depends(get_db),
) -> User:
    """Guard for protected routes: resolves the bearer token to a User."""
    if not token:
        raise UnauthorizedError()
    user_id = tokens.verify(token)
    user = get_user(db, user_id)
    if user is None:
        raise UnauthorizedError()
    return user
