# marketplace/schemas/token.py
from typing import Optional

from pydantic import BaseModel

from marketplace.schemas.user import CamelModel, UserRead


class LoginRequest(BaseModel):
    # left optional so missing fields go through the login form validator
    email: Optional[str] = None
    password: Optional[str] = None


class Token(CamelModel):
    token: str
    token_type: str = "bearer"
    user: UserRead
