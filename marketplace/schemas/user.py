# marketplace/schemas/user.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserRead(CamelModel):
    id: int
    full_name: str
    nickname: str
    email: str
    photo_path: Optional[str] = None
    created_at: datetime


class UserEnvelope(CamelModel):
    user: UserRead


class UserIdResponse(CamelModel):
    user_id: int


class RegistrationResponse(CamelModel):
    user_id: int
    token: str
