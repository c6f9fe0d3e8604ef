# marketplace/core/config.py
from functools import lru_cache
from typing import List

from fastapi import Request
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # required: signs every session token
    SECRET_KEY: str
    DATABASE_URL: str = "sqlite:///./marketplace.db"
    SQL_ECHO: bool = False

    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 1 week

    # bcrypt work factor
    BCRYPT_ROUNDS: int = 12

    UPLOAD_DIR: str = "./uploads"
    MAX_PHOTO_BYTES: int = 5 * 1024 * 1024
    ALLOWED_PHOTO_TYPES: List[str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    ]

    CORS_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    # load from project-root .env, ignore everything else in it,
    # and never change after startup
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was built with."""
    return request.app.state.settings
