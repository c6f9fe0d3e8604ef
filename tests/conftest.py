import io
import struct
import zlib
from typing import Dict, Iterator

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlmodel import Session

from marketplace.core.config import Settings
from marketplace.core.security import TokenIssuer
from marketplace.database import create_db_engine, init_db
from marketplace.main import create_app
from marketplace.services.upload_service import PhotoIntake


def image_bytes(fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), "red").save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        SECRET_KEY="test-secret",
        DATABASE_URL="sqlite://",
        BCRYPT_ROUNDS=4,
        UPLOAD_DIR=str(tmp_path / "uploads"),
        MAX_PHOTO_BYTES=64 * 1024,
    )


@pytest.fixture
def db() -> Iterator[Session]:
    engine = create_db_engine("sqlite://")
    init_db(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def tokens(settings: Settings) -> TokenIssuer:
    return TokenIssuer.from_settings(settings)


@pytest.fixture
def photos(settings: Settings) -> PhotoIntake:
    return PhotoIntake.from_settings(settings)


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def registration() -> Dict[str, str]:
    return {
        "fullName": "Ana Silva",
        "nickname": "ana",
        "email": "ana@example.com",
        "password": "Secret123",
        "password2": "Secret123",
    }


@pytest.fixture
def png_bytes() -> bytes:
    return image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return image_bytes("JPEG")


def png_header_only(width: int, height: int) -> bytes:
    """PNG signature plus an IHDR chunk claiming the given size, no pixel data."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    chunk = b"IHDR" + ihdr
    return (
        b"\x89PNG\r\n\x1a\n"
        + struct.pack(">I", len(ihdr))
        + chunk
        + struct.pack(">I", zlib.crc32(chunk) & 0xFFFFFFFF)
    )


@pytest.fixture
def huge_png_bytes() -> bytes:
    return png_header_only(20000, 20000)
