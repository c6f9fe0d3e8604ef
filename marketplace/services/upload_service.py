# marketplace/services/upload_service.py
import io
import logging
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Optional
from uuid import uuid4

from fastapi import Request, UploadFile
from PIL import Image, UnidentifiedImageError

from marketplace.core.config import Settings
from marketplace.core.errors import InternalError, InvalidAttachmentError

logger = logging.getLogger(__name__)

# Pillow format name -> (content type, stored extension)
IMAGE_FORMATS = {
    "JPEG": ("image/jpeg", ".jpg"),
    "PNG":  ("image/png", ".png"),
    "GIF":  ("image/gif", ".gif"),
    "WEBP": ("image/webp", ".webp"),
}


@dataclass(frozen=True)
class UploadedAsset:
    original_name: str
    stored_path: str
    content_type: str
    size: int


@dataclass(frozen=True)
class PhotoIntake:
    """Accepts the single ``photo`` attachment of a form and stores it."""

    upload_dir: Path
    max_bytes: int
    allowed_types: FrozenSet[str]

    @classmethod
    def from_settings(cls, settings: Settings) -> "PhotoIntake":
        return cls(
            upload_dir=Path(settings.UPLOAD_DIR),
            max_bytes=settings.MAX_PHOTO_BYTES,
            allowed_types=frozenset(settings.ALLOWED_PHOTO_TYPES),
        )

    def accept(self, upload: Optional[UploadFile]) -> Optional[UploadedAsset]:
        """
        Validate and store ``upload``; return None when no photo was sent.

        All checks run before anything is written, so a rejected upload
        leaves no file behind.
        """
        if upload is None or not upload.filename:
            return None

        if upload.content_type not in self.allowed_types:
            raise InvalidAttachmentError("Photo must be an image (JPEG, PNG, GIF or WebP)")

        contents = upload.file.read(self.max_bytes + 1)
        if len(contents) > self.max_bytes:
            raise InvalidAttachmentError(f"Photo must be at most {self.max_bytes} bytes")
        if not contents:
            raise InvalidAttachmentError("Photo is empty")

        detected_type, extension = self._sniff(contents)
        if detected_type not in self.allowed_types:
            raise InvalidAttachmentError("Photo must be an image (JPEG, PNG, GIF or WebP)")

        # never reuse the client's filename
        target = self.upload_dir / f"{uuid4().hex}{extension}"
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            target.write_bytes(contents)
        except OSError as exc:
            logger.exception("Could not store uploaded photo at %s", target)
            raise InternalError("Could not store photo") from exc

        logger.info("Stored photo %r as %s (%d bytes)", upload.filename, target, len(contents))
        return UploadedAsset(
            original_name=upload.filename,
            stored_path=str(target),
            content_type=detected_type,
            size=len(contents),
        )

    def store(self, upload: Optional[UploadFile]) -> Optional[str]:
        asset = self.accept(upload)
        return asset.stored_path if asset else None

    @staticmethod
    def _sniff(contents: bytes):
        try:
            with warnings.catch_warnings():
                # oversized pixel counts are refused, not just warned about
                warnings.simplefilter("error", Image.DecompressionBombWarning)
                with Image.open(io.BytesIO(contents)) as image:
                    image.verify()
                    fmt = image.format
        except (Image.DecompressionBombError, Image.DecompressionBombWarning):
            raise InvalidAttachmentError("Photo dimensions are too large") from None
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
            raise InvalidAttachmentError("Photo is not a valid image") from None
        if fmt not in IMAGE_FORMATS:
            raise InvalidAttachmentError("Photo must be an image (JPEG, PNG, GIF or WebP)")
        return IMAGE_FORMATS[fmt]


def get_photo_intake(request: Request) -> PhotoIntake:
    return request.app.state.photos
