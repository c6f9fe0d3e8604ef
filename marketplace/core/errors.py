# marketplace/core/errors.py
"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``marketplace.main`` turns them into JSON responses.
Messages for Conflict and Unauthorized are deliberately generic.
"""
from enum import Enum
from typing import Dict, Optional

from fastapi import status


class ErrorKind(str, Enum):
    INVALID_INPUT      = "InvalidInput"
    INVALID_ATTACHMENT = "InvalidAttachment"
    CONFLICT           = "Conflict"
    UNAUTHORIZED       = "Unauthorized"
    FORBIDDEN          = "Forbidden"
    NOT_FOUND          = "NotFound"
    INTERNAL           = "Internal"


class AppError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(AppError):
    kind = ErrorKind.INVALID_INPUT
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"

    def __init__(
        self,
        message: Optional[str] = None,
        field_errors: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.field_errors = dict(field_errors or {})


class ValidationFailed(InvalidInputError):
    """Submission rejected by the field validator; carries per-field errors."""

    default_message = "Validation failed"


class InvalidAttachmentError(AppError):
    kind = ErrorKind.INVALID_ATTACHMENT
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid attachment"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    status_code = status.HTTP_409_CONFLICT
    default_message = "Account already exists"


class UnauthorizedError(AppError):
    kind = ErrorKind.UNAUTHORIZED
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class ForbiddenError(AppError):
    kind = ErrorKind.FORBIDDEN
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found"


class InternalError(AppError):
    pass
