"""HTTPX client for the marketplace identity API."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import httpx

from marketplace.core.errors import ValidationFailed
from marketplace.forms.fields import (
    InputKind,
    LOGIN_FIELDS,
    USER_FORM_FIELDS,
    USER_UPDATE_FIELDS,
)
from marketplace.forms.validation import Validator, compile_validator


class ApiError(Exception):
    """Non-2xx answer from the API."""

    def __init__(self, status_code: int, error: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(f"{status_code}: {error}")
        self.status_code = status_code
        self.error = error
        self.field_errors = field_errors or {}


@dataclass(frozen=True)
class PhotoFile:
    filename: str
    content: bytes
    content_type: str


@dataclass
class MarketplaceClient:
    """
    Client side of the form pipeline.

    Submissions are checked with the same field registry the server uses
    before anything is sent; a failing check raises ValidationFailed locally.
    """

    http_client: httpx.Client
    token: Optional[str] = None

    @classmethod
    def create(cls, base_url: str, timeout: float = 15) -> "MarketplaceClient":
        return cls(http_client=httpx.Client(base_url=base_url, timeout=timeout))

    def register(self, values: Mapping[str, str], photo: Optional[PhotoFile] = None) -> Dict[str, Any]:
        """Register and keep the returned session token."""
        data = self._form_data(_registration, values)
        response = self.http_client.post("/api/users", data=data, files=_files(photo))
        body = self._json(response)
        self.token = body["token"]
        return body

    def login(self, email: str, password: str) -> Dict[str, Any]:
        self._check(_login, {"email": email, "password": password})
        response = self.http_client.post(
            "/api/auth/login", json={"email": email, "password": password}
        )
        body = self._json(response)
        self.token = body["token"]
        return body

    def logout(self) -> None:
        self.http_client.post("/api/auth/logout")
        self.token = None

    def me(self) -> Dict[str, Any]:
        response = self.http_client.get("/api/users/me", headers=self._auth_headers())
        return self._json(response)["user"]

    def update_profile(
        self,
        user_id: int,
        values: Mapping[str, str],
        photo: Optional[PhotoFile] = None,
    ) -> Dict[str, Any]:
        data = self._form_data(_update, values)
        response = self.http_client.put(
            f"/api/users/{user_id}",
            data=data,
            files=_files(photo),
            headers=self._auth_headers(),
        )
        return self._json(response)

    def close(self) -> None:
        self.http_client.close()

    def _form_data(self, validator: Validator, values: Mapping[str, str]) -> Dict[str, str]:
        self._check(validator, values)
        return {
            f.name: values[f.name]
            for f in validator.fields
            if f.input_kind is not InputKind.FILE and values.get(f.name) is not None
        }

    @staticmethod
    def _check(validator: Validator, values: Mapping[str, Optional[str]]) -> None:
        errors = validator(values)
        if errors:
            raise ValidationFailed(field_errors=errors)

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.is_error:
            raise ApiError(
                response.status_code,
                body.get("error", response.reason_phrase),
                body.get("fieldErrors"),
            )
        return body


def _files(photo: Optional[PhotoFile]):
    if photo is None:
        return None
    return {"photo": (photo.filename, photo.content, photo.content_type)}


_registration = compile_validator(USER_FORM_FIELDS)
_update = compile_validator(USER_UPDATE_FIELDS)
_login = compile_validator(LOGIN_FIELDS)
