# marketplace/forms/fields.py
"""
Field registry: one static description per form field.

The same descriptors drive server-side validation
(``marketplace.forms.validation``) and are published to clients through
``GET /api/forms/{form_name}`` so both sides check the same rules.
"""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union


class InputKind(str, Enum):
    TEXT     = "text"
    EMAIL    = "email"
    PASSWORD = "password"
    FILE     = "file"


# ─── Rule variants ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Required:
    name = "required"


@dataclass(frozen=True)
class EmailFormat:
    name = "email"


@dataclass(frozen=True)
class MinLength:
    limit: int
    name = "min_length"


@dataclass(frozen=True)
class MaxLength:
    limit: int
    name = "max_length"


@dataclass(frozen=True)
class EqualsField:
    other: str
    name = "equals"


Rule = Union[Required, EmailFormat, MinLength, MaxLength, EqualsField]


# ─── Descriptors ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    input_kind: InputKind
    label: str
    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    cross_field_equals: Optional[str] = None
    placeholder: Optional[str] = None
    error_messages: Mapping[str, str] = field(default_factory=dict)

    def rules(self) -> Tuple[Rule, ...]:
        """Rules in evaluation order; the first failing one wins."""
        if self.input_kind is InputKind.FILE:
            return ()
        rules = []
        if self.required:
            rules.append(Required())
        if self.input_kind is InputKind.EMAIL:
            rules.append(EmailFormat())
        if self.min_length is not None:
            rules.append(MinLength(self.min_length))
        if self.max_length is not None:
            rules.append(MaxLength(self.max_length))
        if self.cross_field_equals is not None:
            rules.append(EqualsField(self.cross_field_equals))
        return tuple(rules)

    def optional(self) -> "FieldDescriptor":
        """Same field with ``required`` switched off (used by update forms)."""
        return FieldDescriptor(
            name=self.name,
            input_kind=self.input_kind,
            label=self.label,
            required=False,
            min_length=self.min_length,
            max_length=self.max_length,
            cross_field_equals=self.cross_field_equals,
            placeholder=self.placeholder,
            error_messages=self.error_messages,
        )


def _length_error(label: str, min_length: Optional[int], max_length: Optional[int]) -> str:
    if min_length and max_length:
        return f"{label} must be between {min_length} and {max_length} characters"
    if min_length:
        return f"{label} must be at least {min_length} characters"
    return f"{label} must be at most {max_length} characters"


def _text_field(
    name: str,
    kind: InputKind,
    label: str,
    *,
    required: bool = True,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
    cross_field_equals: Optional[str] = None,
    **messages: str,
) -> FieldDescriptor:
    error_messages: Dict[str, str] = {"requiredError": f"{label} is required"}
    if min_length or max_length:
        error_messages["lengthError"] = _length_error(label, min_length, max_length)
    error_messages.update(messages)
    return FieldDescriptor(
        name=name,
        input_kind=kind,
        label=label,
        required=required,
        min_length=min_length,
        max_length=max_length,
        cross_field_equals=cross_field_equals,
        placeholder=label,
        error_messages=MappingProxyType(error_messages),
    )


FULL_NAME = _text_field("fullName", InputKind.TEXT, "Full name", min_length=3, max_length=100)
NICKNAME = _text_field("nickname", InputKind.TEXT, "Nickname", min_length=3, max_length=50)
EMAIL = _text_field("email", InputKind.EMAIL, "Email", max_length=254, emailError="Invalid email")
PASSWORD = _text_field("password", InputKind.PASSWORD, "Password", min_length=3, max_length=100)
PASSWORD_CONFIRMATION = _text_field(
    "password2",
    InputKind.PASSWORD,
    "Confirm password",
    cross_field_equals="password",
    passwordError="Passwords do not match",
)
PHOTO = FieldDescriptor(name="photo", input_kind=InputKind.FILE, label="Photo")

USER_FORM_FIELDS: Tuple[FieldDescriptor, ...] = (
    FULL_NAME,
    NICKNAME,
    EMAIL,
    PASSWORD,
    PASSWORD_CONFIRMATION,
    PHOTO,
)

USER_UPDATE_FIELDS: Tuple[FieldDescriptor, ...] = (
    FULL_NAME.optional(),
    NICKNAME.optional(),
    PHOTO,
)

LOGIN_FIELDS: Tuple[FieldDescriptor, ...] = (
    # presence only: a malformed address fails like any unknown one
    _text_field("email", InputKind.TEXT, "Email"),
    _text_field("password", InputKind.PASSWORD, "Password"),
)

FORMS: Dict[str, Tuple[FieldDescriptor, ...]] = {
    "users": USER_FORM_FIELDS,
    "users-update": USER_UPDATE_FIELDS,
    "login": LOGIN_FIELDS,
}
