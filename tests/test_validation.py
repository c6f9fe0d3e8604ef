"""Tests for the field registry and the validation compiler."""

import pytest

from marketplace.forms.fields import (
    EmailFormat,
    EqualsField,
    FieldDescriptor,
    InputKind,
    MaxLength,
    MinLength,
    Required,
    USER_FORM_FIELDS,
    USER_UPDATE_FIELDS,
)
from marketplace.forms.validation import compile_validator, describe_fields

validate = compile_validator(USER_FORM_FIELDS)

VALID = {
    "fullName": "Ana Silva",
    "nickname": "ana",
    "email": "ana@example.com",
    "password": "Secret123",
    "password2": "Secret123",
}


def test_valid_submission_has_no_errors() -> None:
    assert validate(VALID) == {}


@pytest.mark.parametrize(
    "name",
    [f.name for f in USER_FORM_FIELDS if f.required],
)
@pytest.mark.parametrize("empty", ["", "   ", None])
def test_empty_required_field_only_flags_that_field(name, empty) -> None:
    values = dict(VALID, **{name: empty})

    errors = validate(values)

    assert list(errors) == [name]
    assert errors[name]


@pytest.mark.parametrize(
    "others",
    [
        {},
        {"fullName": "", "email": "broken"},
        {"nickname": "x" * 80},
    ],
)
def test_password_mismatch_always_flags_confirmation(others) -> None:
    values = dict(VALID, **others)
    values.update(password="a", password2="b")

    errors = validate(values)

    assert errors["password2"] == "Passwords do not match"


def test_missing_reference_field_is_a_mismatch() -> None:
    confirm = FieldDescriptor(
        name="password2",
        input_kind=InputKind.PASSWORD,
        label="Confirm",
        required=True,
        cross_field_equals="password",
    )
    validator = compile_validator([confirm])

    assert validator({"password2": "Secret123"}) == {"password2": "fields do not match"}


def test_first_failing_rule_wins() -> None:
    errors = validate(dict(VALID, email=""))

    assert errors == {"email": "Email is required"}


def test_invalid_email() -> None:
    assert validate(dict(VALID, email="ana.example.com")) == {"email": "Invalid email"}


def test_email_with_trailing_newline_is_invalid() -> None:
    assert validate(dict(VALID, email="ana@example.com\n")) == {"email": "Invalid email"}


def test_length_bounds() -> None:
    errors = validate(dict(VALID, fullName="Al", nickname="n" * 51))

    assert errors["fullName"] == "Full name must be between 3 and 100 characters"
    assert errors["nickname"] == "Nickname must be between 3 and 50 characters"


def test_default_messages_without_overrides() -> None:
    email = FieldDescriptor(name="email", input_kind=InputKind.EMAIL, label="Email", required=True)
    name = FieldDescriptor(name="name", input_kind=InputKind.TEXT, label="Name", max_length=2)
    validator = compile_validator([email, name])

    assert validator({"email": "nope", "name": "abc"}) == {
        "email": "invalid email",
        "name": "Name must be at most 2 characters",
    }


def test_optional_blank_fields_are_skipped() -> None:
    validator = compile_validator(USER_UPDATE_FIELDS)

    assert validator({}) == {}
    assert validator({"fullName": "", "nickname": "ok nick"}) == {}
    assert validator({"nickname": "no"}) == {"nickname": "Nickname must be between 3 and 50 characters"}


def test_validator_is_reusable() -> None:
    bad = dict(VALID, email="bad")

    assert validate(bad) == validate(bad)
    assert validate(VALID) == {}


def test_duplicate_field_names_are_rejected() -> None:
    field = FieldDescriptor(name="a", input_kind=InputKind.TEXT, label="A")

    with pytest.raises(ValueError):
        compile_validator([field, field])


def test_rules_are_derived_in_order() -> None:
    descriptor = FieldDescriptor(
        name="x",
        input_kind=InputKind.EMAIL,
        label="X",
        required=True,
        min_length=1,
        max_length=9,
        cross_field_equals="y",
    )

    assert descriptor.rules() == (
        Required(),
        EmailFormat(),
        MinLength(1),
        MaxLength(9),
        EqualsField("y"),
    )


def test_file_fields_have_no_text_rules() -> None:
    photo = next(f for f in USER_FORM_FIELDS if f.name == "photo")

    assert photo.rules() == ()


def test_describe_fields() -> None:
    described = {d["name"]: d for d in describe_fields(USER_FORM_FIELDS)}

    assert described["password2"]["equals"] == "password"
    assert described["password2"]["rules"] == ["required", "equals"]
    assert described["email"]["type"] == "email"
    assert described["fullName"]["maxLength"] == 100
    assert described["photo"]["required"] is False
