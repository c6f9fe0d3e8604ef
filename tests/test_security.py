"""Tests for password hashing and session tokens."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from marketplace.core.errors import InvalidInputError, UnauthorizedError
from marketplace.core.security import TokenIssuer, hash_password, verify_password


def test_hash_then_verify() -> None:
    hashed = hash_password("Secret123", rounds=4)

    assert hashed != "Secret123"
    assert verify_password("Secret123", hashed)


def test_verify_rejects_other_passwords() -> None:
    hashed = hash_password("Secret123", rounds=4)

    assert not verify_password("secret123", hashed)
    assert not verify_password("", hashed)
    assert not verify_password("Secret1234", hashed)


def test_hashes_are_salted() -> None:
    assert hash_password("Secret123", rounds=4) != hash_password("Secret123", rounds=4)


def test_overlong_password_is_rejected() -> None:
    with pytest.raises(InvalidInputError) as exc_info:
        hash_password("x" * 73, rounds=4)

    assert "password" in exc_info.value.field_errors


def test_verify_with_unknown_hash_format_is_false() -> None:
    assert not verify_password("Secret123", "not-a-bcrypt-hash")


def test_token_round_trip(tokens: TokenIssuer) -> None:
    token = tokens.issue(42)

    assert tokens.verify(token) == 42


def test_expired_token_is_rejected(tokens: TokenIssuer) -> None:
    issued_long_ago = datetime.now(timezone.utc) - tokens.ttl - timedelta(minutes=1)
    token = tokens.issue(42, now=issued_long_ago)

    with pytest.raises(UnauthorizedError):
        tokens.verify(token)


def test_short_ttl_expires() -> None:
    issuer = TokenIssuer("secret", ttl=timedelta(seconds=-1))

    with pytest.raises(UnauthorizedError):
        issuer.verify(issuer.issue(1))


def test_token_from_another_secret_is_rejected(tokens: TokenIssuer) -> None:
    forged = TokenIssuer("other-secret").issue(42)

    with pytest.raises(UnauthorizedError):
        tokens.verify(forged)


def test_tampered_token_is_rejected(tokens: TokenIssuer) -> None:
    header, payload, signature = tokens.issue(42).split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    with pytest.raises(UnauthorizedError):
        tokens.verify(tampered)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_is_rejected(tokens: TokenIssuer, token: str) -> None:
    with pytest.raises(UnauthorizedError):
        tokens.verify(token)


def test_non_numeric_subject_is_rejected(tokens: TokenIssuer) -> None:
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "abc", "iat": now, "exp": now + timedelta(minutes=5)},
        "test-secret",
        algorithm="HS256",
    )

    with pytest.raises(UnauthorizedError):
        tokens.verify(token)


def test_all_token_failures_share_one_message(tokens: TokenIssuer) -> None:
    expired = tokens.issue(1, now=datetime.now(timezone.utc) - timedelta(days=30))
    forged = TokenIssuer("other-secret").issue(1)
    messages = set()
    for token in (expired, forged, "garbage"):
        with pytest.raises(UnauthorizedError) as exc_info:
            tokens.verify(token)
        messages.add(exc_info.value.message)

    assert len(messages) == 1


def test_empty_secret_is_refused() -> None:
    with pytest.raises(ValueError):
        TokenIssuer("")


def test_unencodable_password_never_verifies() -> None:
    hashed = hash_password("Secret123", rounds=4)

    assert not verify_password("\ud800abc", hashed)


def test_unencodable_password_is_invalid_input() -> None:
    with pytest.raises(InvalidInputError) as exc_info:
        hash_password("\ud800abc", rounds=4)

    assert "password" in exc_info.value.field_errors
