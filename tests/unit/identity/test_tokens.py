"""
Name: Session token and password hashing tests

Responsibilities:
  - Argon2 hash / verify round trip and mismatch handling
  - JWT claims (sub, sid, typ) and rejection of foreign / expired tokens
  - Token extraction from the Authorization header
"""

from dataclasses import replace

import jwt
import pytest

from contact_directory.identity.tokens import (
    JWT_ALGORITHM,
    decode_session_token,
    extract_bearer_token,
    hash_password,
    issue_session_token,
    verify_password,
)

pytestmark = pytest.mark.unit


def test_password_hash_verifies():
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_verify_against_garbage_hash_is_false():
    assert verify_password("anything", "not-an-argon2-hash") is False


def test_issue_and_decode_round_trip(token_settings):
    token, claims, expires_in = issue_session_token("uid-1", "a@example.com", token_settings)

    decoded = decode_session_token(token, token_settings)

    assert decoded == claims
    assert decoded.uid == "uid-1"
    assert expires_in == token_settings.ttl_minutes * 60


def test_each_token_has_its_own_session_id(token_settings):
    _, first, _ = issue_session_token("uid-1", "a@example.com", token_settings)
    _, second, _ = issue_session_token("uid-1", "a@example.com", token_settings)
    assert first.sid != second.sid


def test_token_signed_with_another_secret_is_rejected(token_settings):
    token, _, _ = issue_session_token("uid-1", "a@example.com", token_settings)
    other = replace(token_settings, secret="another-secret-another-secret-123")
    assert decode_session_token(token, other) is None


def test_expired_token_is_rejected(token_settings):
    expired = replace(token_settings, ttl_minutes=-1)
    token, _, _ = issue_session_token("uid-1", "a@example.com", expired)
    assert decode_session_token(token, token_settings) is None


def test_token_of_other_type_is_rejected(token_settings):
    token = jwt.encode(
        {"sub": "uid-1", "sid": "s", "exp": 4102444800, "typ": "access"},
        token_settings.secret,
        algorithm=JWT_ALGORITHM,
    )
    assert decode_session_token(token, token_settings) is None


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Bearer abc.def", "abc.def"),
        ("bearer   xyz ", "xyz"),
        ("Basic abc", None),
        ("Bearer", None),
        (None, None),
    ],
)
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected
