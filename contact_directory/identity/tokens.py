"""
Name: Session tokens and password hashing

Responsibilities:
  - Argon2 password hashing / verification
  - Issue and decode signed session tokens (JWT, HS256) carrying a session id
  - Pull the ambient token from `Authorization: Bearer` or the session cookie

Collaborators:
  - infrastructure/services/identity_provider.py
  - api/dependencies.py, api/auth_routes.py

Constraints:
  - decode_session_token never raises; an unusable token is simply None
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from fastapi import Request

from ..crosscutting.config import get_settings

JWT_ALGORITHM = "HS256"
TOKEN_TYPE_SESSION = "session"

CLAIM_SUB = "sub"
CLAIM_EMAIL = "email"
CLAIM_SID = "sid"
CLAIM_IAT = "iat"
CLAIM_EXP = "exp"
CLAIM_TYP = "typ"
CLAIM_IAT_MS = "iat_ms"

_password_hasher = PasswordHasher()


@dataclass(frozen=True, slots=True)
class TokenSettings:
    secret: str
    ttl_minutes: int
    cookie_name: str
    cookie_secure: bool


@dataclass(frozen=True, slots=True)
class SessionClaims:
    uid: str
    email: str
    sid: str
    issued_ms: int = 0
    expires_at: datetime | None = None


def get_token_settings() -> TokenSettings:
    s = get_settings()
    return TokenSettings(
        secret=s.jwt_secret,
        ttl_minutes=s.jwt_session_ttl_minutes,
        cookie_name=s.jwt_cookie_name,
        cookie_secure=s.jwt_cookie_secure,
    )


# ---------------------------------------------------------------------------
# Passwords (Argon2)
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


def issue_session_token(
    uid: str, email: str, settings: TokenSettings | None = None
) -> tuple[str, SessionClaims, int]:
    """Returns (token, claims, expires_in_seconds)."""
    token_settings = settings or get_token_settings()
    now = datetime.now(timezone.utc)
    expires_in = int(token_settings.ttl_minutes * 60)
    expires_at = (now + timedelta(seconds=expires_in)).replace(microsecond=0)
    claims = SessionClaims(
        uid=uid,
        email=email,
        sid=uuid4().hex,
        issued_ms=int(now.timestamp() * 1000),
        expires_at=expires_at,
    )

    payload: dict[str, object] = {
        CLAIM_SUB: uid,
        CLAIM_EMAIL: email,
        CLAIM_SID: claims.sid,
        CLAIM_IAT: int(now.timestamp()),
        CLAIM_IAT_MS: claims.issued_ms,
        CLAIM_EXP: int(expires_at.timestamp()),
        CLAIM_TYP: TOKEN_TYPE_SESSION,
    }
    token = jwt.encode(payload, token_settings.secret, algorithm=JWT_ALGORITHM)
    return token, claims, expires_in


def decode_session_token(
    token: str | None, settings: TokenSettings | None = None
) -> SessionClaims | None:
    if not token:
        return None
    token_settings = settings or get_token_settings()
    try:
        payload = jwt.decode(
            token,
            token_settings.secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": [CLAIM_SUB, CLAIM_SID, CLAIM_EXP]},
        )
    except jwt.InvalidTokenError:
        return None

    if payload.get(CLAIM_TYP) != TOKEN_TYPE_SESSION:
        return None

    return SessionClaims(
        uid=str(payload[CLAIM_SUB]),
        email=str(payload.get(CLAIM_EMAIL) or ""),
        sid=str(payload[CLAIM_SID]),
        issued_ms=int(payload.get(CLAIM_IAT_MS) or 0),
        expires_at=datetime.fromtimestamp(int(payload[CLAIM_EXP]), timezone.utc),
    )


# ---------------------------------------------------------------------------
# Extraction (header / cookie)
# ---------------------------------------------------------------------------


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def extract_session_token(request: Request) -> str | None:
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token:
        return token
    return request.cookies.get(get_token_settings().cookie_name) or None
