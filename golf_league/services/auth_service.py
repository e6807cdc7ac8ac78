"""
Bearer token verification for tokens issued by the external auth provider.
"""

import enum
import logging
import os
from datetime import timedelta
from typing import Dict, Optional

import jwt
from dotenv import load_dotenv

from golf_league.utils.datetime_utils import utcnow

load_dotenv()

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60


class AuthErrorKind(str, enum.Enum):
    """Why a credential was rejected."""

    EXPIRED = "expired"
    INVALID = "invalid"
    MISSING_CLAIMS = "missing_claims"


class AuthError(Exception):
    def __init__(self, kind: AuthErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


TEST_SECRET_KEY = "test-secret"


class MissingSecretKey(RuntimeError):
    """JWT_SECRET_KEY is unset outside the test environment."""


def get_secret_key() -> str:
    """
    Signing key for bearer tokens.

    Only ENV=test may run without JWT_SECRET_KEY; anywhere else a missing key
    is fatal.

    Raises:
        MissingSecretKey: If the key is not configured outside tests
    """
    secret = (os.getenv("JWT_SECRET_KEY") or "").strip()
    if secret:
        return secret
    if os.getenv("ENV", "").lower() == "test":
        return TEST_SECRET_KEY
    raise MissingSecretKey("JWT_SECRET_KEY is not set")


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token carrying ``data`` (used by tooling and tests)."""
    payload = dict(data)
    payload["exp"] = utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    return jwt.encode(payload, get_secret_key(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Dict:
    """
    Decode and validate a token.

    Raises:
        AuthError: With the kind of failure
        MissingSecretKey: If the signing key is not configured
    """
    secret = get_secret_key()
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError(AuthErrorKind.EXPIRED, "Session expired")
    except jwt.InvalidTokenError:
        raise AuthError(AuthErrorKind.INVALID, "Invalid authentication token")

    if payload.get("user_id") is None:
        raise AuthError(AuthErrorKind.MISSING_CLAIMS, "Invalid token payload")
    return payload


def verify_token(token: str) -> Optional[Dict]:
    """Decoded payload, or None when the token is unusable."""
    try:
        return decode_token(token)
    except AuthError:
        return None


def is_session_error(error: AuthError) -> bool:
    """Errors meaning the client's session is over and it must sign in again."""
    return error.kind in (AuthErrorKind.EXPIRED, AuthErrorKind.INVALID)
