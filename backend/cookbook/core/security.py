"""
Security utilities including password hashing and JWT token generation.
"""

import bcrypt
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from cookbook.config import settings

# JWT configuration
ALGORITHM = "HS256"

ACCESS_PURPOSE = "access"
PASSWORD_RESET_PURPOSE = "password_reset"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    if isinstance(plain_password, str):
        plain_password = plain_password.encode("utf-8")
    if isinstance(hashed_password, str):
        hashed_password = hashed_password.encode("utf-8")
    try:
        return bcrypt.checkpw(plain_password, hashed_password)
    except ValueError:
        # Malformed stored hash
        return False


def get_password_hash(password: str) -> str:
    """Generate a password hash."""
    if isinstance(password, str):
        password = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password, salt)
    return hashed.decode("utf-8")


def create_token(
    subject: str,
    purpose: str = ACCESS_PURPOSE,
    expires_delta: Optional[timedelta] = None,
    extra: Optional[dict] = None,
) -> str:
    """Create a signed JWT for the given subject and purpose."""
    to_encode = dict(extra or {})
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta

    to_encode.update({"sub": subject, "purpose": purpose, "exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a new JWT access token."""
    return create_token(subject, ACCESS_PURPOSE, expires_delta)


def decode_token(token: str, purpose: str = ACCESS_PURPOSE) -> str:
    """
    Decode a token and return its subject.

    Raises:
        JWTError: Invalid signature, expired token, or wrong purpose.
    """
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    if payload.get("purpose", ACCESS_PURPOSE) != purpose:
        raise JWTError("Token purpose mismatch")
    subject = payload.get("sub")
    if not subject:
        raise JWTError("Token has no subject")
    return subject
