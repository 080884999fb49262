"""
Password hashing, the configured-admin credential check, and the
signed cookie value that names a server-side session.
"""
from datetime import datetime, timezone, timedelta
from typing import Optional
import secrets

import bcrypt
from jose import JWTError, jwt

from app.core.config import settings

SESSION_TOKEN_TYPE = "session"


# =====================================================
# Passwords
# =====================================================
def get_password_hash(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty")
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """False for empty input or a stored value that is not a bcrypt digest."""
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def credentials_match(email: str, password: str, expected_email: Optional[str], expected_password: Optional[str]) -> bool:
    """
    Compare a login attempt with a configured email/password pair in
    constant time. Nothing matches while the pair is unset.
    """
    if not expected_email or not expected_password:
        return False
    pairs = ((email, expected_email), (password, expected_password))
    results = [secrets.compare_digest((given or "").encode("utf-8"), wanted.encode("utf-8")) for given, wanted in pairs]
    return all(results)


# =====================================================
# Session cookie
# =====================================================
def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def create_session_token(session_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Sign ``session_id`` into the cookie value; expires with the session by default."""
    issued = datetime.now(timezone.utc)
    lifetime = expires_delta if expires_delta is not None else timedelta(hours=settings.SESSION_TTL_HOURS)
    claims = {
        "sub": session_id,
        "type": SESSION_TOKEN_TYPE,
        "iat": issued,
        "exp": issued + lifetime,
    }
    return jwt.encode(claims, settings.SESSION_SECRET, algorithm=settings.SESSION_ALGORITHM)


def verify_session_token(token: str) -> Optional[str]:
    """Session id named by a valid, unexpired cookie value, else None."""
    try:
        claims = jwt.decode(token, settings.SESSION_SECRET, algorithms=[settings.SESSION_ALGORITHM])
    except JWTError:
        return None
    if claims.get("type") != SESSION_TOKEN_TYPE:
        return None
    return claims.get("sub")
