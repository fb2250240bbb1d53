"""Password hashing and signed session cookies for staff authentication."""

import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from agency_companion.core.config import get_settings
from agency_companion.core.logging import get_logger
from agency_companion.db.storage import Storage, get_storage

logger = get_logger(__name__)

SESSION_COOKIE = "session"
JWT_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    """Salted bcrypt hash of a password."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode(), hashed.encode())
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def session_expiry() -> datetime:
    return datetime.now(timezone.utc) + timedelta(seconds=get_settings().SESSION_MAX_AGE_SECONDS)


def encode_session_token(sid: str, user_id: int, expires_at: datetime) -> str:
    """Sign a cookie value that points at a server-side session row."""
    payload = {"sid": sid, "sub": str(user_id), "exp": expires_at}
    return jwt.encode(payload, get_settings().SESSION_SECRET, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str) -> dict | None:
    """Return the verified payload, or None when the token is invalid or expired."""
    try:
        return jwt.decode(token, get_settings().SESSION_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


def _session_is_live(session: dict) -> bool:
    try:
        expires = datetime.fromisoformat(session["expires_at"])
    except (KeyError, TypeError, ValueError):
        return False
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return expires > datetime.now(timezone.utc)


def resolve_session_user(storage: Storage, token: str | None) -> dict | None:
    """
    Resolve a session cookie to its user row.

    Returns:
        User row, or None when the cookie is missing, forged, expired or revoked
    """
    if not token:
        return None
    payload = decode_session_token(token)
    if not payload or not payload.get("sid"):
        return None

    session = storage.get_session(payload["sid"])
    if not session or not _session_is_live(session):
        return None
    if str(session["user_id"]) != payload.get("sub"):
        logger.warning(f"Session {payload['sid'][:8]} user mismatch")
        return None
    return storage.get_user(session["user_id"])


async def require_user(
    request: Request,
    storage: Storage = Depends(get_storage),
) -> dict:
    """FastAPI dependency: the logged-in user, or 401."""
    user = resolve_session_user(storage, request.cookies.get(SESSION_COOKIE))
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user
