"""Staff authentication endpoints (cookie sessions)."""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from agency_companion.core.config import get_settings
from agency_companion.core.logging import get_logger
from agency_companion.core.schemas_auth import LoginRequest, UserRegister, UserResponse
from agency_companion.core.security import (
    SESSION_COOKIE,
    decode_session_token,
    encode_session_token,
    hash_password,
    new_session_id,
    require_user,
    session_expiry,
    verify_password,
)
from agency_companion.db.storage import Storage, get_storage

logger = get_logger(__name__)

router = APIRouter()


def _start_session(storage: Storage, response: Response, user: dict) -> None:
    """Create a server-side session row and set the signed cookie."""
    sid = new_session_id()
    expires_at = session_expiry()
    storage.create_session(sid, user["id"], expires_at.isoformat())
    response.set_cookie(
        SESSION_COOKIE,
        encode_session_token(sid, user["id"], expires_at),
        max_age=get_settings().SESSION_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
        secure=get_settings().APP_ENV == "prod",
    )


@router.post("/register", response_model=UserResponse, status_code=201)
def register(body: UserRegister, response: Response, storage: Storage = Depends(get_storage)):
    """Register a staff user and log them in."""
    if storage.get_user_by_username(body.username):
        raise HTTPException(status_code=400, detail="Username already exists")

    data = body.model_dump()
    data["password"] = hash_password(body.password)
    try:
        user = storage.create_user(data)
    except ValueError:
        raise HTTPException(status_code=400, detail="Username already exists")

    _start_session(storage, response, user)
    logger.info(f"Registered user {user['id']}")
    return user


@router.post("/login", response_model=UserResponse)
def login(body: LoginRequest, response: Response, storage: Storage = Depends(get_storage)):
    user = storage.get_user_by_username(body.username)
    if not user or not verify_password(body.password, user["password"]):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password"
        )

    _start_session(storage, response, user)
    logger.info(f"User {user['id']} logged in")
    return user


@router.post("/logout")
def logout(request: Request, response: Response, storage: Storage = Depends(get_storage)):
    """Revoke the current session, if any, and clear the cookie."""
    token = request.cookies.get(SESSION_COOKIE)
    payload = decode_session_token(token) if token else None
    if payload and payload.get("sid"):
        storage.delete_session(payload["sid"])

    response.delete_cookie(SESSION_COOKIE)
    return {"success": True}


@router.get("/user", response_model=UserResponse)
def current_user(user: dict = Depends(require_user)):
    return user
