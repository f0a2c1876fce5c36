from __future__ import annotations

import logging

from fastapi import APIRouter, Cookie, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from blog.auth.auth_util import (
    InvalidSession,
    SessionSigningError,
    SessionTokens,
    get_session_tokens,
    hash_password_async,
    verify_password_async,
)
from blog.config import Settings, get_settings
from blog.db import get_db
from blog.db.user_store import create_user, find_user_by_username
from blog.errors import Unauthenticated, ValidationFailure
from blog.schemas.schemas_auth import LoginOut, SessionClaims, UserLogin
from blog.schemas.schemas_user import UserCreate, UserOut

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"

USER_NOT_FOUND_MSG = "User not found"
WRONG_CREDENTIALS_MSG = "wrong credentials"
NO_SESSION_MSG = "JWT must be provided"
BAD_SESSION_MSG = "Invalid session token"

router = APIRouter(tags=["auth"])

# ───────────────────────── Cookie-Logic ────────────────────────────

def set_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


def clear_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=TOKEN_COOKIE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


async def get_session_claims(
        token: str | None = Cookie(None),
        session_tokens: SessionTokens = Depends(get_session_tokens),
) -> SessionClaims:
    """
    Use this to read the logged-in user from the ``token`` cookie: add
    ``claims: SessionClaims = Depends(get_session_claims)`` to the endpoint
    signature.

    A missing cookie and a cookie that fails verification are reported with
    different messages, both as 401.

    The front end has to send ``credentials: 'include'`` with its fetch
    options, otherwise the cookie is never attached.
    """
    if not token:
        raise Unauthenticated(NO_SESSION_MSG)

    try:
        return session_tokens.verify(token)
    except InvalidSession as exc:
        logger.info("Rejected session token: %s", exc)
        raise Unauthenticated(BAD_SESSION_MSG)

# ───────────────────────── Endpoints ────────────────────────────

@router.post("/register", response_model=UserOut)
async def register(
        payload: UserCreate,
        db: AsyncSession = Depends(get_db),
):
    try:
        password_hash = await hash_password_async(payload.password)
    except ValueError:
        # passlib refuses passwords longer than bcrypt's 72 bytes
        raise ValidationFailure("Password too long")

    user = await create_user(payload.username, password_hash, db)
    logger.info("Registered user %s (id=%s)", user.username, user.id)
    return user


@router.post("/login", response_model=LoginOut)
async def login(
        payload: UserLogin,
        response: Response,
        db: AsyncSession = Depends(get_db),
        settings: Settings = Depends(get_settings),
        session_tokens: SessionTokens = Depends(get_session_tokens),
):
    user = await find_user_by_username(payload.username, db)
    if user is None:
        logger.info("Login for unknown user %s", payload.username)
        raise ValidationFailure(USER_NOT_FOUND_MSG)

    if not await verify_password_async(payload.password, user.password):
        logger.info("Login with wrong password for %s", payload.username)
        raise ValidationFailure(WRONG_CREDENTIALS_MSG)

    try:
        token = session_tokens.issue(user.username, user.id)
    except SessionSigningError:
        raise Unauthenticated("Could not issue session")

    set_cookie(response, token, settings)
    return LoginOut(id=user.id, username=user.username)


@router.get("/profile", response_model=SessionClaims)
async def profile(claims: SessionClaims = Depends(get_session_claims)):
    return claims


@router.post("/logout")
async def logout(
        response: Response,
        settings: Settings = Depends(get_settings),
) -> str:
    clear_cookie(response, settings)
    return "ok"
