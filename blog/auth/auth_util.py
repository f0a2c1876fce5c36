"""
This module provides utilities for authentication: password hashing and the
signed session token carried in the ``token`` cookie.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Request
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from blog.schemas.schemas_auth import SessionClaims

logger = logging.getLogger(__name__)

# This allows for easier testing as password hashing can now be easily made cheaper during testing by
# altering this constant.
CRYPT_CONTEXT = CryptContext(
    schemes=["bcrypt"],
    default="bcrypt",
    truncate_error=True
)


class InvalidSession(Exception):
    """The token is malformed, badly signed, expired or lacks claims."""


class SessionSigningError(Exception):
    pass


def hash_password(password: str) -> str:
    return CRYPT_CONTEXT.hash(secret=password)


def verify_password(cleartext_password: str, password_hash: str) -> bool:
    try:
        return CRYPT_CONTEXT.verify(secret=cleartext_password, hash=password_hash)
    except ValueError:
        # unknown hash format or an over-long password
        return False


async def hash_password_async(password: str) -> str:
    return await run_in_threadpool(hash_password, password)


async def verify_password_async(cleartext_password: str, password_hash: str) -> bool:
    return await run_in_threadpool(verify_password, cleartext_password, password_hash)


class SessionTokens:
    """Issues and verifies the stateless session JWT."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int | None = None):
        if not secret:
            raise ValueError("Signing secret must be provided")
        self._secret = secret
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    def issue(self, username: str, user_id: int) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "username": username,
            "id": user_id,
            "iat": now,
        }
        if self._expire_minutes is not None:
            payload["exp"] = now + timedelta(minutes=self._expire_minutes)

        try:
            return jwt.encode(payload, self._secret, algorithm=self._algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            logger.error("Signing session token for %s failed: %s", username, exc)
            raise SessionSigningError(str(exc)) from exc

    def verify(self, token: str) -> SessionClaims:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["username", "id", "iat"]},
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidSession(str(exc)) from exc

        username = payload.get("username")
        user_id = payload.get("id")
        if not isinstance(username, str) or not isinstance(user_id, int):
            raise InvalidSession("Token claims have the wrong shape")

        return SessionClaims(username=username, id=user_id, iat=payload["iat"], exp=payload.get("exp"))


def get_session_tokens(request: Request) -> SessionTokens:
    return request.app.state.session_tokens
