# blog/config.py
"""
Process-wide configuration.

Everything the app needs from the environment is read exactly once by
``Settings.from_env`` and handed to ``create_app``. Handlers reach it through
``get_settings`` instead of reading ``os.environ`` themselves.
"""
from __future__ import annotations

import os
from typing import List, Literal, Mapping, Optional

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field

from blog.db.config import build_database_url

DEFAULT_ORIGINS = ["http://localhost:3000"]

_TRUE_VALUES = ("1", "true", "yes")


def _get_allowed_origins(configured: str) -> list[str]:
    origins = [
        origin.strip()
        for origin in configured.split(",")
        if origin.strip()
    ]
    for origin in DEFAULT_ORIGINS:
        if origin not in origins:
            origins.append(origin)
    return origins


def _cookie_samesite(value: str) -> str:
    value = value.strip().lower()
    if value not in {"lax", "strict", "none"}:
        return "none"
    return value


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    database_url: str
    jwt_secret_key: str = Field(min_length=1)
    jwt_algorithm: str = "HS256"
    host: str = "0.0.0.0"
    port: int = 4000
    cors_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_ORIGINS))
    upload_dir: str = "uploads"
    cookie_secure: bool = True
    cookie_samesite: Literal["lax", "strict", "none"] = "none"
    session_expire_minutes: Optional[int] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env

        secret = env.get("JWT_SECRET_KEY")
        if not secret:
            raise RuntimeError("Missing environment variables: JWT_SECRET_KEY")

        expire = env.get("SESSION_EXPIRE_MINUTES", "").strip()

        return cls(
            database_url=build_database_url(env),
            jwt_secret_key=secret,
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", "4000")),
            cors_origins=_get_allowed_origins(env.get("CORS_ORIGINS", "")),
            upload_dir=env.get("UPLOAD_DIR", "uploads"),
            cookie_secure=env.get("COOKIE_SECURE", "true").lower() in _TRUE_VALUES,
            cookie_samesite=_cookie_samesite(env.get("COOKIE_SAMESITE", "none")),
            session_expire_minutes=int(expire) if expire else None,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
