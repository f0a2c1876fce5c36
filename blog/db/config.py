# blog/db/config.py
from __future__ import annotations

from typing import Mapping
from urllib.parse import quote_plus


def build_database_url(env: Mapping[str, str]) -> str:
    if url := env.get("DATABASE_URL"):
        # Hosting providers commonly hand out postgres://, but SQLAlchemy asyncpg
        # expects postgresql+asyncpg://
        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    parts = {
        "DB_USER": env.get("DB_USER"),
        "DB_PASSWORD": env.get("DB_PASSWORD"),
        "DB_HOST": env.get("DB_HOST"),
        "DB_PORT": env.get("DB_PORT"),
        "DB_NAME": env.get("DB_NAME"),
    }
    missing = [k for k, v in parts.items() if not v]
    if missing:
        raise RuntimeError(f"Missing environment variables: {', '.join(missing)}")

    password = quote_plus(parts["DB_PASSWORD"])
    return (
        f"postgresql+asyncpg://{parts['DB_USER']}:{password}"
        f"@{parts['DB_HOST']}:{parts['DB_PORT']}/{parts['DB_NAME']}"
    )
