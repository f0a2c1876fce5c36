from __future__ import annotations

import logging
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .base import Base
from . import models_post, models_user  # noqa: F401  (register tables on Base.metadata)

logger = logging.getLogger(__name__)


class Database:
    """Engine and session factory, created once per app."""

    def __init__(self, url: str, echo: bool = False):
        self.engine: AsyncEngine = create_async_engine(url, echo=echo)
        self.sessionmaker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    # ───────────────────────── schema initialisation ────────────────────────
    async def init_models(self) -> None:
        """
        Creates every table registered on Base.metadata that does not exist
        yet. Safe to run repeatedly.
        """
        async with self.engine.begin() as conn:
            # create_all is synchronous → run it via run_sync
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready")

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields one AsyncSession per request."""
    database: Database = request.app.state.db
    async with database.sessionmaker() as session:
        yield session
