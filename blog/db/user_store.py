# blog/db/user_store.py
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from blog.db.models_user import User
from blog.errors import UpstreamFailure, ValidationFailure

logger = logging.getLogger(__name__)

USERNAME_TAKEN_MSG = "Username already taken"


async def find_user_by_username(username: str, db: AsyncSession) -> User | None:
    try:
        res = await db.execute(select(User).where(User.username == username))
        return res.scalars().first()
    except SQLAlchemyError:
        logger.exception("Looking up user %s failed", username)
        raise UpstreamFailure("Database error")


async def create_user(username: str, password_hash: str, db: AsyncSession) -> User:
    if await find_user_by_username(username, db) is not None:
        raise ValidationFailure(USERNAME_TAKEN_MSG)

    user = User(username=username, password=password_hash)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # lost a race against a concurrent registration of the same name
        await db.rollback()
        raise ValidationFailure(USERNAME_TAKEN_MSG)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Creating user %s failed", username)
        raise UpstreamFailure("Database error")

    await db.refresh(user)
    return user
