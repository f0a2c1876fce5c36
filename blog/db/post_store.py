# blog/db/post_store.py
from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blog.db.models_post import Post
from blog.errors import UpstreamFailure

logger = logging.getLogger(__name__)

LATEST_POSTS_LIMIT = 20


class PostWriteFailure(UpstreamFailure):
    """The write was rolled back; nothing new references the given cover."""


async def _rollback_and_fail(db: AsyncSession, message: str) -> None:
    await db.rollback()
    logger.exception(message)
    raise PostWriteFailure("Database error")


async def get_post(post_id: int, db: AsyncSession) -> Post | None:
    """Loads one post with its author populated, or None."""
    try:
        res = await db.execute(
            select(Post)
            .options(selectinload(Post.author))
            .where(Post.id == post_id)
            .execution_options(populate_existing=True)
        )
        return res.scalars().first()
    except SQLAlchemyError:
        logger.exception("Loading post %s failed", post_id)
        raise UpstreamFailure("Database error")


async def list_latest_posts(db: AsyncSession, limit: int = LATEST_POSTS_LIMIT) -> Sequence[Post]:
    try:
        res = await db.execute(
            select(Post)
            .options(selectinload(Post.author))
            .order_by(Post.created_at.desc(), Post.id.desc())
            .limit(limit)
        )
        return res.scalars().all()
    except SQLAlchemyError:
        logger.exception("Listing posts failed")
        raise UpstreamFailure("Database error")


async def create_post(
    title: str,
    summary: str,
    content: str,
    cover: str | None,
    author_id: int,
    db: AsyncSession,
) -> Post:
    post = Post(
        title=title,
        summary=summary,
        content=content,
        cover=cover,
        author_id=author_id,
    )
    db.add(post)
    try:
        await db.commit()
    except SQLAlchemyError:
        await _rollback_and_fail(db, "Creating post failed")

    return await get_post(post.id, db)


async def update_post(
    post: Post,
    title: str,
    summary: str,
    content: str,
    cover: str | None,
    db: AsyncSession,
) -> Post:
    """
    Applies the editable fields. ``cover`` replaces the stored one only when
    given; the author is never touched.
    """
    post.title = title
    post.summary = summary
    post.content = content
    if cover is not None:
        post.cover = cover

    try:
        await db.commit()
    except SQLAlchemyError:
        await _rollback_and_fail(db, f"Updating post {post.id} failed")

    return await get_post(post.id, db)


async def delete_post(post_id: int, db: AsyncSession) -> bool:
    """Returns False when there was nothing to delete."""
    try:
        post = await db.get(Post, post_id)
        if post is None:
            return False
        await db.delete(post)
        await db.commit()
        return True
    except SQLAlchemyError:
        await _rollback_and_fail(db, f"Deleting post {post_id} failed")
