from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from blog.db import get_db
from blog.db.post_store import (
    PostWriteFailure,
    create_post,
    delete_post,
    get_post,
    list_latest_posts,
    update_post,
)
from blog.errors import Forbidden, NotFound, UpstreamFailure
from blog.images.normalizer import ImageConversionError, ImageNormalizer, get_image_normalizer
from blog.routers.auth import get_session_claims
from blog.schemas.schemas_auth import SessionClaims
from blog.schemas.schemas_post import DeleteResult, PostOut

logger = logging.getLogger(__name__)

NOT_AUTHOR_MSG = "you are not the author"
NO_POST_MSG = "No post found"
CONVERSION_FAILED_MSG = "Error converting image"

router = APIRouter(tags=["posts"])


async def _convert_cover(file: Optional[UploadFile], normalizer: ImageNormalizer) -> str | None:
    """Stages and converts an uploaded cover; None when nothing was uploaded."""
    if file is None or not file.filename:
        return None

    staged = await normalizer.stage(file)
    try:
        return await normalizer.normalize(staged)
    except ImageConversionError:
        raise UpstreamFailure(CONVERSION_FAILED_MSG)


@router.post("/post", response_model=PostOut)
async def create(
    title: str = Form(...),
    summary: str = Form(...),
    content: str = Form(...),
    file: Optional[UploadFile] = File(None),
    claims: SessionClaims = Depends(get_session_claims),
    normalizer: ImageNormalizer = Depends(get_image_normalizer),
    db: AsyncSession = Depends(get_db),
):
    cover = await _convert_cover(file, normalizer)

    try:
        post = await create_post(title, summary, content, cover, claims.id, db)
    except PostWriteFailure:
        if cover is not None:
            normalizer.discard(cover)
        raise

    logger.info("User %s created post %s", claims.username, post.id)
    return post


@router.get("/post", response_model=List[PostOut])
async def list_posts(db: AsyncSession = Depends(get_db)):
    return await list_latest_posts(db)


@router.get("/post/{post_id}", response_model=PostOut)
async def read(post_id: int, db: AsyncSession = Depends(get_db)):
    post = await get_post(post_id, db)
    if post is None:
        raise NotFound(NO_POST_MSG)
    return post


@router.put("/post", response_model=PostOut)
async def update(
    id: int = Form(...),
    title: str = Form(...),
    summary: str = Form(...),
    content: str = Form(...),
    file: Optional[UploadFile] = File(None),
    claims: SessionClaims = Depends(get_session_claims),
    normalizer: ImageNormalizer = Depends(get_image_normalizer),
    db: AsyncSession = Depends(get_db),
):
    post = await get_post(id, db)
    if post is None:
        raise NotFound(NO_POST_MSG)
    if post.author_id != claims.id:
        logger.warning("User %s tried to edit post %s of user %s", claims.id, id, post.author_id)
        raise Forbidden(NOT_AUTHOR_MSG)

    cover = await _convert_cover(file, normalizer)

    try:
        post = await update_post(post, title, summary, content, cover, db)
    except PostWriteFailure:
        if cover is not None:
            normalizer.discard(cover)
        raise

    logger.info("User %s updated post %s", claims.username, post.id)
    return post


@router.delete("/post/{post_id}", response_model=DeleteResult)
async def delete(post_id: int, db: AsyncSession = Depends(get_db)):
    # No ownership check here: anyone may delete any post.
    if not await delete_post(post_id, db):
        raise NotFound(NO_POST_MSG)

    logger.info("Deleted post %s", post_id)
    return DeleteResult(message="Post deleted successfully")
