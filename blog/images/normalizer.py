"""
Stores uploaded cover images and re-encodes them to WebP.

An upload is first staged under the upload directory with a random name and
no extension. ``normalize`` then writes ``<staged path>.webp`` and removes the
staged original. The conversion itself runs in a worker thread; callers await
it before they persist the returned cover path.
"""
from __future__ import annotations

import asyncio
import logging
import os
import secrets
import shutil
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from fastapi import Request, UploadFile
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

WEBP_SUFFIX = ".webp"
PUBLIC_PREFIX = PurePosixPath("uploads")

_CHUNK_SIZE = 1024 * 1024


class ImageConversionError(Exception):
    pass


@dataclass(frozen=True)
class StagedUpload:
    path: Path
    original_name: str

    @property
    def extension(self) -> str:
        parts = self.original_name.rsplit(".", 1)
        return parts[1].lower() if len(parts) == 2 else ""


class ImageNormalizer:
    def __init__(self, upload_dir: str | os.PathLike):
        self.upload_dir = Path(upload_dir)

    def ensure_upload_dir(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def public_path(self, converted: Path) -> str:
        """Path the front end requests below the ``/uploads`` mount."""
        return str(PUBLIC_PREFIX / converted.name)

    def file_for(self, cover: str) -> Path:
        return self.upload_dir / PurePosixPath(cover).name

    # ───────────────────────── staging ──────────────────────────────────────
    @staticmethod
    def _copy(source: BinaryIO, target: Path) -> None:
        with target.open("wb") as buffer:
            shutil.copyfileobj(source, buffer, _CHUNK_SIZE)

    async def stage(self, upload: UploadFile) -> StagedUpload:
        self.ensure_upload_dir()
        path = self.upload_dir / secrets.token_hex(16)

        await upload.seek(0)
        await asyncio.to_thread(self._copy, upload.file, path)

        staged = StagedUpload(path=path, original_name=upload.filename or "")
        logger.info("Staged upload %s (.%s) as %s", staged.original_name, staged.extension, path.name)
        return staged

    # ───────────────────────── conversion ───────────────────────────────────
    @staticmethod
    def _convert(source: Path, target: Path) -> None:
        with Image.open(source) as im:
            if im.mode not in ("RGB", "RGBA"):
                has_alpha = im.mode in ("LA", "PA") or "transparency" in im.info
                im = im.convert("RGBA" if has_alpha else "RGB")
            im.save(target, format="WEBP")

    async def normalize(self, staged: StagedUpload) -> str:
        """
        Re-encodes ``staged`` to WebP and returns the public cover path.

        On failure the partial output is removed, the staged original is kept,
        and ImageConversionError is raised.
        """
        target = staged.path.with_name(staged.path.name + WEBP_SUFFIX)
        try:
            await asyncio.to_thread(self._convert, staged.path, target)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            logger.error("Error converting %s to WebP: %s", staged.path.name, exc)
            target.unlink(missing_ok=True)
            raise ImageConversionError(str(exc)) from exc

        try:
            staged.path.unlink()
        except OSError as exc:
            logger.warning("Could not remove staged upload %s: %s", staged.path.name, exc)

        return self.public_path(target)

    def discard(self, cover: str) -> None:
        """Removes a converted cover that ended up not being referenced."""
        try:
            self.file_for(cover).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove cover %s: %s", cover, exc)


def get_image_normalizer(request: Request) -> ImageNormalizer:
    return request.app.state.image_normalizer
