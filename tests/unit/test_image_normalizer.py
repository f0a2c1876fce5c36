import asyncio
import io

import pytest
from fastapi import UploadFile
from PIL import Image

from blog.images.normalizer import ImageConversionError, ImageNormalizer, StagedUpload
from tests.conftest import make_image


def _upload(data: bytes, filename: str = "cover.png") -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=filename)


def _stage_and_normalize(normalizer: ImageNormalizer, data: bytes, filename: str = "cover.png"):
    async def run():
        staged = await normalizer.stage(_upload(data, filename))
        return staged, await normalizer.normalize(staged)

    return asyncio.run(run())


def test_extension_comes_from_original_name(tmp_path):
    assert StagedUpload(tmp_path / "x", "Holiday.Photo.JPG").extension == "jpg"
    assert StagedUpload(tmp_path / "x", "noext").extension == ""


@pytest.mark.parametrize("fmt,mode", [("PNG", "RGB"), ("JPEG", "RGB"), ("GIF", "P"), ("PNG", "LA"), ("TIFF", "CMYK")])
def test_any_source_format_becomes_webp(tmp_path, fmt, mode):
    normalizer = ImageNormalizer(tmp_path)

    staged, cover = _stage_and_normalize(normalizer, make_image(fmt, mode))

    converted = normalizer.file_for(cover)
    assert cover == f"uploads/{staged.path.name}.webp"
    assert converted.exists()
    with Image.open(converted) as im:
        assert im.format == "WEBP"
        assert im.size == (16, 12)


def test_staged_original_is_removed_after_conversion(tmp_path, png_bytes):
    normalizer = ImageNormalizer(tmp_path)

    staged, cover = _stage_and_normalize(normalizer, png_bytes)

    assert not staged.path.exists()
    assert [p.name for p in tmp_path.iterdir()] == [normalizer.file_for(cover).name]


def test_failed_conversion_keeps_original_and_leaves_no_output(tmp_path):
    normalizer = ImageNormalizer(tmp_path)

    async def run():
        staged = await normalizer.stage(_upload(b"definitely not an image", "evil.png"))
        with pytest.raises(ImageConversionError):
            await normalizer.normalize(staged)
        return staged

    staged = asyncio.run(run())

    assert staged.path.exists()
    assert list(tmp_path.glob("*.webp")) == []


def test_upload_dir_is_created_on_demand(tmp_path, png_bytes):
    normalizer = ImageNormalizer(tmp_path / "nested" / "uploads")

    _, cover = _stage_and_normalize(normalizer, png_bytes)

    assert normalizer.file_for(cover).exists()


def test_discard_removes_converted_cover(tmp_path, png_bytes):
    normalizer = ImageNormalizer(tmp_path)
    _, cover = _stage_and_normalize(normalizer, png_bytes)

    normalizer.discard(cover)
    normalizer.discard(cover)

    assert not normalizer.file_for(cover).exists()


def test_oversized_image_is_a_conversion_error(tmp_path, png_bytes, monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
    normalizer = ImageNormalizer(tmp_path)

    async def run():
        staged = await normalizer.stage(_upload(png_bytes))
        with pytest.raises(ImageConversionError):
            await normalizer.normalize(staged)
        return staged

    staged = asyncio.run(run())

    assert staged.path.exists()
    assert list(tmp_path.glob("*.webp")) == []


def test_stage_copies_whole_upload_from_the_start(tmp_path, png_bytes):
    normalizer = ImageNormalizer(tmp_path)
    upload = _upload(png_bytes)

    async def run():
        await upload.read(5)
        return await normalizer.stage(upload)

    staged = asyncio.run(run())

    assert staged.path.read_bytes() == png_bytes
    assert staged.path.parent == tmp_path
