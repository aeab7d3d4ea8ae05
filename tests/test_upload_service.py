import io

import pytest
from PIL import Image

from app.features.upload.services.upload_service import (
    UploadedFile,
    UploadService,
    make_thumbnail,
)
from app.platform.exceptions import InternalError, ValidationError


def image_bytes(fmt="PNG", size=(800, 600), mode="RGB"):
    buffer = io.BytesIO()
    Image.new(mode, size, color="red" if mode == "RGB" else 0).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def upload_service(object_storage, settings):
    return UploadService(object_storage, settings)


class TestThumbnail:
    def test_png_stays_png_and_keeps_aspect(self):
        width, height, thumb = make_thumbnail(image_bytes("PNG", (800, 600)), 400)

        assert (width, height) == (800, 600)
        assert (thumb.width, thumb.height) == (400, 300)
        assert thumb.content_type == "image/png"
        with Image.open(io.BytesIO(thumb.data)) as img:
            assert img.format == "PNG"
            assert img.size == (400, 300)

    def test_other_formats_become_jpeg(self):
        _, _, thumb = make_thumbnail(image_bytes("GIF", (200, 100), mode="P"), 400)

        assert thumb.content_type == "image/jpeg"
        assert (thumb.width, thumb.height) == (400, 200)

    def test_garbage_rejected(self):
        with pytest.raises(ValidationError):
            make_thumbnail(b"not an image", 400)

    def test_oversized_dimensions_rejected(self):
        # 1-bit blank image compresses to a few kilobytes
        data = image_bytes("PNG", (8000, 7000), mode="1")

        with pytest.raises(ValidationError):
            make_thumbnail(data, 400)

    def test_decompression_bomb_rejected(self, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        data = image_bytes("PNG", (100, 100))

        with pytest.raises(ValidationError):
            make_thumbnail(data, 400)


class TestUploadImage:
    async def test_stores_original_and_thumbnail(self, upload_service, object_storage):
        data = image_bytes("JPEG", (1200, 800))

        result = await upload_service.upload_image("Holiday.JPG", "image/jpeg", data)

        assert result.size == len(data)
        assert (result.width, result.height) == (1200, 800)
        assert "/images/original/" in result.image_url
        assert "/images/thumbnails/" in result.thumbnail_url
        assert result.image_url.endswith(".jpg")

        keys = sorted(object_storage.objects)
        assert len(keys) == 2
        original_key = next(k for k in keys if k.startswith("images/original/"))
        thumb_key = next(k for k in keys if k.startswith("images/thumbnails/"))
        assert original_key.split("/")[-1] == thumb_key.split("/")[-1]
        assert object_storage.objects[original_key][0] == data

    async def test_rejects_oversized_file(self, upload_service, settings, object_storage):
        data = b"x" * (settings.MAX_FILE_SIZE + 1)

        with pytest.raises(ValidationError) as exc_info:
            await upload_service.upload_image("big.png", "image/png", data)

        assert "文件大小超过限制" in exc_info.value.message
        assert object_storage.objects == {}

    async def test_rejects_disallowed_extension(self, upload_service):
        with pytest.raises(ValidationError) as exc_info:
            await upload_service.upload_image("notes.pdf", "application/pdf", image_bytes())
        assert "不支持的文件类型" in exc_info.value.message

    async def test_rejects_undecodable_image(self, upload_service, object_storage):
        with pytest.raises(ValidationError):
            await upload_service.upload_image("fake.png", "image/png", b"\x89PNG broken")
        assert object_storage.objects == {}

    async def test_thumbnail_failure_leaves_original(self, upload_service, object_storage):
        object_storage.fail_prefix = "images/thumbnails/"

        with pytest.raises(InternalError):
            await upload_service.upload_image("a.png", "image/png", image_bytes())

        assert len(object_storage.objects) == 1


class TestUploadImages:
    async def test_uploads_sequentially(self, upload_service, object_storage):
        files = [UploadedFile(f"{i}.png", "image/png", image_bytes()) for i in range(3)]

        results = await upload_service.upload_images(files)

        assert len(results) == 3
        assert len(object_storage.objects) == 6

    async def test_too_many_files(self, upload_service, settings, object_storage):
        files = [
            UploadedFile(f"{i}.png", "image/png", b"")
            for i in range(settings.MAX_FILES_PER_UPLOAD + 1)
        ]

        with pytest.raises(ValidationError):
            await upload_service.upload_images(files)
        assert object_storage.objects == {}

    async def test_empty_batch(self, upload_service):
        with pytest.raises(ValidationError):
            await upload_service.upload_images([])


async def test_delete_image_removes_object(upload_service, object_storage):
    result = await upload_service.upload_image("a.png", "image/png", image_bytes())
    original_key = next(k for k in object_storage.objects if k.startswith("images/original/"))

    await upload_service.delete_image(result.image_url)

    assert original_key not in object_storage.objects
