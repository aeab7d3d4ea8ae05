import io
import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from PIL import Image, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from app.features.upload.schemas.upload import ImageUploadResult
from app.platform.config import Settings
from app.platform.exceptions import InternalError, ValidationError
from app.platform.storage.object_storage import ObjectStorage, object_key_from_url
from app.platform.utils.file_upload import (
    generate_object_name,
    guess_content_type,
    validate_image_file,
)

logger = logging.getLogger(__name__)

MAX_IMAGE_PIXELS = 50_000_000

ORIGINAL_PREFIX = "images/original"
THUMBNAIL_PREFIX = "images/thumbnails"
JPEG_QUALITY = 85


@dataclass
class UploadedFile:
    filename: str
    content_type: str
    data: bytes


@dataclass
class Thumbnail:
    data: bytes
    content_type: str
    width: int
    height: int


def make_thumbnail(data: bytes, target_width: int) -> Tuple[int, int, Thumbnail]:
    """
    Decode ``data`` and scale it to ``target_width`` keeping the aspect ratio.

    Returns the original width and height plus the encoded thumbnail. PNG
    input stays PNG, everything else becomes JPEG.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
            if width * height > MAX_IMAGE_PIXELS:
                raise ValidationError("图片尺寸过大")
            img.load()
            source_format = img.format

            target_height = max(1, round(height * target_width / width))
            resized = img.resize((target_width, target_height), Image.Resampling.LANCZOS)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValidationError("解码图片失败，请上传有效的图片文件") from e

    buffer = io.BytesIO()
    if source_format == "PNG":
        resized.save(buffer, format="PNG", optimize=True)
        content_type = "image/png"
    else:
        if resized.mode not in ("RGB", "L"):
            resized = resized.convert("RGB")
        resized.save(buffer, format="JPEG", quality=JPEG_QUALITY, optimize=True)
        content_type = "image/jpeg"

    return width, height, Thumbnail(buffer.getvalue(), content_type, target_width, target_height)


class UploadService:
    def __init__(self, storage: ObjectStorage, settings: Settings):
        self.storage = storage
        self.settings = settings

    async def upload_image(self, filename: str, content_type: str, data: bytes) -> ImageUploadResult:
        validate_image_file(
            filename,
            len(data),
            self.settings.MAX_FILE_SIZE,
            self.settings.allowed_file_types,
        )

        width, height, thumbnail = await run_in_threadpool(
            make_thumbnail, data, self.settings.THUMBNAIL_WIDTH
        )

        object_name = generate_object_name(filename)
        original_type = content_type or guess_content_type(filename)

        # Independent writes, a failed thumbnail leaves the original behind
        try:
            image_url = await self.storage.upload_bytes(
                f"{ORIGINAL_PREFIX}/{object_name}", data, original_type
            )
        except Exception as e:
            logger.error(f"Original upload failed for {filename}: {e}")
            raise InternalError("上传原图失败") from e

        try:
            thumbnail_url = await self.storage.upload_bytes(
                f"{THUMBNAIL_PREFIX}/{object_name}", thumbnail.data, thumbnail.content_type
            )
        except Exception as e:
            logger.error(f"Thumbnail upload failed for {filename}: {e}")
            raise InternalError("上传缩略图失败") from e

        logger.info(f"Uploaded {filename} as {object_name} ({width}x{height})")
        return ImageUploadResult(
            image_url=image_url,
            thumbnail_url=thumbnail_url,
            size=len(data),
            width=width,
            height=height,
        )

    async def upload_images(self, files: Sequence[UploadedFile]) -> List[ImageUploadResult]:
        if not files:
            raise ValidationError("请选择要上传的图片")
        if len(files) > self.settings.MAX_FILES_PER_UPLOAD:
            raise ValidationError(f"单次最多上传 {self.settings.MAX_FILES_PER_UPLOAD} 张图片")

        results = []
        for file in files:
            results.append(await self.upload_image(file.filename, file.content_type, file.data))
        return results

    async def delete_image(self, image_url: str) -> None:
        key = object_key_from_url(image_url, self.settings.S3_BUCKET)
        if not key:
            raise ValidationError("无效的图片地址")
        await self.storage.delete(key)
        logger.info(f"Deleted object {key}")
