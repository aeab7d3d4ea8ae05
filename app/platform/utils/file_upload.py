import uuid
from pathlib import Path
from typing import Iterable

from app.platform.exceptions import ValidationError
from app.platform.utils.validators import is_valid_file_type

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def validate_image_file(
    filename: str, size: int, max_file_size: int, allowed_types: Iterable[str]
) -> None:
    """
    Validate uploaded image file for size and type.

    Raises:
        ValidationError: If validation fails
    """
    allowed_types = list(allowed_types)

    if size > max_file_size:
        raise ValidationError(f"文件大小超过限制（最大 {max_file_size // (1024 * 1024)} MB）")

    if not is_valid_file_type(filename, allowed_types):
        raise ValidationError(f"不支持的文件类型，仅支持: {','.join(allowed_types)}")


def generate_object_name(filename: str) -> str:
    """Unique object name keeping the original (lower-cased) extension."""
    return f"{uuid.uuid4()}{Path(filename).suffix.lower()}"


def guess_content_type(filename: str, fallback: str = "application/octet-stream") -> str:
    return CONTENT_TYPES.get(Path(filename).suffix.lower(), fallback)
