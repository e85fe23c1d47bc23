# utils/image_utils.py
import os
import uuid
from typing import Optional, Tuple

from config import ALLOWED_IMAGE_TYPES, MAX_IMAGE_SIZE
from errors import ValidationError


def validate_image(filename: Optional[str], content_type: Optional[str], size: int) -> str:
    """
    Checks the extension and declared content type against the allow-list
    and the size against MAX_IMAGE_SIZE. Returns the lowercased extension.
    """
    ext = os.path.splitext(filename or "")[1].lower()
    media_type, _, subtype = (content_type or "").lower().partition("/")

    if (
        ext.lstrip(".") not in ALLOWED_IMAGE_TYPES
        or media_type != "image"
        or subtype not in ALLOWED_IMAGE_TYPES
    ):
        raise ValidationError("Only images are allowed (jpeg, jpg, png, gif)")

    if size > MAX_IMAGE_SIZE:
        raise ValidationError("Image exceeds the 5 MB size limit")

    return ext


def generate_image_filename(ext: str) -> str:
    return f"scan-{uuid.uuid4().hex}{ext}"


def save_image(image_bytes: bytes, upload_dir: str, ext: str) -> Tuple[str, str]:
    os.makedirs(upload_dir, exist_ok=True)
    filename = generate_image_filename(ext)
    path = os.path.join(upload_dir, filename)
    with open(path, "wb") as f:
        f.write(image_bytes)
    return filename, path
