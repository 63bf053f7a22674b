"""Evidence photo validation and object path layout."""

import io
from uuid import uuid4

from PIL import Image, UnidentifiedImageError

from safecheck.errors import ValidationFailed

# Allowed MIME types and the extension stored objects get
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/heic": "heic",
}

EXTENSION_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "heic": "image/heic",
}


def guess_content_type(filename: str | None, content_type: str | None) -> str | None:
    """Declared content type, falling back to the filename extension."""
    if content_type and content_type != "application/octet-stream":
        return content_type
    if filename and "." in filename:
        return EXTENSION_TYPES.get(filename.rsplit(".", 1)[1].lower())
    return None


def validate_image(content: bytes, content_type: str | None, max_bytes: int) -> str:
    """
    Check that content is an acceptable evidence photo.

    Args:
        content: Raw image bytes
        content_type: MIME type of the upload
        max_bytes: Size limit

    Returns:
        File extension to store the object under

    Raises:
        ValidationFailed: empty, too large, wrong type or undecodable
    """
    if not content:
        raise ValidationFailed("Image is empty")
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationFailed(
            f"Invalid image type: {content_type}. "
            f"Allowed: {', '.join(ALLOWED_IMAGE_TYPES)}"
        )
    if len(content) > max_bytes:
        max_mb = max_bytes / (1024 * 1024)
        actual_mb = len(content) / (1024 * 1024)
        raise ValidationFailed(f"Image too large: {actual_mb:.1f}MB. Maximum: {max_mb:.1f}MB")

    # HEIC needs a plugin Pillow does not ship with
    if content_type != "image/heic":
        try:
            img = Image.open(io.BytesIO(content))
            img.verify()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
            raise ValidationFailed("Invalid or corrupted image file") from e

    return ALLOWED_IMAGE_TYPES[content_type]


def evidence_path(
    prefix: str, owner_id: str, assessment_id: str, question_id: str, ext: str
) -> str:
    """{prefix}/{owner}/{assessment}/{question}/{uuid}.{ext}"""
    name = f"{owner_id}/{assessment_id}/{question_id}/{uuid4()}.{ext}"
    return f"{prefix}/{name}" if prefix else name
