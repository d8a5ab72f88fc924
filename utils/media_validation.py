"""Validation helpers for uploaded source images."""

from pathlib import Path

from fastapi import UploadFile

from utils.exceptions import ValidationError

ALLOWED_IMAGE_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".bmp"}

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/bmp",
    "image/x-ms-bmp",
}


def validate_image_file(image_file: UploadFile) -> str:
    """Check the upload's filename extension and content type.

    Returns the lowercased extension (including the dot) to reuse when
    naming the stored file.
    """
    if not image_file.filename:
        raise ValidationError("Image file is required", {"fileMissing": True})

    extension = Path(image_file.filename).suffix.lower()
    content_type = (image_file.content_type or "").lower().split(";", 1)[0].strip()
    if extension not in ALLOWED_IMAGE_EXTENSIONS or content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(
            "Only image files are allowed (jpeg, jpg, png, gif, bmp)",
            {"invalidFileType": True},
        )
    return extension


async def read_image_bytes(image_file: UploadFile, max_bytes: int) -> bytes:
    """Read validated image bytes, rejecting empty or oversized uploads."""
    validate_image_file(image_file)
    # Read one byte past the limit so oversized uploads are detected without buffering them whole.
    data = await image_file.read(max_bytes + 1)
    if not data:
        raise ValidationError("Uploaded image is empty.", {"fileEmpty": True})
    if len(data) > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise ValidationError(f"File size exceeds {limit_mb}MB limit", {"fileTooLarge": True})
    return data
