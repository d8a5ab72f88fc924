"""Helpers for storing uploaded source images on disk.

Uploads are checked with Pillow, then written under the configured upload
directory as `<uuid4><ext>` so client filenames never reach the filesystem.
"""

from __future__ import annotations

import asyncio
import io
import logging
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os
from PIL import Image, UnidentifiedImageError

from utils.exceptions import ValidationError

LOGGER = logging.getLogger(__name__)


def _verify_image(data: bytes) -> None:
    """Raise ValidationError unless `data` decodes as an image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        raise ValidationError(
            "Uploaded file is not a supported image format",
            {"invalidFileType": True},
        ) from exc


class UploadStore:
    """Save and remove uploaded images under `upload_dir`."""

    def __init__(self, upload_dir: Path | str) -> None:
        self.upload_dir = Path(upload_dir)

    async def save(self, data: bytes, extension: str) -> str:
        """Verify and persist image bytes, returning the stored path.

        Args:
            data: Raw bytes of the uploaded image.
            extension: File extension including the dot (e.g. ".png").

        Raises:
            ValidationError: If the bytes are empty or not an image.
        """
        if not data:
            raise ValidationError("Uploaded image is empty.", {"fileEmpty": True})

        # Pillow decoding is blocking -> run in thread
        await asyncio.to_thread(_verify_image, data)

        await aiofiles.os.makedirs(self.upload_dir, exist_ok=True)
        path = self.upload_dir / f"{uuid.uuid4()}{extension}"
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)

        LOGGER.debug("Stored upload at %s (%d bytes)", path, len(data))
        return str(path)

    async def remove(self, path: str) -> None:
        """Delete a stored upload; a missing file is ignored."""
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return
        LOGGER.debug("Removed upload %s", path)
