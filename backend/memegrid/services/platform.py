"""
Platform adapters.

Thin stand-ins for the device dialogs the editor hands images to:
- ImagePicker: turns a client-supplied image into a Pillow image
- PhotoLibrary: writes the current image into a directory
- ShareSheet: hands the current image back as a shareable payload
"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from PIL import Image

from memegrid.config import Settings, get_settings
from memegrid.schemas.meme import ShareResponse
from memegrid.services.images import ImageDownloadError, decode_base64_image, image_to_base64

logger = logging.getLogger(__name__)


def _slug(name: str) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", name).strip("-").lower()
    return slug or "meme"


def image_filename(name: str, now: Optional[datetime] = None) -> str:
    """Build a PNG file name like `drake-hotline-bling-20240101T120000.png`."""
    now = now or datetime.now(timezone.utc)
    return f"{_slug(name)}-{now.strftime('%Y%m%dT%H%M%S%f')}.png"


class ImagePicker:
    """Decodes the image a client picked. Anything unreadable counts as a cancel."""

    def pick(self, image_base64: Optional[str]) -> Optional[Image.Image]:
        if not image_base64:
            return None
        try:
            return decode_base64_image(image_base64)
        except ImageDownloadError as e:
            logger.error(f"Picked image could not be decoded: {e}")
            return None


class PhotoLibrary:
    """
    Writes images into PHOTO_LIBRARY_DIR.

    No confirmation is given; write failures are logged and reported as None.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.directory = Path(self.settings.PHOTO_LIBRARY_DIR)

    def save(self, img: Image.Image, name: str) -> Optional[Path]:
        path = self.directory / image_filename(name)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            img.save(path, format="PNG")
        except OSError as e:
            logger.error(f"Error saving image to photo library: {e}")
            return None
        logger.info(f"Saved image to {path}")
        return path


class ShareSheet:
    """Packages an image for sharing as a PNG data URI."""

    def share(self, img: Image.Image, name: str) -> ShareResponse:
        return ShareResponse(
            filename=image_filename(name),
            image_base64=image_to_base64(img),
        )


# Dependency injection support
_photo_library = None


def get_image_picker() -> ImagePicker:
    return ImagePicker()


def get_photo_library() -> PhotoLibrary:
    global _photo_library
    if _photo_library is None:
        _photo_library = PhotoLibrary()
    return _photo_library


def get_share_sheet() -> ShareSheet:
    return ShareSheet()
