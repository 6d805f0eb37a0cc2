"""
Image download and encoding helpers.

Downloads raw image bytes for catalog entries, decodes them with Pillow,
builds grid thumbnails and converts images to PNG / base64 data URIs.
"""

import base64
import binascii
import logging
from io import BytesIO
from typing import Optional

import httpx
from PIL import Image, ImageDraw, ImageOps, UnidentifiedImageError

from memegrid.config import Settings, get_settings

logger = logging.getLogger(__name__)


class ImageDownloadError(Exception):
    """Raised when an image cannot be downloaded or decoded."""
    pass


# Modes Pillow can write as PNG
PNG_MODES = {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}


def decode_image(data: bytes) -> Image.Image:
    """
    Decode raw bytes into a fully loaded Pillow image.

    EXIF orientation is applied, and modes PNG cannot hold (CMYK, YCbCr, ...)
    are converted to RGB, or RGBA when the image carries transparency.

    Raises:
        ImageDownloadError: If the bytes are not a readable image
    """
    try:
        img = Image.open(BytesIO(data))
        img.load()
        # Auto-rotate based on EXIF
        img = ImageOps.exif_transpose(img) or img
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDownloadError(f"Could not decode image data: {e}") from e
    if img.mode not in PNG_MODES:
        has_alpha = "A" in img.mode or "transparency" in img.info
        img = img.convert("RGBA" if has_alpha else "RGB")
    return img


def decode_base64_image(payload: str) -> Image.Image:
    """Decode a raw base64 string or a `data:image/...;base64,` URI."""
    raw = payload.strip()
    if raw.startswith("data:"):
        raw = raw.split(",", 1)[-1]
    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDownloadError(f"Invalid base64 image payload: {e}") from e
    return decode_image(data)


def image_to_png(img: Image.Image) -> bytes:
    """Encode a Pillow image as PNG bytes."""
    buffered = BytesIO()
    img.save(buffered, format="PNG")
    return buffered.getvalue()


def image_to_base64(img: Image.Image) -> str:
    """Convert a Pillow image to a PNG data URI."""
    b64 = base64.b64encode(image_to_png(img)).decode("utf-8")
    return f"data:image/png;base64,{b64}"


def make_thumbnail(img: Image.Image, size: int = 80, corner_radius: int = 10) -> Image.Image:
    """
    Aspect-fill the image into a size x size square and round its corners.

    The source is scaled to cover the square and center-cropped, the corners
    outside the rounded rectangle become transparent.
    """
    thumb = ImageOps.fit(img.convert("RGBA"), (size, size), method=Image.Resampling.LANCZOS)
    if corner_radius > 0:
        mask = Image.new("L", (size, size), 0)
        ImageDraw.Draw(mask).rounded_rectangle((0, 0, size - 1, size - 1), radius=corner_radius, fill=255)
        thumb.putalpha(mask)
    return thumb


class ImageDownloader:
    """
    Service for downloading meme images.

    Used both for grid thumbnails and the full resolution editor image.
    Every call issues exactly one request; nothing is cached.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    async def download(self, url: str) -> Image.Image:
        """
        Download and decode the image at `url`.

        Raises:
            ImageDownloadError: On transport errors, non-200 status or undecodable bytes
        """
        if not url:
            raise ImageDownloadError("Image URL is empty")

        logger.debug(f"Downloading image {url}")
        try:
            async with httpx.AsyncClient(timeout=self.settings.HTTP_TIMEOUT, follow_redirects=True) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise ImageDownloadError(f"HTTP error downloading {url}: {e}") from e

        if response.status_code != 200:
            raise ImageDownloadError(f"Image download {url} returned status {response.status_code}")

        return decode_image(response.content)

    async def try_download(self, url: str) -> Optional[Image.Image]:
        """Download an image, logging and returning None on failure."""
        try:
            return await self.download(url)
        except ImageDownloadError as e:
            logger.error(f"Error fetching meme image: {e}")
            return None

    async def thumbnail(self, url: str) -> Optional[Image.Image]:
        """Download an image and turn it into a grid thumbnail, None on failure."""
        img = await self.try_download(url)
        if img is None:
            return None
        return make_thumbnail(img, self.settings.THUMBNAIL_SIZE, self.settings.THUMBNAIL_CORNER_RADIUS)


# Dependency injection support
_image_downloader = None


def get_image_downloader() -> ImageDownloader:
    global _image_downloader
    if _image_downloader is None:
        _image_downloader = ImageDownloader()
    return _image_downloader
