"""
Pytest configuration and fixtures.
"""

from io import BytesIO
from typing import Optional
from unittest.mock import MagicMock

import pytest
from PIL import Image

from memegrid.config import Settings
from memegrid.schemas.meme import MemeRecord
from memegrid.services import catalog as catalog_module
from memegrid.services import editor as editor_module
from memegrid.services import images as images_module
from memegrid.services import platform as platform_module
from memegrid.services.images import ImageDownloader


# ============================================================================
# Helpers
# ============================================================================

def make_image(width: int, height: int, color=(0, 0, 0), mode: str = "RGB") -> Image.Image:
    """Solid color image."""
    return Image.new(mode, (width, height), color)


def png_bytes(img: Image.Image) -> bytes:
    buffered = BytesIO()
    img.save(buffered, format="PNG")
    return buffered.getvalue()


def jpeg_bytes(img: Image.Image, orientation: Optional[int] = None) -> bytes:
    """Encode as JPEG, optionally tagging an EXIF orientation."""
    buffered = BytesIO()
    if orientation is None:
        img.save(buffered, format="JPEG")
    else:
        exif = Image.Exif()
        exif[0x0112] = orientation
        img.save(buffered, format="JPEG", exif=exif.tobytes())
    return buffered.getvalue()


def make_response(status_code: int = 200, json_data=None, content: bytes = b"", text: str = "") -> MagicMock:
    """A stand-in for httpx.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.content = content
    response.text = text
    return response


def meme_payload(*memes: dict) -> dict:
    """Catalog payload in the imgflip wire format."""
    return {"success": True, "data": {"memes": list(memes)}}


def meme_dict(meme_id: str, width: int = 120, height: int = 90, name: Optional[str] = None) -> dict:
    return {
        "id": meme_id,
        "name": name or f"Meme {meme_id}",
        "url": f"https://i.imgflip.com/{meme_id}.png",
        "width": width,
        "height": height,
        "box_count": 2,
    }


def meme_record(meme_id: str, width: int = 120, height: int = 90) -> MemeRecord:
    return MemeRecord(**meme_dict(meme_id, width, height))


class FakeDownloader(ImageDownloader):
    """Serves images from a dict keyed by URL. Missing URLs fail like a broken download."""

    def __init__(self, images: dict, settings: Optional[Settings] = None):
        super().__init__(settings or Settings())
        self.images = images
        self.requested: list[str] = []

    async def download(self, url: str) -> Image.Image:
        self.requested.append(url)
        img = self.images.get(url)
        if img is None:
            raise images_module.ImageDownloadError(f"no image for {url}")
        return img.copy()


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with a short refresh delay and a temporary photo library."""
    return Settings(REFRESH_DELAY_SECONDS=0.01, PHOTO_LIBRARY_DIR=str(tmp_path / "library"))


@pytest.fixture
def reset_singletons(settings):
    """Replace the process-wide services with fresh ones built from `settings`."""
    catalog_module._meme_catalog = catalog_module.MemeCatalog(settings=settings)
    editor_module._session_store = editor_module.EditorSessionStore(settings)
    images_module._image_downloader = ImageDownloader(settings)
    platform_module._photo_library = platform_module.PhotoLibrary(settings)
    yield
    catalog_module._meme_catalog = None
    editor_module._session_store = None
    images_module._image_downloader = None
    platform_module._photo_library = None
