"""
Meme Catalog Service.

This module handles all communication with the imgflip catalog endpoint
and holds the catalog currently shown in the grid.

The catalog is responsible for:
1. Fetching and decoding the list of meme templates
2. Keeping the previous list when a fetch fails (failures are only logged)
3. Refreshing (refetch + shuffle) and laying the list out as a grid
"""

import asyncio
import logging
import random
from typing import Optional

import httpx
from pydantic import ValidationError

from memegrid.config import Settings, get_settings
from memegrid.schemas.meme import GridResponse, GridTile, MemeCatalogResponse, MemeRecord
from memegrid.services.images import ImageDownloader, image_to_base64

# Configure logging
logger = logging.getLogger(__name__)


class CatalogServiceError(Exception):
    """Base exception for catalog service errors."""
    pass


class CatalogConnectionError(CatalogServiceError):
    """Raised when unable to reach the catalog endpoint."""
    pass


class CatalogResponseError(CatalogServiceError):
    """Raised when the catalog endpoint returns an invalid response."""
    pass


class CatalogService:
    """
    Service for fetching the meme catalog from imgflip.

    One GET per call, no authentication, no pagination, no retry.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize the catalog service.

        Args:
            settings: Optional settings instance. If not provided, uses default settings.
        """
        self.settings = settings or get_settings()

    def _parse_response(self, response_data: object) -> list[MemeRecord]:
        """
        Decode the catalog payload.

        Raises:
            CatalogResponseError: If the payload does not match the expected shape
        """
        try:
            catalog = MemeCatalogResponse.model_validate(response_data)
        except ValidationError as e:
            raise CatalogResponseError(f"Failed to decode catalog response: {e}") from e
        return list(catalog.data.memes)

    async def fetch_memes(self) -> list[MemeRecord]:
        """
        Fetch the meme catalog.

        Returns:
            The decoded meme records, in server order

        Raises:
            CatalogConnectionError: If unable to connect to the endpoint
            CatalogResponseError: If the endpoint returns an invalid response
        """
        url = self.settings.IMGFLIP_API_URL
        logger.info(f"Fetching meme catalog from {url}")

        try:
            async with httpx.AsyncClient(timeout=self.settings.HTTP_TIMEOUT) as client:
                response = await client.get(url, headers={"Accept": "application/json"})

                if response.status_code != 200:
                    raise CatalogResponseError(
                        f"Catalog endpoint returned status {response.status_code}: "
                        f"{response.text[:200]}"
                    )

                response_data = response.json()

        except httpx.TimeoutException as e:
            raise CatalogConnectionError(
                f"Catalog request timed out after {self.settings.HTTP_TIMEOUT} seconds."
            ) from e

        except httpx.HTTPError as e:
            raise CatalogConnectionError(f"HTTP error fetching catalog: {e}") from e

        except ValueError as e:
            raise CatalogResponseError(f"Catalog response is not valid JSON: {e}") from e

        memes = self._parse_response(response_data)
        logger.info(f"Fetched {len(memes)} memes")
        return memes


class MemeCatalog:
    """
    The catalog currently displayed in the grid.

    Holds the last successfully fetched list for the lifetime of the process.
    """

    def __init__(
        self,
        service: Optional[CatalogService] = None,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings or get_settings()
        self.service = service or CatalogService(self.settings)
        self.rng = rng or random.Random()
        self.memes: list[MemeRecord] = []
        self.is_refreshing = False
        self._reset_handle: Optional[asyncio.TimerHandle] = None

    async def load(self) -> list[MemeRecord]:
        """
        Fetch the catalog and replace the current list.

        On any failure the previous list is kept and the error is only logged.
        """
        try:
            self.memes = await self.service.fetch_memes()
        except CatalogServiceError as e:
            logger.error(f"Error fetching data: {e}")
        return self.memes

    async def refresh(self) -> list[MemeRecord]:
        """
        Refetch the catalog and shuffle it.

        The refreshing flag is cleared after REFRESH_DELAY_SECONDS whether
        or not the fetch has completed by then.
        """
        self.is_refreshing = True
        shuffled = list(await self.load())
        self.rng.shuffle(shuffled)
        self.memes = shuffled
        self._schedule_refresh_reset()
        return self.memes

    def _schedule_refresh_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
        loop = asyncio.get_running_loop()
        self._reset_handle = loop.call_later(self.settings.REFRESH_DELAY_SECONDS, self._clear_refreshing)

    def _clear_refreshing(self) -> None:
        self.is_refreshing = False
        self._reset_handle = None

    def get(self, meme_id: str) -> Optional[MemeRecord]:
        """Return the record with the given id, or None."""
        for meme in self.memes:
            if meme.id == meme_id:
                return meme
        return None

    async def grid(self, downloader: ImageDownloader, thumbnails: bool = True) -> GridResponse:
        """
        Lay the catalog out as rows of GRID_COLUMNS tiles.

        Thumbnails are downloaded one item at a time at render time. A failed
        download leaves the tile without a thumbnail.
        """
        columns = max(1, self.settings.GRID_COLUMNS)
        tiles: list[GridTile] = []
        for meme in list(self.memes):
            thumbnail_base64 = None
            if thumbnails:
                thumb = await downloader.thumbnail(meme.url)
                if thumb is not None:
                    thumbnail_base64 = image_to_base64(thumb)
            tiles.append(GridTile(id=meme.id, name=meme.name, thumbnail_base64=thumbnail_base64))

        rows = [tiles[i:i + columns] for i in range(0, len(tiles), columns)]
        return GridResponse(
            columns=columns,
            thumbnail_size=self.settings.THUMBNAIL_SIZE,
            is_refreshing=self.is_refreshing,
            count=len(tiles),
            rows=rows,
        )


# Dependency injection support
_meme_catalog = None


def get_meme_catalog() -> MemeCatalog:
    global _meme_catalog
    if _meme_catalog is None:
        _meme_catalog = MemeCatalog()
    return _meme_catalog
