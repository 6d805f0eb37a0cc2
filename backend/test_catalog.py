"""
Catalog tests: fetching, failure handling, refresh shuffle and grid layout.
"""

import asyncio
import random
from collections import Counter
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from pydantic import ValidationError

from conftest import FakeDownloader, make_image, make_response, meme_dict, meme_payload, meme_record
from memegrid.services.catalog import (
    CatalogConnectionError,
    CatalogResponseError,
    CatalogService,
    MemeCatalog,
)


class TestCatalogService:

    async def test_fetch_decodes_memes(self, settings):
        payload = meme_payload(meme_dict("1"), meme_dict("2", width=500, height=400))
        service = CatalogService(settings)

        with patch("httpx.AsyncClient.get", return_value=make_response(json_data=payload)) as mock_get:
            memes = await service.fetch_memes()

        mock_get.assert_awaited_once()
        assert mock_get.call_args.args[0] == "https://api.imgflip.com/get_memes"
        assert [m.id for m in memes] == ["1", "2"]
        assert memes[1].width == 500
        assert memes[1].height == 400
        assert memes[1].box_count == 2
        assert memes[0].url == "https://i.imgflip.com/1.png"

    def test_records_are_immutable_and_hashable(self):
        record = meme_record("1")

        with pytest.raises(ValidationError):
            record.name = "changed"
        assert {record, meme_record("1")} == {record}

    async def test_non_200_is_response_error(self, settings):
        service = CatalogService(settings)

        with patch("httpx.AsyncClient.get", return_value=make_response(status_code=503, text="down")):
            with pytest.raises(CatalogResponseError):
                await service.fetch_memes()

    async def test_invalid_json_is_response_error(self, settings):
        response = make_response()
        response.json.side_effect = ValueError("Expecting value")
        service = CatalogService(settings)

        with patch("httpx.AsyncClient.get", return_value=response):
            with pytest.raises(CatalogResponseError):
                await service.fetch_memes()

    async def test_unexpected_shape_is_response_error(self, settings):
        service = CatalogService(settings)

        with patch("httpx.AsyncClient.get", return_value=make_response(json_data={"data": {"memes": [{"id": "1"}]}})):
            with pytest.raises(CatalogResponseError):
                await service.fetch_memes()

    async def test_connection_failure_is_connection_error(self, settings):
        service = CatalogService(settings)

        with patch("httpx.AsyncClient.get", side_effect=httpx.ConnectError("refused")):
            with pytest.raises(CatalogConnectionError):
                await service.fetch_memes()

    async def test_timeout_is_connection_error(self, settings):
        service = CatalogService(settings)

        with patch("httpx.AsyncClient.get", side_effect=httpx.ReadTimeout("slow")):
            with pytest.raises(CatalogConnectionError):
                await service.fetch_memes()


def stub_service(*results):
    """A CatalogService whose fetch_memes returns (or raises) each result in turn."""
    service = MagicMock(spec=CatalogService)
    service.fetch_memes = AsyncMock(side_effect=list(results))
    return service


class TestMemeCatalog:

    async def test_load_replaces_catalog(self, settings):
        first = [meme_record("1")]
        catalog = MemeCatalog(stub_service(first), settings)

        assert await catalog.load() == first
        assert catalog.memes == first

    async def test_failed_load_keeps_previous_catalog(self, settings):
        first = [meme_record("1"), meme_record("2")]
        catalog = MemeCatalog(stub_service(first, CatalogConnectionError("offline")), settings)

        await catalog.load()
        await catalog.load()

        assert catalog.memes == first

    async def test_failed_first_load_leaves_empty_catalog(self, settings):
        catalog = MemeCatalog(stub_service(CatalogResponseError("garbage")), settings)

        assert await catalog.load() == []

    async def test_refresh_is_permutation_of_fetched_records(self, settings):
        old = [meme_record("old")]
        fresh = [meme_record(str(i)) for i in range(20)]
        catalog = MemeCatalog(stub_service(old, fresh), settings, rng=random.Random(7))
        await catalog.load()

        refreshed = await catalog.refresh()

        assert Counter(m.id for m in refreshed) == Counter(m.id for m in fresh)
        assert [m.id for m in refreshed] != [m.id for m in fresh]

    async def test_refresh_after_failed_fetch_shuffles_stale_list(self, settings):
        stale = [meme_record(str(i)) for i in range(10)]
        catalog = MemeCatalog(stub_service(stale, CatalogConnectionError("offline")), settings, rng=random.Random(1))
        await catalog.load()

        refreshed = await catalog.refresh()

        assert sorted(m.id for m in refreshed) == sorted(m.id for m in stale)

    async def test_refreshing_flag_clears_after_delay(self, settings):
        catalog = MemeCatalog(stub_service([meme_record("1")]), settings)

        await catalog.refresh()
        assert catalog.is_refreshing is True

        await asyncio.sleep(settings.REFRESH_DELAY_SECONDS * 5)
        assert catalog.is_refreshing is False

    def test_get_by_id(self, settings):
        catalog = MemeCatalog(stub_service(), settings)
        catalog.memes = [meme_record("1"), meme_record("2")]

        assert catalog.get("2").id == "2"
        assert catalog.get("3") is None


class TestGrid:

    async def test_rows_of_three(self, settings):
        catalog = MemeCatalog(stub_service(), settings)
        catalog.memes = [meme_record(str(i)) for i in range(7)]

        grid = await catalog.grid(FakeDownloader({}, settings), thumbnails=False)

        assert grid.columns == 3
        assert grid.count == 7
        assert [len(row) for row in grid.rows] == [3, 3, 1]
        assert [tile.id for row in grid.rows for tile in row] == [str(i) for i in range(7)]

    async def test_thumbnails_downloaded_per_item(self, settings):
        catalog = MemeCatalog(stub_service(), settings)
        catalog.memes = [meme_record("1"), meme_record("2")]
        downloader = FakeDownloader({"https://i.imgflip.com/1.png": make_image(200, 100)}, settings)

        grid = await catalog.grid(downloader)

        tiles = grid.rows[0]
        assert tiles[0].thumbnail_base64.startswith("data:image/png;base64,")
        assert tiles[1].thumbnail_base64 is None
        assert downloader.requested == ["https://i.imgflip.com/1.png", "https://i.imgflip.com/2.png"]

    async def test_thumbnails_are_not_cached(self, settings):
        catalog = MemeCatalog(stub_service(), settings)
        catalog.memes = [meme_record("1")]
        downloader = FakeDownloader({"https://i.imgflip.com/1.png": make_image(200, 100)}, settings)

        await catalog.grid(downloader)
        await catalog.grid(downloader)

        assert len(downloader.requested) == 2

    async def test_empty_catalog(self, settings):
        catalog = MemeCatalog(stub_service(), settings)

        grid = await catalog.grid(FakeDownloader({}, settings))

        assert grid.count == 0
        assert grid.rows == []
