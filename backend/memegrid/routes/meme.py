"""
Meme catalog API routes.

This module defines the REST API endpoints behind the grid screen:
listing the catalog as a grid, pull-to-refresh and per-meme thumbnails.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from memegrid.config import get_settings
from memegrid.schemas.meme import ErrorResponse, GridResponse, MemeRecord
from memegrid.services.catalog import MemeCatalog, get_meme_catalog
from memegrid.services.images import ImageDownloader, get_image_downloader, image_to_png

# Configure logging
logger = logging.getLogger(__name__)

# Create router with prefix and tags
router = APIRouter(
    prefix="/api/v1",
    tags=["memes"],
)


def _meme_or_404(catalog: MemeCatalog, meme_id: str) -> MemeRecord:
    meme = catalog.get(meme_id)
    if meme is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "meme_not_found",
                "message": f"Meme {meme_id} is not in the current catalog",
                "details": {"meme_id": meme_id},
            }
        )
    return meme


@router.get(
    "/memes",
    response_model=GridResponse,
    summary="Meme grid",
    description="""
    The current catalog laid out as a grid of square thumbnails.

    Thumbnails are downloaded one at a time while the grid is rendered.
    A tile whose thumbnail failed to download has a null thumbnail.
    """,
)
async def get_grid(
    catalog: Annotated[MemeCatalog, Depends(get_meme_catalog)],
    downloader: Annotated[ImageDownloader, Depends(get_image_downloader)],
    thumbnails: Annotated[bool, Query(description="Render thumbnails")] = True,
) -> GridResponse:
    logger.info(f"Rendering grid for {len(catalog.memes)} memes (thumbnails={thumbnails})")
    return await catalog.grid(downloader, thumbnails=thumbnails)


@router.post(
    "/memes/refresh",
    response_model=GridResponse,
    summary="Refresh the catalog",
    description="Refetch the catalog and shuffle it. Fetch failures keep the previous list.",
)
async def refresh_grid(
    catalog: Annotated[MemeCatalog, Depends(get_meme_catalog)],
    downloader: Annotated[ImageDownloader, Depends(get_image_downloader)],
) -> GridResponse:
    await catalog.refresh()
    return await catalog.grid(downloader, thumbnails=False)


@router.get(
    "/memes/{meme_id}",
    response_model=MemeRecord,
    responses={404: {"model": ErrorResponse}},
    summary="One catalog entry",
)
async def get_meme(
    meme_id: str,
    catalog: Annotated[MemeCatalog, Depends(get_meme_catalog)],
) -> MemeRecord:
    return _meme_or_404(catalog, meme_id)


@router.get(
    "/memes/{meme_id}/thumbnail",
    responses={
        200: {"content": {"image/png": {}}},
        204: {"description": "Thumbnail could not be downloaded"},
        404: {"model": ErrorResponse},
    },
    summary="Thumbnail image",
)
async def get_thumbnail(
    meme_id: str,
    catalog: Annotated[MemeCatalog, Depends(get_meme_catalog)],
    downloader: Annotated[ImageDownloader, Depends(get_image_downloader)],
) -> Response:
    meme = _meme_or_404(catalog, meme_id)
    thumb = await downloader.thumbnail(meme.url)
    if thumb is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return Response(content=image_to_png(thumb), media_type="image/png")


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Check if the backend service is running.",
)
async def health_check(
    catalog: Annotated[MemeCatalog, Depends(get_meme_catalog)],
):
    """
    Simple health check endpoint.

    Returns:
        dict: Health status and the size of the loaded catalog
    """
    settings = get_settings()
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "memes_loaded": len(catalog.memes),
    }
