"""
Meme Grid Editor Backend - Main Application Entry Point.

This FastAPI application serves the imgflip meme catalog as a thumbnail
grid and lets clients edit one meme at a time:
1. Grid - the catalog fetched from imgflip, refreshable and shuffled
2. Editor - the full image of one meme plus its action menu
3. Compositor - logo overlay and caption drawing with Pillow

Catalog and download failures are logged only; clients see stale or empty state.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from memegrid.config import get_settings
from memegrid.routes.editor import router as editor_router
from memegrid.routes.meme import router as meme_router
from memegrid.services.catalog import get_meme_catalog

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

# Configure logging format
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Loads the catalog once on startup, the way the grid fetches on first display.
    """
    # Startup
    settings = get_settings()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(f"Catalog URL: {settings.IMGFLIP_API_URL}")
    logger.info(f"Photo library directory: {settings.PHOTO_LIBRARY_DIR}")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    catalog = get_meme_catalog()
    await catalog.load()
    if not catalog.memes:
        logger.warning("Catalog is empty after startup. POST /api/v1/memes/refresh to retry.")

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Application shutdown")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

# Get settings for app configuration
settings = get_settings()

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
## Meme Grid Editor Backend

Browse the imgflip meme catalog and compose memes from it.

### Flow

1. **Grid** lists the catalog as 3-column rows of 80x80 thumbnails
2. **Editor** opens one meme and downloads its full image
3. **Actions** add a logo, add a caption, save or share the result

### Key Endpoints

- `GET /api/v1/memes` - Meme grid
- `POST /api/v1/memes/refresh` - Refetch and shuffle
- `POST /api/v1/editor` - Open the editor for a meme
- `GET /api/v1/health` - Health check
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# ROUTES
# =============================================================================

app.include_router(meme_router)
app.include_router(editor_router)


# Root endpoint
@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint - points at the API documentation."""
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/api/v1/health",
    }


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def run():
    """Run the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "memegrid.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
