"""
Configuration module for the Meme Grid Editor Backend.

This module handles all environment variable loading and configuration settings.
The catalog endpoint, layout constants and compositing style are configured here.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every value has a working default, so the service runs without a .env file.
    """

    # ==========================================================================
    # APPLICATION SETTINGS
    # ==========================================================================

    APP_NAME: str = "Meme Grid Editor Backend"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # ==========================================================================
    # CATALOG SETTINGS (imgflip)
    # ==========================================================================

    # Public endpoint, no authentication and no query parameters
    IMGFLIP_API_URL: str = "https://api.imgflip.com/get_memes"

    # Timeout for catalog and image downloads (in seconds)
    HTTP_TIMEOUT: float = 30.0

    # ==========================================================================
    # GRID SETTINGS
    # ==========================================================================

    GRID_COLUMNS: int = 3
    THUMBNAIL_SIZE: int = 80
    THUMBNAIL_CORNER_RADIUS: int = 10

    # The refreshing flag is cleared this long after a refresh starts
    REFRESH_DELAY_SECONDS: float = 1.0

    # ==========================================================================
    # COMPOSITOR SETTINGS
    # ==========================================================================

    # Logo is scaled to this fraction of the base width and height
    OVERLAY_SCALE: float = 0.5

    # Caption rectangle: (margin, margin, width - 2 * margin, height)
    CAPTION_MARGIN: int = 10
    CAPTION_HEIGHT: int = 100
    CAPTION_FONT_SIZE: int = 24
    CAPTION_COLOR: str = "white"

    # Optional path to a bold TrueType font. When unset, common system
    # locations are searched, then Pillow's bundled font is used.
    CAPTION_FONT_PATH: Optional[str] = None

    # ==========================================================================
    # EDITOR SETTINGS
    # ==========================================================================

    # Open editor sessions kept in memory; the least recently used is
    # evicted when a new session would exceed this
    EDITOR_MAX_SESSIONS: int = 32

    # ==========================================================================
    # PLATFORM SETTINGS
    # ==========================================================================

    # Directory standing in for the device photo library
    PHOTO_LIBRARY_DIR: str = "photo_library"

    # ==========================================================================
    # CORS SETTINGS
    # ==========================================================================

    # Comma separated list, e.g. "https://your-frontend.com,http://localhost:3000"
    CORS_ORIGINS: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS string into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    class Config:
        # Load settings from .env file if it exists
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once
    and reused across the application.

    Returns:
        Settings: The application settings instance
    """
    return Settings()
