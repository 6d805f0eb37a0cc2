"""
Meme catalog and editor schemas.

This module contains all Pydantic models for the imgflip wire format and
for request/response validation in the grid and editor routes.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class EditorAction(str, Enum):
    """Actions offered by the editor menu. Only one can be open at a time."""
    NONE = "none"
    ADD_LOGO = "add_logo"
    ADD_TEXT = "add_text"
    SAVE = "save"
    SHARE = "share"


# =============================================================================
# IMGFLIP CATALOG SCHEMAS
# =============================================================================

class MemeRecord(BaseModel):
    """
    One catalog entry describing a meme image template.

    Immutable once decoded. Identity is the `id` field.
    """

    id: str = Field(..., description="imgflip template id")
    name: str = Field(..., description="Human readable template name")
    url: str = Field(..., description="URL of the full resolution image")
    width: int = Field(..., description="Image width in pixels")
    height: int = Field(..., description="Image height in pixels")
    box_count: int = Field(..., description="Number of caption boxes the template has")

    model_config = ConfigDict(frozen=True)


class MemeList(BaseModel):
    """The nested `data` object of the catalog response."""

    memes: list[MemeRecord] = Field(default_factory=list)


class MemeCatalogResponse(BaseModel):
    """
    Response schema of `GET https://api.imgflip.com/get_memes`.

    {
        "success": true,
        "data": {"memes": [{"id": ..., "name": ..., "url": ..., "width": ...,
                            "height": ..., "box_count": ...}, ...]}
    }

    Keys other than `data` are ignored.
    """

    data: MemeList


# =============================================================================
# GRID SCHEMAS
# =============================================================================

class GridTile(BaseModel):
    """A single grid cell."""

    id: str
    name: str
    thumbnail_base64: Optional[str] = Field(
        None,
        description="PNG thumbnail as a data URI, null when not rendered or the download failed"
    )


class GridResponse(BaseModel):
    """The catalog laid out as rows of square thumbnails."""

    columns: int
    thumbnail_size: int
    is_refreshing: bool
    count: int
    rows: list[list[GridTile]]


# =============================================================================
# EDITOR SCHEMAS
# =============================================================================

class OpenEditorRequest(BaseModel):
    """Request to open the editor for one catalog entry."""

    meme_id: str = Field(..., min_length=1, examples=["181913649"])


class EditorStateResponse(BaseModel):
    """Snapshot of an editor session."""

    session_id: str
    meme: MemeRecord
    selected_action: EditorAction
    has_image: bool = Field(..., description="False until the full image has been downloaded")
    has_logo: bool
    caption: str = ""
    width: Optional[int] = None
    height: Optional[int] = None


class LogoRequest(BaseModel):
    """
    Result of the image picker.

    A null image means the picker was cancelled.
    """

    image_base64: Optional[str] = Field(
        None,
        description="Picked image, raw base64 or a data URI"
    )


class CaptionRequest(BaseModel):
    """Caption text confirmed in the text editor."""

    text: str = Field("", max_length=2000)

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Drop trailing newlines left behind by multi-line inputs."""
        return v.rstrip("\r\n")


class SaveResponse(BaseModel):
    """Result of writing the current image to the photo library."""

    saved: bool
    path: Optional[str] = None


class ShareResponse(BaseModel):
    """Share payload for the current image."""

    filename: Optional[str] = None
    media_type: str = "image/png"
    image_base64: Optional[str] = Field(
        None,
        description="Current image as a PNG data URI, null when there is no image yet"
    )


# =============================================================================
# ERROR RESPONSE SCHEMA
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str = Field(..., description="Error type/code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict] = Field(None, description="Additional error details")
