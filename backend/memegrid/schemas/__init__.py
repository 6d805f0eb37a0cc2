# Schemas package - Pydantic models for the catalog wire format and API payloads
from memegrid.schemas.meme import (
    EditorAction,
    MemeRecord,
    MemeCatalogResponse,
    GridTile,
    GridResponse,
    OpenEditorRequest,
    EditorStateResponse,
    LogoRequest,
    CaptionRequest,
    SaveResponse,
    ShareResponse,
    ErrorResponse,
)

__all__ = [
    "EditorAction",
    "MemeRecord",
    "MemeCatalogResponse",
    "GridTile",
    "GridResponse",
    "OpenEditorRequest",
    "EditorStateResponse",
    "LogoRequest",
    "CaptionRequest",
    "SaveResponse",
    "ShareResponse",
    "ErrorResponse",
]
