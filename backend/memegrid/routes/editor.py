"""
Meme editor API routes.

One editor session per opened meme. The session downloads the full image,
then offers four mutually exclusive actions:
1. add_logo - the picker result is scaled and centered on the image
2. add_text - the caption is drawn at the top of the image
3. save - the image is written to the photo library
4. share - the image is returned as a share payload
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from memegrid.schemas.meme import (
    CaptionRequest,
    EditorAction,
    EditorStateResponse,
    ErrorResponse,
    LogoRequest,
    OpenEditorRequest,
    SaveResponse,
    ShareResponse,
)
from memegrid.services.catalog import MemeCatalog, get_meme_catalog
from memegrid.services.editor import (
    EditorSession,
    EditorSessionStore,
    EditorStateError,
    SessionNotFoundError,
    get_session_store,
)
from memegrid.services.images import ImageDownloader, get_image_downloader, image_to_png
from memegrid.services.platform import (
    ImagePicker,
    PhotoLibrary,
    ShareSheet,
    get_image_picker,
    get_photo_library,
    get_share_sheet,
)

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/editor",
    tags=["editor"],
)

SESSION_RESPONSES = {
    404: {"description": "Unknown editor session", "model": ErrorResponse},
}

ACTION_RESPONSES = {
    **SESSION_RESPONSES,
    409: {"description": "Another action is open", "model": ErrorResponse},
}


def _conflict(e: EditorStateError, session: EditorSession) -> HTTPException:
    logger.warning(f"Editor state error in session {session.session_id}: {e}")
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "error": "editor_state_error",
            "message": str(e),
            "details": {"selected_action": session.selected_action.value},
        }
    )


async def get_session(
    session_id: str,
    store: Annotated[EditorSessionStore, Depends(get_session_store)],
) -> EditorSession:
    """Resolve the session in the path, 404 when unknown."""
    try:
        return store.get(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "session_not_found",
                "message": str(e),
                "details": {"session_id": session_id},
            }
        )


@router.post(
    "",
    response_model=EditorStateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
    summary="Open the editor",
    description="Open an editor session for a catalog entry and download its full image.",
)
async def open_editor(
    request: OpenEditorRequest,
    catalog: Annotated[MemeCatalog, Depends(get_meme_catalog)],
    store: Annotated[EditorSessionStore, Depends(get_session_store)],
    downloader: Annotated[ImageDownloader, Depends(get_image_downloader)],
) -> EditorStateResponse:
    meme = catalog.get(request.meme_id)
    if meme is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "meme_not_found",
                "message": f"Meme {request.meme_id} is not in the current catalog",
                "details": {"meme_id": request.meme_id},
            }
        )
    session = await store.open(meme, downloader)
    logger.info(f"Opened editor session {session.session_id} for meme {meme.id}")
    return session.state()


@router.get("/{session_id}", response_model=EditorStateResponse, responses=SESSION_RESPONSES)
async def get_editor_state(
    session: Annotated[EditorSession, Depends(get_session)],
) -> EditorStateResponse:
    return session.state()


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT, responses=SESSION_RESPONSES)
async def close_editor(
    session: Annotated[EditorSession, Depends(get_session)],
    store: Annotated[EditorSessionStore, Depends(get_session_store)],
) -> Response:
    store.close(session.session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{session_id}/image",
    responses={
        200: {"content": {"image/png": {}}},
        404: {"description": "Unknown session or image not downloaded", "model": ErrorResponse},
    },
    summary="Current composited image",
)
async def get_editor_image(
    session: Annotated[EditorSession, Depends(get_session)],
) -> Response:
    if session.image is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "image_not_loaded",
                "message": f"The image for {session.meme.name} has not been downloaded",
                "details": {"session_id": session.session_id},
            }
        )
    return Response(content=image_to_png(session.image), media_type="image/png")


@router.post(
    "/{session_id}/actions/{action}",
    response_model=EditorStateResponse,
    responses=ACTION_RESPONSES,
    summary="Open an action",
)
async def select_action(
    action: EditorAction,
    session: Annotated[EditorSession, Depends(get_session)],
) -> EditorStateResponse:
    try:
        session.select(action)
    except EditorStateError as e:
        raise _conflict(e, session)
    return session.state()


@router.delete(
    "/{session_id}/actions",
    response_model=EditorStateResponse,
    responses=SESSION_RESPONSES,
    summary="Dismiss the open action",
)
async def dismiss_action(
    session: Annotated[EditorSession, Depends(get_session)],
) -> EditorStateResponse:
    session.dismiss()
    return session.state()


@router.post(
    "/{session_id}/logo",
    response_model=EditorStateResponse,
    responses=ACTION_RESPONSES,
    summary="Finish add_logo with the picked image",
)
async def add_logo(
    request: LogoRequest,
    session: Annotated[EditorSession, Depends(get_session)],
    picker: Annotated[ImagePicker, Depends(get_image_picker)],
) -> EditorStateResponse:
    try:
        session.pick_logo(picker.pick(request.image_base64))
    except EditorStateError as e:
        raise _conflict(e, session)
    return session.state()


@router.post(
    "/{session_id}/text",
    response_model=EditorStateResponse,
    responses=ACTION_RESPONSES,
    summary="Finish add_text with the confirmed caption",
)
async def add_text(
    request: CaptionRequest,
    session: Annotated[EditorSession, Depends(get_session)],
) -> EditorStateResponse:
    try:
        session.add_text(request.text)
    except EditorStateError as e:
        raise _conflict(e, session)
    return session.state()


@router.post(
    "/{session_id}/save",
    response_model=SaveResponse,
    responses=ACTION_RESPONSES,
    summary="Save to the photo library",
)
async def save_image(
    session: Annotated[EditorSession, Depends(get_session)],
    library: Annotated[PhotoLibrary, Depends(get_photo_library)],
) -> SaveResponse:
    try:
        session.select(EditorAction.SAVE)
        path = session.save(library)
    except EditorStateError as e:
        raise _conflict(e, session)
    finally:
        if session.selected_action == EditorAction.SAVE:
            session.dismiss()
    return SaveResponse(saved=path is not None, path=path)


@router.post(
    "/{session_id}/share",
    response_model=ShareResponse,
    responses=ACTION_RESPONSES,
    summary="Share the current image",
)
async def share_image(
    session: Annotated[EditorSession, Depends(get_session)],
    sheet: Annotated[ShareSheet, Depends(get_share_sheet)],
) -> ShareResponse:
    try:
        session.select(EditorAction.SHARE)
        payload = session.share(sheet)
    except EditorStateError as e:
        raise _conflict(e, session)
    finally:
        if session.selected_action == EditorAction.SHARE:
            session.dismiss()
    return payload
