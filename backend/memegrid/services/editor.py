"""
Meme editor sessions.

An editor session is the state behind one opened meme: the downloaded base
image, the current composited image and the action menu. The menu is a
small state machine with a single variable, `selected_action`; only one
action can be open at a time and finishing or dismissing it returns to NONE.

Every compositing step replaces the current image with a new one. Steps are
applied in invocation order and cannot be undone.
"""

import logging
import uuid
from collections import OrderedDict
from typing import Optional

from PIL import Image

from memegrid.config import Settings, get_settings
from memegrid.schemas.meme import EditorAction, EditorStateResponse, MemeRecord, ShareResponse
from memegrid.services import compositor
from memegrid.services.images import ImageDownloader
from memegrid.services.platform import PhotoLibrary, ShareSheet

logger = logging.getLogger(__name__)


class EditorError(Exception):
    """Base exception for editor errors."""
    pass


class EditorStateError(EditorError):
    """Raised when an action does not fit the currently open action."""
    pass


class SessionNotFoundError(EditorError):
    """Raised when an editor session id is unknown."""
    pass


class EditorSession:
    """
    State of one editor screen.

    Attributes:
        meme: The catalog entry being edited
        selected_action: The open action, NONE when the menu is closed
        logo: The last picked overlay image
        caption: The last confirmed caption text
        base_image: The downloaded image, None until the download succeeds
        image: The current composited image
    """

    def __init__(self, meme: MemeRecord, settings: Optional[Settings] = None, session_id: Optional[str] = None):
        self.settings = settings or get_settings()
        self.session_id = session_id or uuid.uuid4().hex
        self.meme = meme
        self.selected_action = EditorAction.NONE
        self.logo: Optional[Image.Image] = None
        self.caption = ""
        self.base_image: Optional[Image.Image] = None
        self.image: Optional[Image.Image] = None

    async def load(self, downloader: ImageDownloader) -> Optional[Image.Image]:
        """Download the full image. On failure the session stays image-less."""
        img = await downloader.try_download(self.meme.url)
        if img is not None:
            self.base_image = img
            self.image = img
            logger.info(f"Loaded {self.meme.name} ({img.width}x{img.height}) into session {self.session_id}")
        return self.image

    def select(self, action: EditorAction) -> None:
        """Open an action. Fails if a different action is already open."""
        if action == EditorAction.NONE:
            self.dismiss()
            return
        if self.selected_action not in (EditorAction.NONE, action):
            raise EditorStateError(
                f"Cannot open {action.value} while {self.selected_action.value} is open"
            )
        self.selected_action = action

    def dismiss(self) -> None:
        self.selected_action = EditorAction.NONE

    def _require(self, action: EditorAction) -> None:
        if self.selected_action != action:
            raise EditorStateError(
                f"{action.value} is not open (current action: {self.selected_action.value})"
            )

    def pick_logo(self, logo: Optional[Image.Image]) -> Optional[Image.Image]:
        """
        Finish the add-logo action with the picker result.

        A None logo means the picker was cancelled and nothing changes.
        """
        self._require(EditorAction.ADD_LOGO)
        try:
            if logo is not None:
                self.logo = logo
                self.image = compositor.overlay(self.image, logo, self.settings.OVERLAY_SCALE)
        finally:
            self.dismiss()
        return self.image

    def add_text(self, text: str) -> Optional[Image.Image]:
        """Finish the add-text action by drawing the caption."""
        self._require(EditorAction.ADD_TEXT)
        try:
            self.caption = text
            self.image = compositor.caption(self.image, text)
        finally:
            self.dismiss()
        return self.image

    def save(self, library: PhotoLibrary) -> Optional[str]:
        """Write the current image to the photo library. Returns the path, if written."""
        self._require(EditorAction.SAVE)
        if self.image is None:
            return None
        path = library.save(self.image, self.meme.name)
        return str(path) if path else None

    def share(self, sheet: ShareSheet) -> ShareResponse:
        """Build the share payload for the current image."""
        self._require(EditorAction.SHARE)
        if self.image is None:
            return ShareResponse()
        return sheet.share(self.image, self.meme.name)

    def state(self) -> EditorStateResponse:
        return EditorStateResponse(
            session_id=self.session_id,
            meme=self.meme,
            selected_action=self.selected_action,
            has_image=self.image is not None,
            has_logo=self.logo is not None,
            caption=self.caption,
            width=self.image.width if self.image is not None else None,
            height=self.image.height if self.image is not None else None,
        )


class EditorSessionStore:
    """
    In-memory registry of open editor sessions. Nothing is persisted.

    Holds at most EDITOR_MAX_SESSIONS sessions; opening one more evicts the
    least recently used.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.sessions: OrderedDict[str, EditorSession] = OrderedDict()

    async def open(self, meme: MemeRecord, downloader: ImageDownloader) -> EditorSession:
        session = EditorSession(meme, self.settings)
        self.sessions[session.session_id] = session
        self._evict()
        await session.load(downloader)
        return session

    def _evict(self) -> None:
        limit = max(1, self.settings.EDITOR_MAX_SESSIONS)
        while len(self.sessions) > limit:
            session_id, _ = self.sessions.popitem(last=False)
            logger.info(f"Evicted editor session {session_id}")

    def get(self, session_id: str) -> EditorSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Editor session {session_id} not found")
        self.sessions.move_to_end(session_id)
        return session

    def close(self, session_id: str) -> None:
        if self.sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(f"Editor session {session_id} not found")
        logger.info(f"Closed editor session {session_id}")


# Dependency injection support
_session_store = None


def get_session_store() -> EditorSessionStore:
    global _session_store
    if _session_store is None:
        _session_store = EditorSessionStore()
    return _session_store
