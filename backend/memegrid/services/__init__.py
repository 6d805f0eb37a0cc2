# Services package - catalog fetching, image handling and the editor
from memegrid.services.catalog import CatalogService, MemeCatalog
from memegrid.services.editor import EditorSession, EditorSessionStore
from memegrid.services.images import ImageDownloader
from memegrid.services.platform import ImagePicker, PhotoLibrary, ShareSheet

__all__ = [
    "CatalogService",
    "MemeCatalog",
    "EditorSession",
    "EditorSessionStore",
    "ImageDownloader",
    "ImagePicker",
    "PhotoLibrary",
    "ShareSheet",
]
