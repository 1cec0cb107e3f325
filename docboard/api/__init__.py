"""API routes."""

from .categories import router as categories_router
from .documents import router as documents_router
from .versions import router as versions_router
from .history import router as history_router
from .uploads import router as uploads_router

__all__ = [
    "categories_router",
    "documents_router",
    "versions_router",
    "history_router",
    "uploads_router",
]
