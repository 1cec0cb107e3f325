"""Data access repositories."""

from .base import BaseRepository
from .category_repository import CategoryRepository
from .document_repository import DocumentRepository
from .version_repository import VersionRepository

__all__ = [
    "BaseRepository",
    "CategoryRepository",
    "DocumentRepository",
    "VersionRepository",
]
