"""Business logic services."""

from .category_service import CategoryService
from .content_store import ContentStore
from .document_service import DocumentService
from .listing_service import ListingService
from .version_ledger import VersionLedger

__all__ = [
    "CategoryService",
    "ContentStore",
    "DocumentService",
    "ListingService",
    "VersionLedger",
]
