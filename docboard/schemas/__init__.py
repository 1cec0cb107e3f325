"""Pydantic schemas for API validation."""

from .category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryReorderRequest,
    CategoryBulkItem,
    CategoryBulkUpdateRequest,
    CategoryResponse,
    CategoryDescendantsResponse,
)
from .document import (
    DocumentCreate,
    DocumentUpdate,
    DocumentPatch,
    DocumentAttachmentsUpdate,
    DocumentListItem,
    DocumentResponse,
    DocumentDetailResponse,
    DocumentContentResponse,
    PageResponse,
    ImageUploadResponse,
)
from .version import VersionSummary, VersionResponse
from .history import ChangeHistoryItem

__all__ = [
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryReorderRequest",
    "CategoryBulkItem",
    "CategoryBulkUpdateRequest",
    "CategoryResponse",
    "CategoryDescendantsResponse",
    "DocumentCreate",
    "DocumentUpdate",
    "DocumentPatch",
    "DocumentAttachmentsUpdate",
    "DocumentListItem",
    "DocumentResponse",
    "DocumentDetailResponse",
    "DocumentContentResponse",
    "PageResponse",
    "ImageUploadResponse",
    "VersionSummary",
    "VersionResponse",
    "ChangeHistoryItem",
]
