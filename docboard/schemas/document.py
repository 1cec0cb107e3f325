"""Document schemas."""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator

from ..models import LegacyCategoryTag

ItemT = TypeVar("ItemT")


class DocumentCreate(BaseModel):
    """Schema for creating a document."""
    title: str = Field(..., max_length=200)
    category_id: Optional[int] = None
    content: str
    is_notice: bool = False
    attachments: List[str] = []
    author: Optional[str] = Field(None, max_length=100)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        return v.strip()

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "VPN setup",
                    "category_id": 2,
                    "content": "# VPN setup\n\n1. Install the client...",
                    "is_notice": False,
                }
            ]
        }
    }


class DocumentUpdate(BaseModel):
    """Full replacement of title and body."""
    title: str = Field(..., max_length=200)
    content: str
    author: Optional[str] = Field(None, max_length=100)


class DocumentPatch(BaseModel):
    """Any combination of fields; at least one must be present."""
    title: Optional[str] = Field(None, max_length=200)
    category_id: Optional[int] = None
    is_notice: Optional[bool] = None
    content: Optional[str] = None
    author: Optional[str] = Field(None, max_length=100)


class DocumentAttachmentsUpdate(BaseModel):
    attachments: List[str]


class DocumentListItem(BaseModel):
    """Schema for document list response (no content)."""
    id: int
    title: str
    category_id: Optional[int] = None
    legacy_category_tag: Optional[LegacyCategoryTag] = None
    is_notice: bool
    view_count: int
    attachments: List[str] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DocumentResponse(DocumentListItem):
    """Schema for a document without its body."""
    content_path: Optional[str] = None
    current_version_id: Optional[int] = None
    deleted: bool = False


class DocumentDetailResponse(DocumentResponse):
    """Document plus its current body."""
    content: Optional[str] = None

    @classmethod
    def from_document(cls, document, content: Optional[str]) -> "DocumentDetailResponse":
        response = cls.model_validate(document)
        response.content = content
        return response


class DocumentContentResponse(BaseModel):
    content: str


class PageResponse(BaseModel, Generic[ItemT]):
    """Paginated list envelope."""
    items: List[ItemT]
    page: int
    size: int
    total_elements: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @classmethod
    def from_result(cls, result, items: List) -> "PageResponse":
        """Build from a service PageResult whose items were already converted."""
        return cls(
            items=items,
            page=result.page,
            size=result.size,
            total_elements=result.total_elements,
            total_pages=result.total_pages,
            has_next=result.has_next,
            has_previous=result.has_previous,
        )


class ImageUploadResponse(BaseModel):
    url: str
