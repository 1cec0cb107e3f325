"""Category schemas."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class CategoryCreate(BaseModel):
    """Schema for creating a category."""
    label: str = Field(..., max_length=100)
    parent_id: Optional[int] = None

    @field_validator('label')
    @classmethod
    def validate_label(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("label must not be blank")
        return v.strip()


class CategoryUpdate(BaseModel):
    """Schema for renaming or reparenting a category.

    Omit ``parent_id`` to keep the current parent; send ``null`` to move the
    category to the root.
    """
    label: Optional[str] = Field(None, max_length=100)
    parent_id: Optional[int] = None


class CategoryReorderRequest(BaseModel):
    """``ordered_ids[i]`` receives ``sort_order = i``."""
    ordered_ids: List[int]


class CategoryBulkItem(BaseModel):
    id: int
    label: Optional[str] = Field(None, max_length=100)
    parent_id: Optional[int] = None
    sort_order: int = 0
    # Accepted for client compatibility; depth is always derived from the parent.
    depth: Optional[int] = None


class CategoryBulkUpdateRequest(BaseModel):
    items: List[CategoryBulkItem]


class CategoryResponse(BaseModel):
    """Schema for category response."""
    id: int
    code: Optional[str] = None
    label: str
    parent_id: Optional[int] = None
    parent_label: Optional[str] = None
    depth: int
    sort_order: int

    class Config:
        from_attributes = True

    @classmethod
    def from_category(cls, category, labels: Dict[int, str]) -> "CategoryResponse":
        response = cls.model_validate(category)
        if category.parent_id is not None:
            response.parent_label = labels.get(category.parent_id)
        return response


class CategoryDescendantsResponse(BaseModel):
    category_id: int
    descendant_ids: List[int]
