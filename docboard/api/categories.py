"""Category API endpoints.

Thin adapters over CategoryService; tree validation (self-parent, cycles,
depth) lives in the service.
"""

from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.category import (
    CategoryBulkUpdateRequest,
    CategoryCreate,
    CategoryDescendantsResponse,
    CategoryReorderRequest,
    CategoryResponse,
    CategoryUpdate,
)
from ..services import CategoryService
from ..services.category_service import UNSET, BulkCategoryChange

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=List[CategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    """All categories ordered by sort order."""
    service = CategoryService(db)
    categories = service.list()
    labels = {c.id: c.label for c in categories}
    return [CategoryResponse.from_category(c, labels) for c in categories]


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(data: CategoryCreate, db: Session = Depends(get_db)):
    service = CategoryService(db)
    category = service.create(data.label, parent_id=data.parent_id)
    return CategoryResponse.from_category(category, service.parent_labels())


# --- Fixed-path endpoints (must be before /{category_id} to avoid route shadowing) ---


@router.patch("/reorder", status_code=204)
def reorder_categories(data: CategoryReorderRequest, db: Session = Depends(get_db)):
    """Set ``sort_order`` from the position of each id in the list."""
    CategoryService(db).reorder(data.ordered_ids)
    return Response(status_code=204)


@router.patch("/bulk", status_code=204)
def bulk_update_categories(data: CategoryBulkUpdateRequest, db: Session = Depends(get_db)):
    """Apply several parent / order / label changes in one transaction."""
    changes = [
        BulkCategoryChange(
            id=item.id,
            parent_id=item.parent_id,
            sort_order=item.sort_order,
            label=item.label,
        )
        for item in data.items
    ]
    CategoryService(db).bulk_update(changes)
    return Response(status_code=204)


# --- Single category ---


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(category_id: int, db: Session = Depends(get_db)):
    service = CategoryService(db)
    return CategoryResponse.from_category(service.get(category_id), service.parent_labels())


@router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(category_id: int, data: CategoryUpdate, db: Session = Depends(get_db)):
    """Rename and/or reparent. An explicit ``"parent_id": null`` moves to the root."""
    parent_id = data.parent_id if "parent_id" in data.model_fields_set else UNSET
    service = CategoryService(db)
    category = service.update(category_id, label=data.label, parent_id=parent_id)
    return CategoryResponse.from_category(category, service.parent_labels())


@router.get("/{category_id}/descendants", response_model=CategoryDescendantsResponse)
def get_descendants(category_id: int, db: Session = Depends(get_db)):
    """The category id plus every id below it."""
    ids = CategoryService(db).descendants_of(category_id)
    return CategoryDescendantsResponse(category_id=category_id, descendant_ids=sorted(ids))
