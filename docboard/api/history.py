"""Change history and trash endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.document import DocumentListItem, DocumentResponse, PageResponse
from ..schemas.history import ChangeHistoryItem
from ..services import ListingService

router = APIRouter(prefix="/api/history", tags=["history"])


@router.get("/changes", response_model=List[ChangeHistoryItem])
def list_changes(
    change_type: Optional[str] = Query(None, description="created, updated or deleted"),
    db: Session = Depends(get_db),
):
    """Created / updated / deleted events across all documents, newest first."""
    events = ListingService(db).change_history(change_type)
    return [ChangeHistoryItem.model_validate(event) for event in events]


@router.get("/deletions", response_model=List[DocumentResponse])
def list_deletions(db: Session = Depends(get_db)):
    """Every document currently in the trash, most recently deleted first."""
    return ListingService(db).deletion_history()


@router.get("/deleted", response_model=PageResponse[DocumentListItem])
def list_deleted(
    page: int = Query(0),
    size: Optional[int] = Query(None),
    keyword: Optional[str] = None,
    post_id: Optional[int] = Query(None, description="Look up a single trashed document"),
    db: Session = Depends(get_db),
):
    """Paginated trash."""
    result = ListingService(db).list_deleted(page=page, size=size, keyword=keyword, document_id=post_id)
    items = [DocumentListItem.model_validate(doc) for doc in result.items]
    return PageResponse[DocumentListItem].from_result(result, items)
