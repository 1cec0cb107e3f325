"""Change-history schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from ..models import LegacyCategoryTag
from ..services.listing_service import ChangeType


class ChangeHistoryItem(BaseModel):
    """One created / updated / deleted event."""
    document_id: int
    title: str
    category_id: Optional[int] = None
    legacy_category_tag: Optional[LegacyCategoryTag] = None
    change_type: ChangeType
    changed_at: datetime
    version_number: Optional[int] = None
    changed_by: Optional[str] = None
    attachments: List[str] = []

    class Config:
        from_attributes = True
