"""Version schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class VersionSummary(BaseModel):
    """Version metadata without content."""
    id: int
    document_id: int
    version_number: int
    author_tag: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class VersionResponse(VersionSummary):
    """Schema for version response."""
    content: str
