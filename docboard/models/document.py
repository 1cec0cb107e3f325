"""Document model."""

import enum

from sqlalchemy import (
    Boolean, Column, DateTime, Enum, ForeignKey, Index, Integer, JSON, String,
)
from ..database import Base, utcnow


class LegacyCategoryTag(str, enum.Enum):
    """Fixed category tags used by rows written before the category tree existed."""

    SYSTEM = "SYSTEM"
    INCIDENT = "INCIDENT"
    TRAINING = "TRAINING"
    PRACTICE = "PRACTICE"


class Document(Base):
    """Main documents table. The body itself lives in the content store."""

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_category_id", "category_id"),
        Index("ix_documents_created_at", "created_at"),
        Index("ix_documents_updated_at", "updated_at"),
        Index("ix_documents_deleted", "deleted"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)

    # Relative to the content root, e.g. "documents/42.md"
    content_path = Column(String(500), nullable=True, unique=True)

    # Nullable only for legacy rows; every new write requires it
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    legacy_category_tag = Column(
        Enum(LegacyCategoryTag, native_enum=False, length=20), nullable=True
    )

    is_notice = Column(Boolean, nullable=False, default=False)
    view_count = Column(Integer, nullable=False, default=0)

    # Flat list of attachment URLs
    attachments = Column(JSON, nullable=False, default=list)

    deleted = Column(Boolean, nullable=False, default=False)

    # Weak reference into document_versions (no FK)
    current_version_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def touch(self) -> None:
        """Bump updated_at even when only non-column state changed."""
        self.updated_at = utcnow()
