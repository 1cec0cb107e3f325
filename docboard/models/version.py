"""Version model."""

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, UniqueConstraint
from ..database import Base, utcnow


class Version(Base):
    """Append-only content snapshots.

    ``document_id`` carries no foreign key so history stays readable while
    the document sits in the trash. A permanent delete purges it.
    """

    __tablename__ = "document_versions"
    __table_args__ = (
        UniqueConstraint("document_id", "version_number", name="uq_document_versions_number"),
        Index("ix_document_versions_document_id", "document_id"),
        Index("ix_document_versions_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Integer, nullable=False)
    version_number = Column(Integer, nullable=False)

    content = Column(Text, nullable=False)
    author_tag = Column(String(100), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
