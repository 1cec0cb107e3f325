"""Category model."""

from sqlalchemy import Column, ForeignKey, Index, Integer, String
from ..database import Base


class Category(Base):
    """Hierarchical category tree. Rows are never hard-deleted."""

    __tablename__ = "categories"
    __table_args__ = (
        Index("ix_categories_parent_id", "parent_id"),
        Index("ix_categories_sort_order", "sort_order"),
        Index("ix_categories_code", "code"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Stable machine code ("CAT_SYSTEM"); generated when the caller gives none
    code = Column(String(64), nullable=True)
    label = Column(String(100), nullable=False)

    # depth == 0 iff parent_id is NULL, otherwise parent.depth + 1
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    depth = Column(Integer, nullable=False, default=0)
    sort_order = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Category id={self.id} label={self.label!r} parent_id={self.parent_id}>"
