"""Category repository for database operations."""

from typing import Dict, List, Optional

from sqlalchemy import func

from ..models import Category
from ..exceptions import CategoryNotFoundError
from .base import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """Repository for category CRUD operations. Categories are never deleted."""

    model_class = Category
    not_found_error = CategoryNotFoundError

    def create(
        self,
        label: str,
        code: Optional[str],
        parent_id: Optional[int],
        depth: int,
        sort_order: int,
    ) -> Category:
        """Create a new category."""
        category = Category(
            label=label,
            code=code,
            parent_id=parent_id,
            depth=depth,
            sort_order=sort_order,
        )
        return self._add(category)

    def get_all(self) -> List[Category]:
        """All categories ordered by sort_order, then id."""
        return self.db.query(Category).order_by(Category.sort_order, Category.id).all()

    def get_by_code(self, code: str) -> Optional[Category]:
        return self.db.query(Category).filter(Category.code == code).first()

    def get_by_label(self, label: str) -> Optional[Category]:
        return self.db.query(Category).filter(Category.label == label).first()

    def max_sibling_sort_order(self, parent_id: Optional[int]) -> Optional[int]:
        """Highest sort_order among categories sharing *parent_id* (None = roots)."""
        query = self.db.query(func.max(Category.sort_order))
        if parent_id is None:
            query = query.filter(Category.parent_id.is_(None))
        else:
            query = query.filter(Category.parent_id == parent_id)
        return query.scalar()

    def parent_map(self) -> Dict[int, Optional[int]]:
        """Snapshot of ``{id: parent_id}`` for the whole tree."""
        return dict(self.db.query(Category.id, Category.parent_id).all())
