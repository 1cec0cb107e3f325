"""Category service, the deep module for the category tree.

Keeps the tree acyclic and depth-consistent under create, reparent,
reorder and batch edits. Every mutation runs under the process-wide
category lock and validates the complete change before touching a row, so
a rejected request leaves the tree exactly as it was.
"""

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import (
    CategoryNotFoundError,
    CircularParentError,
    SelfParentError,
    ValidationError,
)
from ..models import Category
from ..repositories import CategoryRepository
from .locks import category_lock

logger = logging.getLogger(__name__)

LABEL_MAX_LENGTH = 100


class _Unset:
    """Marker for 'parent_id not supplied' (distinct from an explicit None)."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


@dataclass
class BulkCategoryChange:
    """One entry of a batch update. ``parent_id=None`` moves the node to the root."""

    id: int
    parent_id: Optional[int] = None
    sort_order: int = 0
    label: Optional[str] = None


def generate_category_code() -> str:
    return f"CAT_{int(time.time() * 1000)}"


def _clean_label(label: Optional[str], required: bool) -> Optional[str]:
    if label is None or not label.strip():
        if required:
            raise ValidationError("Category label must not be blank", field="label")
        return None
    label = label.strip()
    if len(label) > LABEL_MAX_LENGTH:
        raise ValidationError(
            f"Category label must be at most {LABEL_MAX_LENGTH} characters", field="label"
        )
    return label


def _creates_cycle(category_id: int, new_parent_id: int, parents: Dict[int, Optional[int]]) -> bool:
    """True when *category_id* appears on *new_parent_id*'s ancestor chain."""
    seen: Set[int] = set()
    current: Optional[int] = new_parent_id
    while current is not None and current not in seen:
        if current == category_id:
            return True
        seen.add(current)
        current = parents.get(current)
    return False


class CategoryService:
    """Deep module for category tree operations."""

    def __init__(self, db: Session, cascade_depth: Optional[bool] = None):
        self.db = db
        self.category_repo = CategoryRepository(db)
        self.cascade_depth = settings.cascade_category_depth if cascade_depth is None else cascade_depth

    # -- reads -------------------------------------------------------------

    def get(self, category_id: int) -> Category:
        return self.category_repo.get_by_id(category_id)

    def list(self) -> List[Category]:
        """All categories ordered by sort_order."""
        return self.category_repo.get_all()

    def parent_labels(self) -> Dict[int, str]:
        """``{id: label}`` for every category, used to decorate responses."""
        return {c.id: c.label for c in self.category_repo.get_all()}

    def descendants_of(self, category_id: int) -> Set[int]:
        """The category itself plus every category reachable through child links."""
        self.category_repo.get_by_id(category_id)
        children = self._children_map(self.category_repo.parent_map())

        result: Set[int] = {category_id}
        queue = deque([category_id])
        while queue:
            current = queue.popleft()
            for child_id in children.get(current, ()):
                if child_id not in result:
                    result.add(child_id)
                    queue.append(child_id)
        return result

    # -- mutations ---------------------------------------------------------

    def create(
        self,
        label: str,
        parent_id: Optional[int] = None,
        code: Optional[str] = None,
        commit: bool = True,
    ) -> Category:
        """Create a category as the last sibling under *parent_id*."""
        clean = _clean_label(label, required=True)

        with category_lock:
            depth = 0
            if parent_id is not None:
                parent = self.category_repo.get_by_id(parent_id)
                depth = parent.depth + 1

            max_order = self.category_repo.max_sibling_sort_order(parent_id)
            sort_order = 0 if max_order is None else max_order + 1

            category = self.category_repo.create(
                label=clean,
                code=code or generate_category_code(),
                parent_id=parent_id,
                depth=depth,
                sort_order=sort_order,
            )
            if commit:
                self.db.commit()
                self.db.refresh(category)

        logger.info(
            "Category created",
            extra={"category_id": category.id, "parent_id": parent_id, "depth": depth},
        )
        return category

    def update(
        self,
        category_id: int,
        label: Optional[str] = None,
        parent_id=UNSET,
        commit: bool = True,
    ) -> Category:
        """Rename and/or reparent a category.

        A blank or missing label leaves the name alone. Omitting *parent_id*
        leaves the parent alone; passing ``None`` moves the category to the
        root.
        """
        clean = _clean_label(label, required=False)

        with category_lock:
            category = self.category_repo.get_by_id(category_id)

            reparent = parent_id is not UNSET and parent_id != category.parent_id
            new_depth = category.depth
            if reparent:
                if parent_id is None:
                    new_depth = 0
                else:
                    if parent_id == category_id:
                        raise SelfParentError(category_id)
                    new_parent = self.category_repo.get_by_id(parent_id)
                    if _creates_cycle(category_id, parent_id, self.category_repo.parent_map()):
                        raise CircularParentError(category_id, parent_id)
                    new_depth = new_parent.depth + 1

            if clean is not None:
                category.label = clean
            if reparent:
                category.parent_id = parent_id
                category.depth = new_depth
                if self.cascade_depth:
                    self.db.flush()
                    self._recompute_depths()

            if commit:
                self.db.commit()
                self.db.refresh(category)

        if reparent:
            logger.info(
                "Category reparented",
                extra={"category_id": category_id, "parent_id": parent_id, "depth": new_depth},
            )
        return category

    def reorder(self, ordered_ids: List[int], commit: bool = True) -> None:
        """Assign ``sort_order = index`` to each id in *ordered_ids*."""
        if not ordered_ids:
            return
        with category_lock:
            categories = {c.id: c for c in self.category_repo.get_many(ordered_ids)}
            missing = [cid for cid in ordered_ids if cid not in categories]
            if missing:
                raise CategoryNotFoundError(missing[0] if len(missing) == 1 else missing)

            for index, cid in enumerate(ordered_ids):
                categories[cid].sort_order = index

            if commit:
                self.db.commit()
        logger.info("Categories reordered", extra={"count": len(ordered_ids)})

    def bulk_update(self, items: Iterable[BulkCategoryChange], commit: bool = True) -> None:
        """Apply a batch of parent/sort/label changes atomically.

        Each item is validated against the tree as it would look after every
        earlier item of the batch. The first violation aborts the whole
        batch before any row is modified.
        """
        items = list(items)
        if not items:
            return

        with category_lock:
            all_categories = {c.id: c for c in self.category_repo.get_all()}
            missing = [item.id for item in items if item.id not in all_categories]
            if missing:
                raise CategoryNotFoundError(missing[0] if len(missing) == 1 else missing)

            # Pending view of the tree: id -> parent_id / depth
            parents = {cid: c.parent_id for cid, c in all_categories.items()}
            depths = {cid: c.depth for cid, c in all_categories.items()}
            labels: Dict[int, str] = {}
            orders: Dict[int, int] = {}

            for item in items:
                clean = _clean_label(item.label, required=False)
                if item.parent_id is None:
                    parents[item.id] = None
                    depths[item.id] = 0
                else:
                    if item.parent_id == item.id:
                        raise SelfParentError(item.id)
                    if item.parent_id not in all_categories:
                        raise CategoryNotFoundError(item.parent_id)
                    if _creates_cycle(item.id, item.parent_id, parents):
                        raise CircularParentError(item.id, item.parent_id)
                    parents[item.id] = item.parent_id
                    depths[item.id] = depths[item.parent_id] + 1
                if clean is not None:
                    labels[item.id] = clean
                orders[item.id] = item.sort_order

            for item in items:
                category = all_categories[item.id]
                category.parent_id = parents[item.id]
                category.depth = depths[item.id]
                category.sort_order = orders[item.id]
                if item.id in labels:
                    category.label = labels[item.id]

            if self.cascade_depth:
                self.db.flush()
                self._recompute_depths()

            if commit:
                self.db.commit()
        logger.info("Categories bulk-updated", extra={"count": len(items)})

    # -- internals ---------------------------------------------------------

    @staticmethod
    def _children_map(parents: Dict[int, Optional[int]]) -> Dict[int, List[int]]:
        children: Dict[int, List[int]] = {}
        for cid, pid in parents.items():
            if pid is not None:
                children.setdefault(pid, []).append(cid)
        return children

    def _recompute_depths(self) -> None:
        """Recompute every depth breadth-first from the roots down."""
        by_id = {c.id: c for c in self.category_repo.get_all()}
        children = self._children_map({cid: c.parent_id for cid, c in by_id.items()})

        queue = deque((cid, 0) for cid, c in by_id.items() if c.parent_id is None)
        while queue:
            current, depth = queue.popleft()
            by_id[current].depth = depth
            queue.extend((child_id, depth + 1) for child_id in children.get(current, ()))
