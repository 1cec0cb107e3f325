"""Ensure the default category set exists on startup.

One root category with three children. Each entry is matched by code or,
failing that, by label; missing entries are created and drifted ones
(wrong parent, depth, sort order, label or code) are repaired in place.
Running it again on a healthy tree changes nothing.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

ROOT_CATEGORY = ("CAT_ONBOARDING", "Onboarding")
CHILD_CATEGORIES = [
    ("CAT_SYSTEM", "Business Systems"),
    ("CAT_INCIDENT", "Incident Support"),
    ("CAT_TRAINING", "Hands-on Training"),
]


def _find(db: Session, code: str, label: str):
    from ..repositories import CategoryRepository

    repo = CategoryRepository(db)
    return repo.get_by_code(code) or repo.get_by_label(label)


def _ensure(db: Session, code: str, label: str, parent_id: Optional[int], depth: int, sort_order: int):
    """Return ``(category, changed)`` for one default category."""
    from ..models import Category

    category = _find(db, code, label)
    if category is None:
        category = Category(code=code, label=label, parent_id=parent_id, depth=depth, sort_order=sort_order)
        db.add(category)
        db.flush()
        logger.info("Seeded category %s", code)
        return category, True

    expected = {
        "code": code,
        "label": label,
        "parent_id": parent_id,
        "depth": depth,
        "sort_order": sort_order,
    }
    drifted = {k: v for k, v in expected.items() if getattr(category, k) != v}
    for key, value in drifted.items():
        setattr(category, key, value)
    if drifted:
        db.flush()
        logger.info("Repaired category %s: %s", code, ", ".join(sorted(drifted)))
    return category, bool(drifted)


def seed_categories(db: Session) -> int:
    """Create or repair the default categories.

    Args:
        db: An open SQLAlchemy session.

    Returns:
        Number of categories created or repaired (0 when nothing changed).
    """
    from ..services.locks import category_lock

    with category_lock:
        root_code, root_label = ROOT_CATEGORY
        root, changed = _ensure(db, root_code, root_label, parent_id=None, depth=0, sort_order=0)
        touched = int(changed)

        for index, (code, label) in enumerate(CHILD_CATEGORIES):
            _, changed = _ensure(db, code, label, parent_id=root.id, depth=1, sort_order=index)
            touched += int(changed)

        if touched:
            db.commit()
            logger.info("Category seed applied %d change(s)", touched)
        else:
            logger.debug("Default categories already in place")
    return touched
