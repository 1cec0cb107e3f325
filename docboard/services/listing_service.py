"""Listing service: paginated document feed and history views.

The document feed merges three sources into one page:

* pinned notices, shown on top of page 0 when no category is selected;
* regular documents, optionally narrowed to a category subtree and a title
  keyword;
* legacy rows that have no ``category_id`` yet but whose legacy tag maps to
  the selected category (see ``legacy_tags``).

Notices only shrink the capacity of page 0. Offsets of later pages are
computed as if notices did not exist, and ``total_pages`` is derived from the
non-pinned total and the nominal page size.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import ValidationError
from ..models import Document, LegacyCategoryTag
from ..repositories import DocumentRepository
from ..repositories.document_repository import order_clauses
from .category_service import CategoryService
from .legacy_tags import legacy_tag_for_code
from .version_ledger import VersionLedger

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChangeType(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass
class PageResult(Generic[T]):
    """One page of results plus the paging metadata returned to clients."""

    items: List[T]
    page: int
    size: int
    total_elements: int
    total_pages: int
    has_next: bool
    has_previous: bool


@dataclass
class ChangeEvent:
    document_id: int
    title: str
    category_id: Optional[int]
    legacy_category_tag: Optional[LegacyCategoryTag]
    change_type: ChangeType
    changed_at: datetime
    version_number: Optional[int] = None
    changed_by: Optional[str] = None
    attachments: List[str] = field(default_factory=list)


def _page_result(items: List[T], page: int, size: int, total_elements: int, paged_total: int) -> PageResult[T]:
    total_pages = math.ceil(paged_total / size) if size else 0
    return PageResult(
        items=items,
        page=page,
        size=size,
        total_elements=total_elements,
        total_pages=total_pages,
        has_next=page < total_pages - 1,
        has_previous=page > 0,
    )


def parse_change_type(value: Optional[str]) -> Optional[ChangeType]:
    if value is None or not value.strip():
        return None
    try:
        return ChangeType(value.strip().lower())
    except ValueError:
        raise ValidationError(
            f"Unknown change type '{value}'. Use one of: {', '.join(t.value for t in ChangeType)}",
            field="change_type",
        )


class ListingService:
    """Read-only views over the document catalog."""

    def __init__(self, db: Session):
        self.db = db
        self.doc_repo = DocumentRepository(db)
        self.category_service = CategoryService(db)
        self.ledger = VersionLedger(db)

    def _check_paging(self, page: int, size: Optional[int]) -> int:
        size = settings.default_page_size if size is None else size
        if page < 0:
            raise ValidationError("page must be >= 0", field="page")
        if size < 1 or size > settings.max_page_size:
            raise ValidationError(
                f"size must be between 1 and {settings.max_page_size}", field="size"
            )
        return size

    @staticmethod
    def _check_sort(sort: str, direction: str) -> str:
        direction = (direction or "desc").lower()
        if direction not in ("asc", "desc"):
            raise ValidationError("direction must be 'asc' or 'desc'", field="direction")
        order_clauses(sort, direction)
        return direction

    # -- document feed -----------------------------------------------------

    def list_documents(
        self,
        page: int = 0,
        size: Optional[int] = None,
        keyword: Optional[str] = None,
        category_id: Optional[int] = None,
        legacy_tags: Optional[List[LegacyCategoryTag]] = None,
        sort: str = "created_at",
        direction: str = "desc",
    ) -> PageResult[Document]:
        size = self._check_paging(page, size)
        direction = self._check_sort(sort, direction)
        if category_id is not None and legacy_tags:
            raise ValidationError("Use either category_id or categories, not both", field="categories")
        kw = keyword.strip() if keyword and keyword.strip() else None

        notices: List[Document] = []
        if page == 0 and category_id is None:
            notices = self.doc_repo.get_notices()
        notice_count = len(notices)

        effective_size = max(1, size - notice_count) if page == 0 else size
        start = page * size

        if category_id is None:
            total = self.doc_repo.count_regular(kw, legacy_tags)
            window = self.doc_repo.page_regular(
                start, effective_size, kw, legacy_tags, sort=sort, direction=direction
            )
        else:
            merged = self._category_candidates(category_id, kw, sort, direction)
            total = len(merged)
            window = merged[start:start + effective_size]

        logger.debug(
            "Listing page built",
            extra={
                "page": page,
                "size": size,
                "notice_count": notice_count,
                "total": total,
                "category_id": category_id,
            },
        )
        return _page_result(notices + window, page, size, notice_count + total, total)

    def _category_candidates(self, category_id: int, keyword: Optional[str], sort: str, direction: str) -> List[Document]:
        """Documents in the category subtree, then matching legacy rows, sorted together."""
        category = self.category_service.get(category_id)
        subtree = self.category_service.descendants_of(category_id)
        primary = self.doc_repo.get_in_categories(subtree, keyword, sort=sort, direction=direction)

        legacy: List[Document] = []
        tag = legacy_tag_for_code(category.code)
        if tag is not None:
            seen = {doc.id for doc in primary}
            legacy = [
                doc
                for doc in self.doc_repo.get_legacy_uncategorized(tag, keyword, sort=sort, direction=direction)
                if doc.id not in seen
            ]

        # Stable sort: on equal keys primary rows stay ahead of legacy rows.
        return sorted(
            primary + legacy,
            key=lambda doc: getattr(doc, sort),
            reverse=(direction == "desc"),
        )

    # -- history -----------------------------------------------------------

    def change_history(self, change_type: Optional[str] = None) -> List[ChangeEvent]:
        """Created / updated / deleted events across all documents, newest first."""
        wanted = parse_change_type(change_type)
        events: List[ChangeEvent] = []

        if wanted in (None, ChangeType.CREATED, ChangeType.UPDATED):
            versions = self.ledger.all_ordered_by_time(descending=True)
            documents = self.doc_repo.get_many_including_deleted(v.document_id for v in versions)
            for version in versions:
                document = documents.get(version.document_id)
                if document is None:
                    continue
                kind = ChangeType.CREATED if version.version_number == 1 else ChangeType.UPDATED
                if wanted is not None and wanted != kind:
                    continue
                events.append(self._event(document, kind, version.created_at, version.version_number, version.author_tag))

        if wanted in (None, ChangeType.DELETED):
            for document in self.doc_repo.get_deleted():
                events.append(self._event(document, ChangeType.DELETED, document.updated_at))

        events.sort(key=lambda event: event.changed_at, reverse=True)
        return events

    @staticmethod
    def _event(
        document: Document,
        kind: ChangeType,
        changed_at: datetime,
        version_number: Optional[int] = None,
        changed_by: Optional[str] = None,
    ) -> ChangeEvent:
        return ChangeEvent(
            document_id=document.id,
            title=document.title,
            category_id=document.category_id,
            legacy_category_tag=document.legacy_category_tag,
            change_type=kind,
            changed_at=changed_at,
            version_number=version_number,
            changed_by=changed_by,
            attachments=list(document.attachments or []),
        )

    def deletion_history(self) -> List[Document]:
        """Every soft-deleted document, most recently deleted first."""
        return self.doc_repo.get_deleted()

    def list_deleted(
        self,
        page: int = 0,
        size: Optional[int] = None,
        keyword: Optional[str] = None,
        document_id: Optional[int] = None,
    ) -> PageResult[Document]:
        """Paginated trash. Looking up one id returns at most that document, unpaged."""
        if document_id is not None:
            document = self.doc_repo.get_deleted_by_id(document_id)
            items = [document] if document is not None else []
            return PageResult(
                items=items,
                page=0,
                size=len(items),
                total_elements=len(items),
                total_pages=1 if items else 0,
                has_next=False,
                has_previous=False,
            )

        size = self._check_paging(page, size)
        kw = keyword.strip() if keyword and keyword.strip() else None
        total = self.doc_repo.count_deleted(kw)
        items = self.doc_repo.page_deleted(page * size, size, kw)
        return _page_result(items, page, size, total, total)
