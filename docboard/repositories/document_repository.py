"""Document repository for database operations.

Owns all document query logic including soft-delete filtering.
Every default read uses _base_query() to exclude soft-deleted documents,
so callers never need to think about the deleted flag.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Query

from ..models import Document, LegacyCategoryTag
from ..exceptions import DocumentNotFoundError, ValidationError
from .base import BaseRepository

# Sort keys accepted by the listing endpoints
SORT_COLUMNS = {
    "created_at": Document.created_at,
    "updated_at": Document.updated_at,
    "title": Document.title,
    "id": Document.id,
}


def order_clauses(sort: str = "created_at", direction: str = "desc") -> Tuple:
    """ORDER BY clauses for a listing sort key, with id as tie-breaker."""
    column = SORT_COLUMNS.get(sort)
    if column is None:
        raise ValidationError(
            f"Unsupported sort field '{sort}'. Use one of: {', '.join(SORT_COLUMNS)}",
            field="sort",
        )
    if direction == "asc":
        return (column.asc(), Document.id.asc())
    return (column.desc(), Document.id.desc())


def _title_contains(keyword: str):
    return func.lower(Document.title).contains(keyword.lower(), autoescape=True)


class DocumentRepository(BaseRepository[Document]):
    """Repository for document CRUD operations.

    All default read methods exclude soft-deleted documents via
    _base_query().  Use get_by_id_including_deleted() and the deleted_*
    queries to access the trash.
    """

    model_class = Document
    not_found_error = DocumentNotFoundError

    def _base_query(self) -> Query:
        """Exclude soft-deleted documents from all default queries."""
        return self.db.query(Document).filter(Document.deleted.is_(False))

    def create(
        self,
        title: str,
        category_id: Optional[int],
        is_notice: bool = False,
        attachments: Optional[List[str]] = None,
        legacy_category_tag: Optional[LegacyCategoryTag] = None,
    ) -> Document:
        """Insert a new document row (without content path) and assign its id."""
        db_document = Document(
            title=title,
            category_id=category_id,
            is_notice=is_notice,
            attachments=list(attachments or []),
            legacy_category_tag=legacy_category_tag,
        )
        return self._add(db_document)

    def get_by_id_including_deleted(self, document_id: int) -> Optional[Document]:
        """Get document by ID regardless of soft-delete status."""
        return self.db.query(Document).filter(Document.id == document_id).first()

    def lock_for_update(self, document_id: int) -> Optional[Document]:
        """Reload the row with SELECT ... FOR UPDATE (a no-op clause on SQLite)."""
        return (
            self.db.query(Document)
            .filter(Document.id == document_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def get_many_including_deleted(self, ids: Iterable[int]) -> Dict[int, Document]:
        """``{id: row}`` for the *ids* that still have a row, deleted or not."""
        ids = set(ids)
        if not ids:
            return {}
        rows = self.db.query(Document).filter(Document.id.in_(ids)).all()
        return {row.id: row for row in rows}

    def increment_view_count(self, document_id: int) -> None:
        """Atomic +1 on view_count that leaves updated_at as it was."""
        self.db.query(Document).filter(Document.id == document_id).update(
            {
                Document.view_count: Document.view_count + 1,
                Document.updated_at: Document.updated_at,
            },
            synchronize_session=False,
        )

    # -- listing queries ---------------------------------------------------

    def get_notices(self) -> List[Document]:
        """Active pinned notices, newest first."""
        return (
            self._base_query()
            .filter(Document.is_notice.is_(True))
            .order_by(Document.created_at.desc(), Document.id.desc())
            .all()
        )

    def _regular_query(
        self,
        keyword: Optional[str] = None,
        legacy_tags: Optional[List[LegacyCategoryTag]] = None,
    ) -> Query:
        query = self._base_query().filter(Document.is_notice.is_(False))
        if keyword:
            query = query.filter(_title_contains(keyword))
        if legacy_tags:
            query = query.filter(Document.legacy_category_tag.in_(legacy_tags))
        return query

    def count_regular(
        self,
        keyword: Optional[str] = None,
        legacy_tags: Optional[List[LegacyCategoryTag]] = None,
    ) -> int:
        """Count active non-notice documents matching the filters."""
        return (
            self._regular_query(keyword, legacy_tags)
            .with_entities(func.count(Document.id))
            .scalar()
            or 0
        )

    def page_regular(
        self,
        offset: int,
        limit: int,
        keyword: Optional[str] = None,
        legacy_tags: Optional[List[LegacyCategoryTag]] = None,
        sort: str = "created_at",
        direction: str = "desc",
    ) -> List[Document]:
        """One window of active non-notice documents."""
        return (
            self._regular_query(keyword, legacy_tags)
            .order_by(*order_clauses(sort, direction))
            .offset(offset)
            .limit(limit)
            .all()
        )

    def get_in_categories(
        self,
        category_ids: Iterable[int],
        keyword: Optional[str] = None,
        sort: str = "created_at",
        direction: str = "desc",
    ) -> List[Document]:
        """Active non-notice documents filed under any of *category_ids*."""
        category_ids = list(category_ids)
        if not category_ids:
            return []
        return (
            self._regular_query(keyword)
            .filter(Document.category_id.in_(category_ids))
            .order_by(*order_clauses(sort, direction))
            .all()
        )

    def get_legacy_uncategorized(
        self,
        tag: LegacyCategoryTag,
        keyword: Optional[str] = None,
        sort: str = "created_at",
        direction: str = "desc",
    ) -> List[Document]:
        """Active non-notice rows with no category_id but the given legacy tag."""
        return (
            self._regular_query(keyword)
            .filter(
                Document.category_id.is_(None),
                Document.legacy_category_tag == tag,
            )
            .order_by(*order_clauses(sort, direction))
            .all()
        )

    # -- lifecycle ---------------------------------------------------------

    def soft_delete(self, document_id: int) -> bool:
        """Mark document as deleted. Idempotent; returns False if the row is gone."""
        db_document = self.get_by_id_including_deleted(document_id)
        if not db_document:
            return False

        if not db_document.deleted:
            db_document.deleted = True
            db_document.touch()
            self.db.flush()
        return True

    def restore(self, document_id: int) -> Document:
        """Restore a soft-deleted document. Raises DocumentNotFoundError. Idempotent if not deleted."""
        db_document = self.get_by_id_including_deleted(document_id)
        if not db_document:
            raise DocumentNotFoundError(document_id)

        if db_document.deleted:
            db_document.deleted = False
            db_document.touch()
            self.db.flush()
            self.db.refresh(db_document)
        return db_document

    def permanent_delete(self, document_id: int) -> Optional[Document]:
        """Hard delete a document row. Returns the removed row, or None if already gone."""
        db_document = self.get_by_id_including_deleted(document_id)
        if not db_document:
            return None

        self.db.delete(db_document)
        self.db.flush()
        return db_document

    # -- trash -------------------------------------------------------------

    def _deleted_query(self, keyword: Optional[str] = None) -> Query:
        query = self.db.query(Document).filter(Document.deleted.is_(True))
        if keyword:
            query = query.filter(_title_contains(keyword))
        return query

    def get_deleted(self) -> List[Document]:
        """All soft-deleted documents, most recently deleted first."""
        return (
            self._deleted_query()
            .order_by(Document.updated_at.desc(), Document.id.desc())
            .all()
        )

    def count_deleted(self, keyword: Optional[str] = None) -> int:
        return (
            self._deleted_query(keyword)
            .with_entities(func.count(Document.id))
            .scalar()
            or 0
        )

    def page_deleted(
        self,
        offset: int,
        limit: int,
        keyword: Optional[str] = None,
        sort: str = "updated_at",
        direction: str = "desc",
    ) -> List[Document]:
        return (
            self._deleted_query(keyword)
            .order_by(*order_clauses(sort, direction))
            .offset(offset)
            .limit(limit)
            .all()
        )

    def get_deleted_by_id(self, document_id: int) -> Optional[Document]:
        return self._deleted_query().filter(Document.id == document_id).first()
