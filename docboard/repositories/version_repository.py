"""Version repository for database operations."""

from typing import List, Optional

from sqlalchemy import func

from ..models import Version
from ..exceptions import VersionNotFoundError
from .base import BaseRepository


class VersionRepository(BaseRepository[Version]):
    """Repository for version rows. Versions are append-only."""

    model_class = Version
    not_found_error = VersionNotFoundError

    def create(
        self,
        document_id: int,
        version_number: int,
        content: str,
        author_tag: Optional[str] = None,
    ) -> Version:
        """Insert a new version row."""
        db_version = Version(
            document_id=document_id,
            version_number=version_number,
            content=content,
            author_tag=author_tag,
        )
        return self._add(db_version)

    def max_version_number(self, document_id: int) -> Optional[int]:
        return (
            self.db.query(func.max(Version.version_number))
            .filter(Version.document_id == document_id)
            .scalar()
        )

    def get_latest(self, document_id: int) -> Optional[Version]:
        """Get the highest-numbered version for a document."""
        return (
            self.db.query(Version)
            .filter(Version.document_id == document_id)
            .order_by(Version.version_number.desc())
            .first()
        )

    def get_by_number(self, document_id: int, version_number: int) -> Optional[Version]:
        return (
            self.db.query(Version)
            .filter(
                Version.document_id == document_id,
                Version.version_number == version_number,
            )
            .first()
        )

    def get_by_document(self, document_id: int) -> List[Version]:
        """All versions for a document, newest number first."""
        return (
            self.db.query(Version)
            .filter(Version.document_id == document_id)
            .order_by(Version.version_number.desc())
            .all()
        )

    def get_all_by_time(self, descending: bool = True) -> List[Version]:
        """Every version across all documents ordered by creation time."""
        if descending:
            order = (Version.created_at.desc(), Version.id.desc())
        else:
            order = (Version.created_at.asc(), Version.id.asc())
        return self.db.query(Version).order_by(*order).all()

    def delete_for_document(self, document_id: int) -> int:
        """Remove every version of a document. Only used by permanent delete."""
        count = (
            self.db.query(Version)
            .filter(Version.document_id == document_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return count
