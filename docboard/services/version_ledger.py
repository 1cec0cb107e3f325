"""Append-only version history keyed by document id."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..exceptions import VersionNotFoundError
from ..models import Version
from ..repositories import VersionRepository

logger = logging.getLogger(__name__)


class VersionLedger:
    """Numbered, immutable content snapshots.

    Numbers start at 1 and grow by one per append; the unique constraint on
    ``(document_id, version_number)`` rejects a concurrent duplicate. The
    ledger never commits; it joins the caller's transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        self.version_repo = VersionRepository(db)

    def append(self, document_id: int, content: Optional[str], author: Optional[str] = None) -> Optional[Version]:
        """Record *content* as the next version. Blank content records nothing."""
        if content is None or not content.strip():
            logger.debug(f"Skipping version for document {document_id}: blank content")
            return None

        latest = self.version_repo.max_version_number(document_id) or 0
        version = self.version_repo.create(
            document_id=document_id,
            version_number=latest + 1,
            content=content,
            author_tag=author,
        )
        logger.info(
            "Version appended",
            extra={"document_id": document_id, "version_number": version.version_number},
        )
        return version

    def latest(self, document_id: int) -> Version:
        version = self.version_repo.get_latest(document_id)
        if version is None:
            raise VersionNotFoundError(document_id)
        return version

    def get(self, document_id: int, version_number: int) -> Version:
        version = self.version_repo.get_by_number(document_id, version_number)
        if version is None:
            raise VersionNotFoundError(document_id, version_number)
        return version

    def list_for_document(self, document_id: int) -> List[Version]:
        """Versions of one document, newest number first."""
        return self.version_repo.get_by_document(document_id)

    def all_ordered_by_time(self, descending: bool = True) -> List[Version]:
        return self.version_repo.get_all_by_time(descending=descending)

    def purge(self, document_id: int) -> int:
        """Drop the whole history of a permanently deleted document."""
        return self.version_repo.delete_for_document(document_id)
