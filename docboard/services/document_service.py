"""Document service, the deep module for document lifecycle.

Owns create, edit, soft delete, restore and permanent delete of documents.
Callers never coordinate the content store, the version ledger and the
catalog row themselves: each public method performs the whole operation.

Content mutations follow one order: write the file, append the version,
update the catalog pointer, commit. They run under a per-document lock
(plus ``SELECT ... FOR UPDATE`` on PostgreSQL). If anything after the file
write fails the transaction is rolled back and the previous file body is
put back.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..database import is_postgresql
from ..exceptions import DocumentNotFoundError, ValidationError
from ..models import Document, Version
from ..repositories import CategoryRepository, DocumentRepository
from .content_store import ContentStore, content_path_for, normalize_text
from .image_processor import MarkdownImageProcessor
from .locks import document_locks
from .uploads import UploadedFile, UploadStorage, decode_markdown, extract_title_or_default
from .version_ledger import VersionLedger

TITLE_MAX_LENGTH = 200

logger = logging.getLogger(__name__)


def _clean_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        raise ValidationError("Title must not be blank", field="title")
    title = title.strip()
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Title must be at most {TITLE_MAX_LENGTH} characters", field="title"
        )
    return title


class DocumentService:
    """Deep module for document operations.

    Soft-deleted documents are invisible to every method here except
    restore(), hard_delete() and the version accessors.
    """

    def __init__(
        self,
        db: Session,
        store: Optional[ContentStore] = None,
        uploads: Optional[UploadStorage] = None,
    ):
        self.db = db
        self.doc_repo = DocumentRepository(db)
        self.category_repo = CategoryRepository(db)
        self.ledger = VersionLedger(db)
        self.store = store or ContentStore(settings.content_root)
        self.uploads = uploads or UploadStorage(settings.upload_dir)

    # -- internals ---------------------------------------------------------

    @contextmanager
    def _locked(self, document_id: int) -> Iterator[None]:
        with document_locks.hold(document_id):
            if is_postgresql():
                self.doc_repo.lock_for_update(document_id)
            yield

    def _require_category(self, category_id: Optional[int]) -> int:
        if category_id is None:
            raise ValidationError("category_id is required", field="category_id")
        self.category_repo.get_by_id(category_id)
        return category_id

    def _read_if_present(self, path: Optional[str]) -> Optional[str]:
        if not path or not self.store.exists(path):
            return None
        return self.store.read(path)

    def _apply_content(self, document: Document, content: str, author: Optional[str]) -> Optional[Version]:
        """Write the body, append a version, move the pointer. Does not commit."""
        text = normalize_text(content)
        if document.content_path:
            self.store.overwrite(document.content_path, text)
        else:
            document.content_path = self.store.write_or_overwrite(text, document.id)

        version = self.ledger.append(document.id, text, author)
        if version is not None:
            document.current_version_id = version.id
        document.touch()
        self.db.flush()
        return version

    def _commit_or_restore(self, document_id: int, path_before: Optional[str], body_before: Optional[str]) -> None:
        """Commit; on failure roll back and put the previous body back on disk."""
        try:
            self.db.commit()
        except Exception:
            self._restore_body(document_id, path_before, body_before)
            raise

    def _restore_body(self, document_id: int, path_before: Optional[str], body_before: Optional[str]) -> None:
        self.db.rollback()
        try:
            if path_before and body_before is not None:
                self.store.overwrite(path_before, body_before)
            elif not path_before:
                self.store.delete_if_exists(content_path_for(document_id))
        except Exception:
            logger.exception(f"Could not restore content of document {document_id} after a failed write")

    # -- create ------------------------------------------------------------

    def create_document(
        self,
        title: str,
        category_id: Optional[int],
        content: str,
        is_notice: bool = False,
        attachments: Optional[List[str]] = None,
        author: Optional[str] = None,
    ) -> Document:
        """Create a document with its first version.

        The row is inserted first so its id can name the content file. If
        anything fails after the file was written, the row is rolled back
        and the file removed.
        """
        clean_title = _clean_title(title)
        self._require_category(category_id)
        if content is None or not content.strip():
            raise ValidationError("Content must not be blank", field="content")

        text = normalize_text(content)
        document = self.doc_repo.create(
            title=clean_title,
            category_id=category_id,
            is_notice=bool(is_notice),
            attachments=attachments,
        )
        document_id = document.id
        written_path: Optional[str] = None
        try:
            written_path = self.store.save(text, document_id)
            document.content_path = written_path
            version = self.ledger.append(document_id, text, author)
            document.current_version_id = version.id if version is not None else None
            self.db.commit()
        except Exception:
            self.db.rollback()
            if written_path:
                self.store.delete_if_exists(written_path)
            raise

        self.db.refresh(document)
        logger.info(
            "Document created",
            extra={"document_id": document_id, "category_id": category_id, "is_notice": document.is_notice},
        )
        return document

    # -- reads -------------------------------------------------------------

    def get_document(self, document_id: int) -> Document:
        """Active document row. Soft-deleted documents raise DocumentNotFoundError."""
        return self.doc_repo.get_by_id(document_id)

    def get_detail(self, document_id: int) -> Tuple[Document, Optional[str]]:
        """Active document plus its current body (None when no body was ever stored)."""
        document = self.doc_repo.get_by_id(document_id)
        content = self.store.read(document.content_path) if document.content_path else None
        return document, content

    def get_content(self, document_id: int) -> str:
        document = self.doc_repo.get_by_id(document_id)
        if not document.content_path:
            return ""
        return self.store.read(document.content_path)

    # -- single-field changes ----------------------------------------------

    def change_title(self, document_id: int, title: str) -> Document:
        clean_title = _clean_title(title)
        with self._locked(document_id):
            document = self.doc_repo.get_by_id(document_id)
            document.title = clean_title
            self.db.commit()
            self.db.refresh(document)
        return document

    def change_category(self, document_id: int, category_id: int) -> Document:
        self._require_category(category_id)
        with self._locked(document_id):
            document = self.doc_repo.get_by_id(document_id)
            document.category_id = category_id
            self.db.commit()
            self.db.refresh(document)
        return document

    def change_notice(self, document_id: int, is_notice: bool) -> Document:
        with self._locked(document_id):
            document = self.doc_repo.get_by_id(document_id)
            document.is_notice = bool(is_notice)
            self.db.commit()
            self.db.refresh(document)
        return document

    def change_content(self, document_id: int, content: str, author: Optional[str] = None) -> Document:
        """Replace the body and append a version (blank bodies are stored but not versioned)."""
        if content is None:
            raise ValidationError("Content is required", field="content")
        with self._locked(document_id):
            document = self.doc_repo.get_by_id(document_id)
            path_before = document.content_path
            body_before = self._read_if_present(path_before)
            try:
                self._apply_content(document, content, author)
            except Exception:
                self._restore_body(document_id, path_before, body_before)
                raise
            self._commit_or_restore(document_id, path_before, body_before)
            self.db.refresh(document)
        return document

    def change_attachments(self, document_id: int, attachments: List[str]) -> Document:
        """Replace the attachment URL list verbatim."""
        with self._locked(document_id):
            document = self.doc_repo.get_by_id(document_id)
            document.attachments = list(attachments or [])
            self.db.commit()
            self.db.refresh(document)
        return document

    def increment_view_count(self, document_id: int) -> Document:
        """Bump the view counter. Does not touch updated_at or versions."""
        self.doc_repo.get_by_id(document_id)
        self.doc_repo.increment_view_count(document_id)
        self.db.commit()
        document = self.doc_repo.get_by_id(document_id)
        self.db.refresh(document)
        return document

    # -- combined edits ----------------------------------------------------

    def patch_document(
        self,
        document_id: int,
        title: Optional[str] = None,
        category_id: Optional[int] = None,
        is_notice: Optional[bool] = None,
        content: Optional[str] = None,
        author: Optional[str] = None,
    ) -> Document:
        """Apply any combination of title, category, notice flag and body in one transaction.

        A blank title is ignored. Raises ValidationError when nothing at all
        would change.
        """
        has_title = title is not None and bool(title.strip())
        if not has_title and category_id is None and is_notice is None and content is None:
            raise ValidationError("Nothing to update")

        clean_title = _clean_title(title) if has_title else None
        with self._locked(document_id):
            document = self.doc_repo.get_by_id(document_id)
            if category_id is not None:
                self._require_category(category_id)

            path_before = document.content_path
            body_before = self._read_if_present(path_before) if content is not None else None
            try:
                if clean_title is not None:
                    document.title = clean_title
                if category_id is not None:
                    document.category_id = category_id
                if is_notice is not None:
                    document.is_notice = bool(is_notice)
                if content is not None:
                    self._apply_content(document, content, author)
            except Exception:
                if content is not None:
                    self._restore_body(document_id, path_before, body_before)
                else:
                    self.db.rollback()
                raise

            if content is not None:
                self._commit_or_restore(document_id, path_before, body_before)
            else:
                self.db.commit()
            self.db.refresh(document)

        logger.info("Document patched", extra={"document_id": document_id, "content_changed": content is not None})
        return document

    def update_document(self, document_id: int, title: str, content: str, author: Optional[str] = None) -> Document:
        """Full replacement of title and body."""
        if content is None:
            raise ValidationError("Content is required", field="content")
        return self.patch_document(document_id, title=_clean_title(title), content=content, author=author)

    # -- lifecycle ---------------------------------------------------------

    def soft_delete(self, document_id: int) -> None:
        """Hide a document. Deleting an already deleted document is a no-op."""
        with self._locked(document_id):
            if not self.doc_repo.soft_delete(document_id):
                raise DocumentNotFoundError(document_id)
            self.db.commit()
        logger.info("Document soft-deleted", extra={"document_id": document_id})

    def restore(self, document_id: int) -> Document:
        """Bring a soft-deleted document back. Active documents are returned unchanged."""
        with self._locked(document_id):
            document = self.doc_repo.restore(document_id)
            self.db.commit()
            self.db.refresh(document)
        logger.info("Document restored", extra={"document_id": document_id})
        return document

    def hard_delete(self, document_id: int) -> bool:
        """Permanently remove the row, its versions, its body and its attachment files.

        Returns False when the document does not exist (idempotent).
        Files are removed only after the database commit succeeded.
        """
        with self._locked(document_id):
            document = self.doc_repo.get_by_id_including_deleted(document_id)
            if document is None:
                return False
            content_path = document.content_path
            attachments = list(document.attachments or [])

            self.doc_repo.permanent_delete(document_id)
            purged = self.ledger.purge(document_id)
            self.db.commit()

            self.store.delete_if_exists(content_path)
            self.uploads.delete_attachments(attachments)

        logger.warning(
            "Document permanently deleted",
            extra={"document_id": document_id, "versions_purged": purged, "attachments": len(attachments)},
        )
        return True

    # -- versions (visible for soft-deleted documents too) -----------------

    def _require_row(self, document_id: int) -> Document:
        document = self.doc_repo.get_by_id_including_deleted(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    def list_versions(self, document_id: int) -> List[Version]:
        self._require_row(document_id)
        return self.ledger.list_for_document(document_id)

    def get_version(self, document_id: int, version_number: int) -> Version:
        self._require_row(document_id)
        return self.ledger.get(document_id, version_number)

    def latest_version(self, document_id: int) -> Version:
        self._require_row(document_id)
        return self.ledger.latest(document_id)

    # -- uploads -----------------------------------------------------------

    def create_from_upload(
        self,
        file: UploadedFile,
        category_id: Optional[int],
        title: Optional[str] = None,
        is_notice: bool = False,
        images: Optional[List[UploadedFile]] = None,
        attachments: Optional[List[UploadedFile]] = None,
        author: Optional[str] = None,
    ) -> Document:
        """Create a document from an uploaded markdown file.

        Matching uploaded images are stored and their references rewritten.
        Without an explicit title the first ``# heading`` is used.
        """
        markdown = decode_markdown(file)
        self._require_category(category_id)
        markdown = MarkdownImageProcessor(self.uploads).process(markdown, images)

        final_title = title if title and title.strip() else extract_title_or_default(markdown)
        urls = self.uploads.save_attachments(attachments or [])
        try:
            return self.create_document(
                title=final_title,
                category_id=category_id,
                content=markdown,
                is_notice=is_notice,
                attachments=urls,
                author=author,
            )
        except Exception:
            self.uploads.delete_attachments(urls)
            raise

    def update_from_upload(
        self,
        document_id: int,
        file: UploadedFile,
        title: Optional[str] = None,
        images: Optional[List[UploadedFile]] = None,
        attachments: Optional[List[UploadedFile]] = None,
        author: Optional[str] = None,
    ) -> Document:
        """Overwrite a document body from an uploaded file.

        New attachments replace the old ones; the old files are removed
        once the change is committed.
        """
        self.doc_repo.get_by_id(document_id)
        markdown = decode_markdown(file)
        markdown = MarkdownImageProcessor(self.uploads).process(markdown, images)
        new_urls = self.uploads.save_attachments(attachments or [])

        old_urls: List[str] = []
        try:
            if new_urls:
                old_urls = list(self.doc_repo.get_by_id(document_id).attachments or [])
                self._stage_attachments(document_id, new_urls)
            document = self.patch_document(
                document_id,
                title=title if title and title.strip() else None,
                content=markdown,
                author=author,
            )
        except Exception:
            self.db.rollback()
            self.uploads.delete_attachments(new_urls)
            raise

        if old_urls:
            self.uploads.delete_attachments(old_urls)
        return document

    def _stage_attachments(self, document_id: int, attachments: List[str]) -> None:
        document = self.doc_repo.get_by_id(document_id)
        document.attachments = list(attachments)
        self.db.flush()

    def add_attachments(self, document_id: int, files: List[UploadedFile]) -> Document:
        """Store uploaded files and append their URLs to the attachment list."""
        document = self.doc_repo.get_by_id(document_id)
        new_urls = self.uploads.save_attachments(files or [])
        if not new_urls:
            return document
        try:
            with self._locked(document_id):
                document = self.doc_repo.get_by_id(document_id)
                document.attachments = list(document.attachments or []) + new_urls
                self.db.commit()
                self.db.refresh(document)
        except Exception:
            self.db.rollback()
            self.uploads.delete_attachments(new_urls)
            raise
        return document
