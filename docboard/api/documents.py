"""Document API endpoints.

Endpoints are thin: DocumentService handles the full lifecycle (content
file, version ledger, catalog row) and ListingService builds the feed.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.document import (
    DocumentAttachmentsUpdate,
    DocumentContentResponse,
    DocumentCreate,
    DocumentDetailResponse,
    DocumentListItem,
    DocumentPatch,
    DocumentResponse,
    DocumentUpdate,
    PageResponse,
)
from ..services import DocumentService, ListingService
from ..services.legacy_tags import parse_legacy_tags
from ..services.uploads import UploadedFile

router = APIRouter(prefix="/api/posts", tags=["documents"])


def _to_uploaded(upload: Optional[UploadFile]) -> Optional[UploadedFile]:
    """Read a multipart part into memory."""
    if upload is None:
        return None
    return UploadedFile(
        filename=upload.filename,
        content_type=upload.content_type,
        data=upload.file.read(),
    )


def _to_uploaded_list(uploads: Optional[List[UploadFile]]) -> List[UploadedFile]:
    return [_to_uploaded(u) for u in uploads or [] if u is not None]


@router.get("", response_model=PageResponse[DocumentListItem])
def list_documents(
    page: int = Query(0),
    size: Optional[int] = Query(None),
    keyword: Optional[str] = None,
    category_id: Optional[int] = None,
    categories: Optional[List[str]] = Query(None, description="Legacy tags, repeated or comma-separated"),
    sort: str = Query("created_at"),
    direction: str = Query("desc"),
    db: Session = Depends(get_db),
):
    """Paginated feed: pinned notices on page 0, then regular documents."""
    result = ListingService(db).list_documents(
        page=page,
        size=size,
        keyword=keyword,
        category_id=category_id,
        legacy_tags=parse_legacy_tags(categories),
        sort=sort,
        direction=direction,
    )
    items = [DocumentListItem.model_validate(doc) for doc in result.items]
    return PageResponse[DocumentListItem].from_result(result, items)


@router.post("", response_model=DocumentResponse, status_code=201)
def create_document(document: DocumentCreate, db: Session = Depends(get_db)):
    """Create a document and its first version."""
    service = DocumentService(db)
    return service.create_document(
        title=document.title,
        category_id=document.category_id,
        content=document.content,
        is_notice=document.is_notice,
        attachments=document.attachments,
        author=document.author,
    )


# --- Fixed-path endpoints (must be before /{document_id} to avoid route shadowing) ---


@router.post("/upload", response_model=DocumentResponse, status_code=201)
def create_from_upload(
    file: UploadFile = File(...),
    category_id: Optional[int] = Form(None),
    title: Optional[str] = Form(None),
    is_notice: bool = Form(False),
    author: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    attachments: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
):
    """Create a document from a markdown file, storing referenced images and attachments."""
    service = DocumentService(db)
    return service.create_from_upload(
        _to_uploaded(file),
        category_id=category_id,
        title=title,
        is_notice=is_notice,
        images=_to_uploaded_list(images),
        attachments=_to_uploaded_list(attachments),
        author=author,
    )


# --- Single document ---


@router.get("/{document_id}", response_model=DocumentDetailResponse)
def get_document(document_id: int, db: Session = Depends(get_db)):
    """Document metadata plus its current body."""
    document, content = DocumentService(db).get_detail(document_id)
    return DocumentDetailResponse.from_document(document, content)


@router.get("/{document_id}/content", response_model=DocumentContentResponse)
def get_document_content(document_id: int, db: Session = Depends(get_db)):
    return DocumentContentResponse(content=DocumentService(db).get_content(document_id))


@router.put("/{document_id}", response_model=DocumentResponse)
def update_document(document_id: int, data: DocumentUpdate, db: Session = Depends(get_db)):
    """Replace title and body; appends a version."""
    service = DocumentService(db)
    return service.update_document(document_id, data.title, data.content, author=data.author)


@router.patch("/{document_id}", response_model=DocumentResponse)
def patch_document(document_id: int, data: DocumentPatch, db: Session = Depends(get_db)):
    """Change any combination of title, category, notice flag and body."""
    service = DocumentService(db)
    return service.patch_document(
        document_id,
        title=data.title,
        category_id=data.category_id,
        is_notice=data.is_notice,
        content=data.content,
        author=data.author,
    )


@router.post("/{document_id}/view", response_model=DocumentResponse)
def record_view(document_id: int, db: Session = Depends(get_db)):
    """Increment the view counter."""
    return DocumentService(db).increment_view_count(document_id)


@router.put("/{document_id}/attachments", response_model=DocumentResponse)
def replace_attachments(document_id: int, data: DocumentAttachmentsUpdate, db: Session = Depends(get_db)):
    return DocumentService(db).change_attachments(document_id, data.attachments)


@router.post("/{document_id}/attachments", response_model=DocumentResponse)
def add_attachments(
    document_id: int,
    files: List[UploadFile] = File(...),
    db: Session = Depends(get_db),
):
    """Store uploaded files and append them to the attachment list."""
    return DocumentService(db).add_attachments(document_id, _to_uploaded_list(files))


@router.put("/{document_id}/content/upload", response_model=DocumentResponse)
def update_from_upload(
    document_id: int,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    attachments: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
):
    """Overwrite the body from a markdown file. New attachments replace the old ones."""
    service = DocumentService(db)
    return service.update_from_upload(
        document_id,
        _to_uploaded(file),
        title=title,
        images=_to_uploaded_list(images),
        attachments=_to_uploaded_list(attachments),
        author=author,
    )


@router.delete("/{document_id}", status_code=204)
def delete_document(document_id: int, db: Session = Depends(get_db)):
    """Soft delete (move to trash)."""
    DocumentService(db).soft_delete(document_id)
    return Response(status_code=204)


@router.post("/{document_id}/restore", response_model=DocumentResponse)
def restore_document(document_id: int, db: Session = Depends(get_db)):
    """Restore a soft-deleted document from trash."""
    return DocumentService(db).restore(document_id)


@router.delete("/{document_id}/permanent", status_code=204)
def permanent_delete_document(document_id: int, db: Session = Depends(get_db)):
    """Permanently delete the document, its versions and its files. Missing ids are a no-op."""
    DocumentService(db).hard_delete(document_id)
    return Response(status_code=204)
