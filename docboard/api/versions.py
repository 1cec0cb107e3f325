"""Version API endpoints.

Versions stay readable while their document is in the trash.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.version import VersionResponse, VersionSummary
from ..services import DocumentService

router = APIRouter(prefix="/api/posts/{document_id}/versions", tags=["versions"])


@router.get("", response_model=List[VersionSummary])
def list_versions(document_id: int, db: Session = Depends(get_db)):
    """All versions of a document, newest first."""
    return DocumentService(db).list_versions(document_id)


@router.get("/latest", response_model=VersionResponse)
def get_latest_version(document_id: int, db: Session = Depends(get_db)):
    """Get latest version for a document."""
    return DocumentService(db).latest_version(document_id)


@router.get("/{version_number}", response_model=VersionResponse)
def get_version(document_id: int, version_number: int, db: Session = Depends(get_db)):
    return DocumentService(db).get_version(document_id, version_number)
