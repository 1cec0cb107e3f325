"""Factories shared by the service and API tests."""

from docboard.services.category_service import CategoryService
from docboard.services.document_service import DocumentService


def make_category(db, label: str = "General", parent_id=None):
    """Create a category through the service layer."""
    return CategoryService(db).create(label, parent_id=parent_id)


def make_document(
    db,
    category_id: int,
    title: str = "Test Document",
    content: str = "# Test\n\nHello world.",
    **overrides,
):
    """Create a document (and its first version) through the service layer."""
    return DocumentService(db).create_document(
        title=title, category_id=category_id, content=content, **overrides
    )


def make_payload(
    category_id: int,
    title: str = "Test Document",
    content: str = "# Test\n\nHello world.",
    **overrides,
) -> dict:
    """Factory for document creation payloads."""
    payload = {
        "title": title,
        "category_id": category_id,
        "content": content,
        "is_notice": False,
    }
    payload.update(overrides)
    return payload
