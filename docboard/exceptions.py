"""Custom exception hierarchy for Docboard."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Document errors
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"

    # Version errors
    VERSION_NOT_FOUND = "VERSION_NOT_FOUND"

    # Category errors
    CATEGORY_NOT_FOUND = "CATEGORY_NOT_FOUND"
    SELF_PARENT = "SELF_PARENT"
    CIRCULAR_PARENT = "CIRCULAR_PARENT"

    # Content store errors
    CONTENT_NOT_FOUND = "CONTENT_NOT_FOUND"
    INVALID_CONTENT_PATH = "INVALID_CONTENT_PATH"
    STORAGE_ERROR = "STORAGE_ERROR"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Concurrency errors
    CONFLICT = "CONFLICT"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorKind(str, Enum):
    """Coarse error classification shared by every error code."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    CONFLICT = "CONFLICT"
    STORAGE_FAILURE = "STORAGE_FAILURE"
    UNEXPECTED = "UNEXPECTED"


class DocboardException(Exception):
    """Root of every error the services raise on purpose.

    Carries what the API error envelope needs: a message for people, an
    ``ErrorCode`` and ``ErrorKind`` for programs, the HTTP status and a
    free-form ``details`` mapping.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        kind: ErrorKind = ErrorKind.UNEXPECTED,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.kind = kind
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """The ``{error, kind, message, details}`` body sent to clients."""
        return {
            "error": self.error_code.value,
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details
        }


class DocumentNotFoundError(DocboardException):
    """Document not found, or soft-deleted."""

    def __init__(self, document_id: int):
        super().__init__(
            f"Document not found: {document_id}",
            ErrorCode.DOCUMENT_NOT_FOUND,
            kind=ErrorKind.NOT_FOUND,
            status_code=404,
            details={"document_id": document_id}
        )


class VersionNotFoundError(DocboardException):
    """Version not found for a document."""

    def __init__(self, document_id: int, version_number: Optional[int] = None):
        if version_number is None:
            message = f"Document {document_id} has no versions"
        else:
            message = f"Version {version_number} not found for document {document_id}"
        super().__init__(
            message,
            ErrorCode.VERSION_NOT_FOUND,
            kind=ErrorKind.NOT_FOUND,
            status_code=404,
            details={"document_id": document_id, "version_number": version_number}
        )


class CategoryNotFoundError(DocboardException):
    """Category not found in database."""

    def __init__(self, category_id):
        super().__init__(
            f"Category not found: {category_id}",
            ErrorCode.CATEGORY_NOT_FOUND,
            kind=ErrorKind.NOT_FOUND,
            status_code=404,
            details={"category_id": category_id}
        )


class ContentNotFoundError(DocboardException):
    """Content file missing from the content store."""

    def __init__(self, path: str):
        super().__init__(
            f"Content not found: {path}",
            ErrorCode.CONTENT_NOT_FOUND,
            kind=ErrorKind.NOT_FOUND,
            status_code=404,
            details={"path": path}
        )


class ValidationError(DocboardException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            kind=ErrorKind.INVALID_ARGUMENT,
            status_code=400,
            details=details
        )


class SelfParentError(DocboardException):
    """A category cannot be its own parent."""

    def __init__(self, category_id: int):
        super().__init__(
            f"Category {category_id} cannot be its own parent",
            ErrorCode.SELF_PARENT,
            kind=ErrorKind.INVALID_ARGUMENT,
            status_code=400,
            details={"category_id": category_id}
        )


class CircularParentError(DocboardException):
    """Reparenting would make a category its own ancestor."""

    def __init__(self, category_id: int, parent_id: int):
        super().__init__(
            f"Cannot move category {category_id} under its descendant {parent_id}",
            ErrorCode.CIRCULAR_PARENT,
            kind=ErrorKind.INVALID_ARGUMENT,
            status_code=400,
            details={"category_id": category_id, "parent_id": parent_id}
        )


class InvalidPathError(DocboardException):
    """Content path escapes the content root or is otherwise malformed."""

    def __init__(self, path: str, reason: str = "invalid path"):
        super().__init__(
            f"Invalid content path '{path}': {reason}",
            ErrorCode.INVALID_CONTENT_PATH,
            kind=ErrorKind.INVALID_ARGUMENT,
            status_code=400,
            details={"path": path, "reason": reason}
        )


class ConflictError(DocboardException):
    """Raised when a write would clobber existing state."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            kind=ErrorKind.CONFLICT,
            status_code=409,
            details=details
        )


class StorageError(DocboardException):
    """Filesystem operation on the content or upload store failed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.STORAGE_ERROR,
            kind=ErrorKind.STORAGE_FAILURE,
            status_code=500,
            details={"path": path} if path else {}
        )
