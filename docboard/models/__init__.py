"""Database models."""

from .category import Category
from .document import Document, LegacyCategoryTag
from .version import Version

__all__ = ["Category", "Document", "LegacyCategoryTag", "Version"]
