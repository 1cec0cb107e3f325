"""Shared test fixtures for the Docboard test suite.

Tests run against a throwaway SQLite database and throwaway content/upload
directories created under a temporary directory. Tables and storage
directories are emptied before every test for isolation.
"""

import os
import shutil
import tempfile
from pathlib import Path

# Point the app at temporary storage before any app imports.
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="docboard-tests-"))
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL", f"sqlite:///{_TEST_ROOT / 'test.db'}"
)
os.environ["CONTENT_ROOT"] = str(_TEST_ROOT / "content")
os.environ["UPLOAD_DIR"] = str(_TEST_ROOT / "uploads")
os.environ["SEED_CATEGORIES"] = "false"
os.environ["LOG_FORMAT"] = "text"

import pytest
from sqlalchemy import text
from fastapi.testclient import TestClient

from docboard.database import get_db, SessionLocal
from docboard.main import app
from docboard.core.config import settings
from tests.factories import make_category

# Delete order matters for foreign keys.
_CLEAN_TABLES = ["document_versions", "documents", "categories"]


def _empty_dir(path: str) -> None:
    root = Path(path)
    if root.exists():
        shutil.rmtree(root)
    root.mkdir(parents=True, exist_ok=True)


@pytest.fixture(autouse=True)
def _clean_state():
    """Empty all tables and storage directories before each test."""
    db = SessionLocal()
    try:
        for table in _CLEAN_TABLES:
            db.execute(text(f"DELETE FROM {table}"))
        db.commit()
    finally:
        db.close()
    _empty_dir(settings.content_root)
    _empty_dir(settings.upload_dir)
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def category(db):
    """A root category most document tests can file into."""
    return make_category(db, "General")

