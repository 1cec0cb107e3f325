"""Docboard API application: settings, logging, middleware and routers."""

import logging
import re
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, Tuple

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.orm import Session

from . import __version__
from .api import categories_router, documents_router, history_router, uploads_router, versions_router
from .core.config import settings, ConfigurationError, Environment
from .core.logging_config import setup_logging
from .database import engine, get_db, init_db, is_postgresql, SessionLocal, DATABASE_URL
from .exceptions import DocboardException
from .middleware.exception_handler import docboard_exception_handler, unhandled_exception_handler
from .middleware.request_context import RequestContextMiddleware
from .repositories import CategoryRepository, DocumentRepository

setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)

# (substring of the driver error, what to tell the operator)
_POSTGRES_HINTS: Tuple[Tuple[str, str], ...] = (
    ("authentication failed", "Check username and password in DATABASE_URL"),
    ("password", "Check username and password in DATABASE_URL"),
    ("does not exist", "Create the database first: createdb <database_name>"),
)
_POSTGRES_FALLBACK_HINT = "Is PostgreSQL running? Try: pg_isready -h <host> -p <port>"
_SQLITE_HINT = "Make sure the database file's directory exists and is writable"


def _mask_url(url: str) -> str:
    """Hide the password part of a database URL."""
    return re.sub(r"://([^:/@]+):[^@]*@", r"://\1:***@", url)


def _connection_hint(error: str) -> str:
    if not is_postgresql():
        return _SQLITE_HINT
    lowered = error.lower()
    for needle, hint in _POSTGRES_HINTS:
        if needle in lowered:
            return hint
    return _POSTGRES_FALLBACK_HINT


def _check_database() -> None:
    """Open one connection before serving. Exits the process when that fails."""
    masked = _mask_url(DATABASE_URL)
    logger.info("Opening database %s", masked)
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as exc:
        logger.critical(
            "Cannot reach the database at %s: %s (hint: %s)",
            masked,
            exc,
            _connection_hint(str(exc)),
        )
        raise SystemExit(1) from exc
    logger.info("Database reachable")


def _ensure_storage_dirs() -> None:
    for directory in (settings.content_root, settings.upload_dir):
        Path(directory).expanduser().mkdir(parents=True, exist_ok=True)


_check_database()
init_db()
_ensure_storage_dirs()


def _seed_default_categories() -> None:
    from .core.seeder import seed_categories

    db = SessionLocal()
    try:
        changed = seed_categories(db)
        if changed:
            logger.info("Default categories seeded or repaired", extra={"changed": changed})
    except Exception as exc:
        db.rollback()
        logger.warning("Category seeding skipped after an error: %s", exc)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Refuse unsafe production settings, then seed categories if enabled."""
    logger.info("Starting in %s mode", settings.environment.value)
    try:
        settings.validate_production_config()
    except ConfigurationError as exc:
        logger.critical("Refusing to start: %s", exc)
        raise SystemExit(1) from exc

    if settings.environment == Environment.DEVELOPMENT:
        local = [o for o in settings.get_cors_origins() if "localhost" in o or "127.0.0.1" in o]
        if local:
            logger.warning("CORS accepts local origins %s; drop them before deploying", local)

    if settings.seed_categories:
        _seed_default_categories()

    yield


app = FastAPI(
    title="Docboard API",
    description=(
        "REST API for an internal onboarding knowledge base. "
        "Markdown documents are organised in a category tree, every content "
        "change is kept as a numbered version, and deleted documents go to a "
        "trash from which they can be restored."
    ),
    version=__version__,
    lifespan=lifespan,
)

# Added last runs first: CORS wraps the request context middleware.
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "X-Request-ID"],
)

app.add_exception_handler(DocboardException, docboard_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

for router in (categories_router, documents_router, versions_router, history_router, uploads_router):
    app.include_router(router)

app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

logger.info(
    "Docboard API ready",
    extra={
        "environment": settings.environment.value,
        "database": "postgresql" if is_postgresql() else "sqlite",
        "content_root": settings.content_root,
        "upload_dir": settings.upload_dir,
    },
)

_started_at = time.monotonic()


@app.get("/")
def root():
    return {"name": "Docboard API", "version": __version__, "status": "running"}


def _probe(db: Session) -> Dict[str, int]:
    db.execute(text("SELECT 1"))
    return {
        "document_count": DocumentRepository(db).count(),
        "category_count": CategoryRepository(db).count(),
    }


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Database status, uptime and live document and category counts.

    Always answers 200; a failing database shows up as ``"degraded"``.
    """
    try:
        counts = _probe(db)
        db_status = "ok"
    except Exception:
        logger.warning("Health probe could not query the database", exc_info=True)
        counts = {"document_count": 0, "category_count": 0}
        db_status = "error"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "uptime_seconds": round(time.monotonic() - _started_at),
        "version": __version__,
        **counts,
    }
