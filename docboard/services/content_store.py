"""Filesystem store for document bodies.

Each document body lives at ``documents/{id}.md`` under the configured
content root. Writes go through a temporary file in the target directory,
are fsynced, then renamed over the destination so readers only ever see the
old or the new body in full.

All paths handed to the store are relative to the root. They are validated
before any filesystem call: absolute paths, drive letters, backslashes and
``..`` segments are rejected outright, and anything that still resolves
outside the root after normalisation is rejected as well.
"""

import logging
import os
import re
import tempfile
from pathlib import Path, PurePosixPath
from typing import Optional, Union

from ..exceptions import (
    ConflictError,
    ContentNotFoundError,
    InvalidPathError,
    StorageError,
)

logger = logging.getLogger(__name__)

DOCUMENTS_DIR = "documents"

_BOM = "\ufeff"
_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def normalize_text(text: Optional[str]) -> str:
    """Strip a leading BOM and normalise line endings to ``\\n``."""
    if text is None:
        return ""
    if text.startswith(_BOM):
        text = text[1:]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def content_path_for(document_id: int) -> str:
    """Root-relative path of a document body."""
    return f"{DOCUMENTS_DIR}/{document_id}.md"


class ContentStore:
    """Durable, path-safe file storage for document bodies."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser().resolve()

    # -- path safety -------------------------------------------------------

    def resolve(self, relative_path: str) -> Path:
        """Map a root-relative path to an absolute one, or raise InvalidPathError."""
        if relative_path is None or not str(relative_path).strip():
            raise InvalidPathError(str(relative_path), "path is empty")
        if "\x00" in relative_path:
            raise InvalidPathError(relative_path, "path contains a NUL byte")
        if "\\" in relative_path or _DRIVE_RE.match(relative_path):
            raise InvalidPathError(relative_path, "path must use forward slashes and no drive")

        pure = PurePosixPath(relative_path)
        if pure.is_absolute():
            raise InvalidPathError(relative_path, "path must be relative to the content root")
        if any(part == ".." for part in pure.parts):
            raise InvalidPathError(relative_path, "parent-directory segments are not allowed")

        candidate = (self.root / pure).resolve()
        try:
            candidate.relative_to(self.root)
        except ValueError:
            raise InvalidPathError(relative_path, "path escapes the content root")
        if candidate == self.root:
            raise InvalidPathError(relative_path, "path points at the content root")
        return candidate

    def exists(self, relative_path: str) -> bool:
        return self.resolve(relative_path).is_file()

    # -- writes ------------------------------------------------------------

    def save(self, text: str, document_id: int) -> str:
        """Write the body of a brand-new document. Refuses to clobber an existing file."""
        relative = content_path_for(document_id)
        target = self.resolve(relative)
        if target.exists():
            raise ConflictError(
                f"Content already exists for new document {document_id}",
                details={"document_id": document_id, "path": relative},
            )
        self._write(target, relative, normalize_text(text))
        logger.debug(f"Saved content for document {document_id} at {relative}")
        return relative

    def write_or_overwrite(self, text: str, document_id: int) -> str:
        """Write the fixed path for an existing document, replacing any stray file."""
        relative = content_path_for(document_id)
        self._write(self.resolve(relative), relative, normalize_text(text))
        return relative

    def overwrite(self, relative_path: str, text: str) -> None:
        """Atomically replace the body stored at *relative_path*."""
        self._write(self.resolve(relative_path), relative_path, normalize_text(text))

    def _write(self, target: Path, relative: str, text: str) -> None:
        data = text.encode("utf-8")
        temp_path: Optional[Path] = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=target.parent, prefix=f".{target.name}.", suffix=".tmp", delete=False
            ) as tmp:
                temp_path = Path(tmp.name)
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())

            try:
                os.replace(temp_path, target)
                temp_path = None
            except OSError as exc:
                logger.warning(
                    f"Atomic rename failed for {relative}, falling back to in-place write: {exc}"
                )
                self._write_in_place(target, data)

            _fsync_dir(target.parent)
        except OSError as exc:
            logger.error(f"Failed to write content {relative}: {exc}")
            raise StorageError(f"Failed to write content: {relative}", path=relative) from exc
        finally:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)

    @staticmethod
    def _write_in_place(target: Path, data: bytes) -> None:
        """Overwrite without truncating first, so the file is never left empty.

        A crash mid-write can leave a mix of old and new bytes, which is a
        weaker guarantee than the rename path.
        """
        mode = "r+b" if target.exists() else "wb"
        with open(target, mode) as fh:
            fh.write(data)
            fh.truncate(len(data))
            fh.flush()
            os.fsync(fh.fileno())

    # -- reads / deletes ---------------------------------------------------

    def read(self, relative_path: str) -> str:
        """Return the stored body. Raises ContentNotFoundError when absent."""
        target = self.resolve(relative_path)
        try:
            return target.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ContentNotFoundError(relative_path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.error(f"Failed to read content {relative_path}: {exc}")
            raise StorageError(f"Failed to read content: {relative_path}", path=relative_path) from exc

    def delete_if_exists(self, relative_path: Optional[str]) -> bool:
        """Remove a stored body. Blank paths and missing files are a no-op."""
        if relative_path is None or not relative_path.strip():
            return False
        target = self.resolve(relative_path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError(f"Failed to delete content: {relative_path}", path=relative_path) from exc
        logger.debug(f"Deleted content {relative_path}")
        return True


def _fsync_dir(path: Path) -> None:
    try:
        fd = os.open(path, os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        # Directories cannot be fsynced on every platform.
        pass
    finally:
        os.close(fd)
