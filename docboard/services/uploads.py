"""Uploaded files: markdown bodies, inline images and attachments.

Images are written to ``<upload_dir>/<uuid>.<ext>`` and attachments to
``<upload_dir>/attachments/<uuid><ext>``; both are served under
``/uploads``. The catalog only ever stores the resulting URLs.
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..core.config import settings
from ..exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX = "/uploads/"
ATTACHMENTS_DIR = "attachments"
ATTACHMENTS_URL_PREFIX = f"{UPLOADS_URL_PREFIX}{ATTACHMENTS_DIR}/"

DEFAULT_TITLE = "Untitled"


@dataclass
class UploadedFile:
    """A file received from a multipart request, already read into memory."""

    filename: Optional[str]
    content_type: Optional[str]
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_empty(self) -> bool:
        return not self.data


def decode_markdown(upload: Optional[UploadedFile], max_bytes: Optional[int] = None) -> str:
    """Decode an uploaded markdown file as UTF-8 after size checks."""
    if upload is None or upload.is_empty:
        raise ValidationError("Upload file is required", field="file")

    limit = settings.max_markdown_bytes if max_bytes is None else max_bytes
    if upload.size > limit:
        raise ValidationError(
            f"Markdown file too large (max {limit} bytes)", field="file"
        )

    try:
        return upload.data.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError("Markdown file must be UTF-8 encoded", field="file")


def extract_title_or_default(markdown: Optional[str]) -> str:
    """Use the first line's ``# heading`` as a title, else ``Untitled``."""
    if not markdown:
        return DEFAULT_TITLE
    stripped = markdown.strip()
    if not stripped.startswith("#"):
        return DEFAULT_TITLE
    first_line = stripped.split("\n", 1)[0]
    title = first_line.lstrip("#").strip()
    return title or DEFAULT_TITLE


def image_extension(content_type: Optional[str]) -> Optional[str]:
    """File extension for an ``image/*`` content type, or None for anything else."""
    if not content_type or not content_type.lower().startswith("image/"):
        return None
    ext = content_type.lower().split("/", 1)[1].split(";", 1)[0].strip()
    if "jpeg" in ext:
        ext = "jpg"
    if ext == "svg+xml":
        ext = "svg"
    return ext or None


class UploadStorage:
    """Writes uploaded images and attachments under the upload directory."""

    def __init__(self, root: Union[str, Path], max_attachment_bytes: Optional[int] = None):
        self.root = Path(root).expanduser().resolve()
        self.max_attachment_bytes = (
            settings.max_attachment_bytes if max_attachment_bytes is None else max_attachment_bytes
        )

    @property
    def attachments_dir(self) -> Path:
        return self.root / ATTACHMENTS_DIR

    def _write(self, target: Path, data: bytes) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to store upload: {target.name}", path=target.name) from exc

    def save_image(self, upload: UploadedFile) -> Optional[str]:
        """Store an image and return its URL. Non-image uploads return None."""
        ext = image_extension(upload.content_type)
        if ext is None or upload.is_empty:
            return None
        filename = f"{uuid.uuid4()}.{ext}"
        self._write(self.root / filename, upload.data)
        logger.debug(f"Stored image {upload.filename!r} as {filename}")
        return f"{UPLOADS_URL_PREFIX}{filename}"

    def save_editor_image(self, upload: Optional[UploadedFile]) -> str:
        """Store a single image uploaded from the editor, enforcing type and size."""
        if upload is None or upload.is_empty:
            raise ValidationError("File is required", field="file")
        if image_extension(upload.content_type) is None:
            raise ValidationError("Only image files are allowed", field="file")
        if upload.size > settings.max_image_bytes:
            raise ValidationError(
                f"Image too large (max {settings.max_image_bytes} bytes)", field="file"
            )
        return self.save_image(upload)

    def save_attachments(self, uploads: Iterable[UploadedFile]) -> List[str]:
        """Store each non-empty, named upload and return their URLs in order."""
        uploads = [u for u in uploads if u is not None and not u.is_empty and u.filename]
        for upload in uploads:
            if upload.size > self.max_attachment_bytes:
                raise ValidationError(
                    f"File too large (max {self.max_attachment_bytes} bytes): {upload.filename}",
                    field="attachments",
                )

        urls: List[str] = []
        for upload in uploads:
            ext = Path(upload.filename).suffix
            filename = f"{uuid.uuid4()}{ext}"
            self._write(self.attachments_dir / filename, upload.data)
            urls.append(f"{ATTACHMENTS_URL_PREFIX}{filename}")
        if urls:
            logger.info("Attachments stored", extra={"count": len(urls)})
        return urls

    def delete_attachments(self, urls: Iterable[str]) -> int:
        """Remove stored attachment files. URLs outside the attachment area are ignored."""
        removed = 0
        for url in urls or ():
            if not url or not url.startswith(ATTACHMENTS_URL_PREFIX):
                continue
            name = url[len(ATTACHMENTS_URL_PREFIX):]
            if not name or "/" in name or "\\" in name or name in (".", ".."):
                continue
            try:
                (self.attachments_dir / name).unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.warning(f"Failed to delete attachment {url}: {exc}")
        return removed
