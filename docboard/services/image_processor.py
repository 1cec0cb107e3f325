"""Rewrite local image references in uploaded markdown.

``![alt](path)`` and ``<img src="path">`` references whose file name matches
one of the images uploaded alongside the markdown are stored through
UploadStorage and rewritten to their ``/uploads/...`` URL. Everything else
(remote URLs, existing upload URLs, unmatched names) is left untouched.
"""

import re
from typing import Dict, List, Optional

from .uploads import UPLOADS_URL_PREFIX, UploadedFile, UploadStorage

MARKDOWN_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)", re.IGNORECASE)
HTML_IMAGE_RE = re.compile(r"""<img\s+[^>]*src\s*=\s*["']([^"']+)["'][^>]*>""", re.IGNORECASE)


def _file_name(path: str) -> str:
    return path.replace("\\", "/").rsplit("/", 1)[-1]


def _is_remote(path: str) -> bool:
    lower = path.lower()
    return lower.startswith("http://") or lower.startswith("https://") or lower.startswith("data:")


class MarkdownImageProcessor:
    """Matches image references against uploaded files by name."""

    def __init__(self, storage: UploadStorage):
        self.storage = storage

    def process(self, markdown: str, images: Optional[List[UploadedFile]] = None) -> str:
        if not markdown or not markdown.strip():
            return markdown

        by_name: Dict[str, UploadedFile] = {}
        for image in images or ():
            if image is not None and image.filename and not image.is_empty:
                by_name[image.filename] = image
        # Each uploaded file is stored once even if referenced several times.
        saved: Dict[str, str] = {}

        def resolve(path: str) -> str:
            return self._resolve(path.strip(), by_name, saved)

        def replace_markdown(match: "re.Match") -> str:
            return f"![{match.group(1)}]({resolve(match.group(2))})"

        def replace_html(match: "re.Match") -> str:
            original = match.group(1)
            return match.group(0).replace(original, resolve(original))

        result = MARKDOWN_IMAGE_RE.sub(replace_markdown, markdown)
        return HTML_IMAGE_RE.sub(replace_html, result)

    def _resolve(self, path: str, by_name: Dict[str, UploadedFile], saved: Dict[str, str]) -> str:
        if not path or path.startswith(UPLOADS_URL_PREFIX) or _is_remote(path):
            return path
        if not by_name:
            return path

        name = _file_name(path)
        upload = by_name.get(name)
        if upload is None:
            lowered = name.lower()
            upload = next(
                (f for key, f in by_name.items() if key.lower() == lowered), None
            )
        if upload is None:
            return path

        if upload.filename in saved:
            return saved[upload.filename]
        url = self.storage.save_image(upload)
        if url is None:
            return path
        saved[upload.filename] = url
        return url
