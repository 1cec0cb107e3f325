"""Tests for upload decoding, image reference rewriting and attachment storage."""

import pytest

from docboard.exceptions import ValidationError
from docboard.services.image_processor import MarkdownImageProcessor
from docboard.services.uploads import (
    UploadedFile,
    UploadStorage,
    decode_markdown,
    extract_title_or_default,
    image_extension,
)


@pytest.fixture()
def storage(tmp_path):
    return UploadStorage(tmp_path / "uploads", max_attachment_bytes=16)


def _png(name: str = "shot.png") -> UploadedFile:
    return UploadedFile(name, "image/png", b"\x89PNG\r\n")


class TestDecodeMarkdown:

    def test_utf8(self):
        assert decode_markdown(UploadedFile("a.md", "text/markdown", "héllo".encode())) == "héllo"

    def test_missing_or_empty(self):
        with pytest.raises(ValidationError):
            decode_markdown(None)
        with pytest.raises(ValidationError):
            decode_markdown(UploadedFile("a.md", "text/markdown", b""))

    def test_too_large(self):
        with pytest.raises(ValidationError):
            decode_markdown(UploadedFile("a.md", "text/markdown", b"x" * 11), max_bytes=10)


class TestTitleExtraction:

    @pytest.mark.parametrize("markdown,expected", [
        ("# Welcome\n\nbody", "Welcome"),
        ("  ## Nested heading  \nbody", "Nested heading"),
        ("no heading", "Untitled"),
        ("#\nbody", "Untitled"),
        ("", "Untitled"),
        (None, "Untitled"),
    ])
    def test_first_heading_or_default(self, markdown, expected):
        assert extract_title_or_default(markdown) == expected


class TestImageExtension:

    @pytest.mark.parametrize("content_type,expected", [
        ("image/png", "png"),
        ("image/jpeg", "jpg"),
        ("image/svg+xml", "svg"),
        ("IMAGE/GIF", "gif"),
        ("application/pdf", None),
        (None, None),
    ])
    def test_mapping(self, content_type, expected):
        assert image_extension(content_type) == expected


class TestImageProcessor:

    def test_rewrites_markdown_and_html_references(self, storage):
        md = "![a](images/shot.png)\n<img src=\"shot.png\" alt=\"b\">\n"
        result = MarkdownImageProcessor(storage).process(md, [_png()])

        assert "images/shot.png" not in result
        assert 'src="shot.png"' not in result
        # Referenced twice, stored once.
        assert len(list(storage.root.glob("*.png"))) == 1
        url = next(storage.root.glob("*.png")).name
        assert result.count(f"/uploads/{url}") == 2

    def test_case_insensitive_fallback(self, storage):
        result = MarkdownImageProcessor(storage).process("![x](SHOT.PNG)", [_png("shot.png")])
        assert result.startswith("![x](/uploads/")

    def test_remote_and_unmatched_are_kept(self, storage):
        md = "![r](https://cdn.example.com/a.png) ![d](data:image/png;base64,AAAA) ![m](missing.png)"
        assert MarkdownImageProcessor(storage).process(md, [_png()]) == md

    def test_no_images_is_noop(self, storage):
        md = "![a](local.png)"
        assert MarkdownImageProcessor(storage).process(md, None) == md


class TestUploadStorage:

    def test_save_attachments_keeps_extension(self, storage):
        urls = storage.save_attachments([UploadedFile("Manual.PDF", "application/pdf", b"%PDF")])
        assert len(urls) == 1
        assert urls[0].startswith("/uploads/attachments/")
        assert urls[0].endswith(".PDF")
        assert (storage.attachments_dir / urls[0].rsplit("/", 1)[-1]).exists()

    def test_skips_empty_and_unnamed(self, storage):
        uploads = [UploadedFile("a.txt", "text/plain", b""), UploadedFile(None, "text/plain", b"x")]
        assert storage.save_attachments(uploads) == []

    def test_oversized_attachment_rejected_before_writing(self, storage):
        uploads = [
            UploadedFile("ok.txt", "text/plain", b"ok"),
            UploadedFile("big.bin", "application/octet-stream", b"x" * 17),
        ]
        with pytest.raises(ValidationError):
            storage.save_attachments(uploads)
        assert not storage.attachments_dir.exists()

    def test_delete_attachments_ignores_foreign_urls(self, storage):
        urls = storage.save_attachments([UploadedFile("a.txt", "text/plain", b"a")])
        removed = storage.delete_attachments(
            urls + ["https://example.com/x.pdf", "/uploads/attachments/../escape", "/uploads/attachments/gone.txt"]
        )
        assert removed == 1

    def test_editor_image_rules(self, storage):
        with pytest.raises(ValidationError):
            storage.save_editor_image(None)
        with pytest.raises(ValidationError):
            storage.save_editor_image(UploadedFile("a.pdf", "application/pdf", b"%PDF"))
        assert storage.save_editor_image(_png()).startswith("/uploads/")
