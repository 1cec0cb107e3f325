"""Unit tests for ContentStore: path safety, atomic writes and reads."""

import pytest

from docboard.exceptions import ConflictError, ContentNotFoundError, InvalidPathError, StorageError
from docboard.services.content_store import ContentStore, content_path_for, normalize_text


@pytest.fixture()
def store(tmp_path):
    return ContentStore(tmp_path / "content")


class TestNormalizeText:

    def test_strips_bom(self):
        assert normalize_text("\ufeff# Title") == "# Title"

    def test_crlf_becomes_lf(self):
        assert normalize_text("a\r\nb\rc") == "a\nb\nc"

    def test_none_becomes_empty(self):
        assert normalize_text(None) == ""


class TestResolve:

    @pytest.mark.parametrize("path", [
        "",
        "   ",
        "../etc/passwd",
        "documents/../../secret.md",
        "/etc/passwd",
        "C:/windows/file.md",
        "documents\\1.md",
        "bad\x00name.md",
        ".",
    ])
    def test_rejects_unsafe_paths(self, store, path):
        with pytest.raises(InvalidPathError):
            store.resolve(path)

    def test_accepts_nested_relative_path(self, store):
        resolved = store.resolve("documents/7.md")
        assert resolved == store.root / "documents" / "7.md"

    def test_content_path_for(self):
        assert content_path_for(42) == "documents/42.md"


class TestWrites:

    def test_save_then_read(self, store):
        path = store.save("# Hello\r\n", 1)
        assert path == "documents/1.md"
        assert store.read(path) == "# Hello\n"

    def test_save_refuses_existing_file(self, store):
        store.save("first", 1)
        with pytest.raises(ConflictError):
            store.save("second", 1)
        assert store.read("documents/1.md") == "first"

    def test_write_or_overwrite_replaces_stray_file(self, store):
        store.save("stray", 3)
        path = store.write_or_overwrite("fresh", 3)
        assert store.read(path) == "fresh"

    def test_overwrite_leaves_no_temp_files(self, store):
        path = store.save("v1", 5)
        store.overwrite(path, "v2")
        leftovers = [p.name for p in (store.root / "documents").iterdir()]
        assert leftovers == ["5.md"]
        assert store.read(path) == "v2"

    def test_overwrite_same_text_twice_gives_same_bytes(self, store):
        path = store.save("v1", 6)
        store.overwrite(path, "# Same\r\nbody")
        first = (store.root / path).read_bytes()
        store.overwrite(path, "# Same\r\nbody")
        assert (store.root / path).read_bytes() == first == b"# Same\nbody"

    def test_failed_rename_falls_back_to_in_place_write(self, store, monkeypatch):
        path = store.save("a much longer original body " * 20, 7)

        def _no_rename(src, dst):
            raise OSError("rename not permitted")

        monkeypatch.setattr("docboard.services.content_store.os.replace", _no_rename)
        store.overwrite(path, "short")

        assert store.read(path) == "short"
        assert [p.name for p in (store.root / "documents").iterdir()] == ["7.md"]

    def test_write_failure_becomes_storage_error(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        store = ContentStore(blocker)
        with pytest.raises(StorageError):
            store.save("body", 1)


class TestReadDelete:

    def test_read_missing_raises(self, store):
        with pytest.raises(ContentNotFoundError):
            store.read("documents/999.md")

    def test_exists(self, store):
        path = store.save("x", 2)
        assert store.exists(path) is True
        assert store.exists("documents/3.md") is False

    def test_delete_if_exists(self, store):
        path = store.save("x", 4)
        assert store.delete_if_exists(path) is True
        assert store.delete_if_exists(path) is False

    def test_delete_blank_path_is_noop(self, store):
        assert store.delete_if_exists(None) is False
        assert store.delete_if_exists("  ") is False
