"""Unit tests for VersionLedger numbering."""

import pytest

from docboard.exceptions import VersionNotFoundError
from docboard.services.version_ledger import VersionLedger


class TestAppend:

    def test_numbers_start_at_one_and_increase(self, db):
        ledger = VersionLedger(db)
        v1 = ledger.append(10, "first", "alice")
        v2 = ledger.append(10, "second")
        db.commit()
        assert (v1.version_number, v2.version_number) == (1, 2)
        assert v1.author_tag == "alice"

    def test_numbering_is_per_document(self, db):
        ledger = VersionLedger(db)
        ledger.append(1, "a")
        ledger.append(1, "b")
        other = ledger.append(2, "c")
        db.commit()
        assert other.version_number == 1

    @pytest.mark.parametrize("content", [None, "", "   \n"])
    def test_blank_content_records_nothing(self, db, content):
        ledger = VersionLedger(db)
        assert ledger.append(3, content) is None
        assert ledger.list_for_document(3) == []


class TestReads:

    def test_latest_and_get(self, db):
        ledger = VersionLedger(db)
        ledger.append(5, "one")
        ledger.append(5, "two")
        db.commit()
        assert ledger.latest(5).content == "two"
        assert ledger.get(5, 1).content == "one"

    def test_list_is_newest_first(self, db):
        ledger = VersionLedger(db)
        for body in ("a", "b", "c"):
            ledger.append(6, body)
        db.commit()
        assert [v.version_number for v in ledger.list_for_document(6)] == [3, 2, 1]

    def test_missing_versions(self, db):
        ledger = VersionLedger(db)
        with pytest.raises(VersionNotFoundError):
            ledger.latest(404)
        ledger.append(7, "x")
        db.commit()
        with pytest.raises(VersionNotFoundError):
            ledger.get(7, 2)

    def test_purge(self, db):
        ledger = VersionLedger(db)
        ledger.append(8, "a")
        ledger.append(8, "b")
        db.commit()
        assert ledger.purge(8) == 2
        db.commit()
        assert ledger.list_for_document(8) == []
