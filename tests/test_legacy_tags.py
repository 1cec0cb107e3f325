"""Tests for the legacy category tag shim."""

import pytest

from docboard.exceptions import ValidationError
from docboard.models import LegacyCategoryTag
from docboard.services.legacy_tags import legacy_tag_for_code, parse_legacy_tags


class TestLegacyTagForCode:

    @pytest.mark.parametrize("code,expected", [
        ("CAT_SYSTEM", LegacyCategoryTag.SYSTEM),
        ("cat_incident", LegacyCategoryTag.INCIDENT),
        (" CAT_TRAINING ", LegacyCategoryTag.TRAINING),
        ("CAT_ONBOARDING", None),
        ("CAT_SYSTEM_EXTRA", None),
        (None, None),
    ])
    def test_mapping(self, code, expected):
        assert legacy_tag_for_code(code) == expected

    def test_practice_has_no_category(self):
        assert LegacyCategoryTag.PRACTICE not in {
            legacy_tag_for_code(code) for code in ("CAT_SYSTEM", "CAT_INCIDENT", "CAT_TRAINING")
        }


class TestParseLegacyTags:

    def test_repeated_and_comma_forms(self):
        assert parse_legacy_tags(["system", "INCIDENT,training"]) == [
            LegacyCategoryTag.SYSTEM,
            LegacyCategoryTag.INCIDENT,
            LegacyCategoryTag.TRAINING,
        ]

    def test_duplicates_and_blanks_dropped(self):
        assert parse_legacy_tags(["SYSTEM, ,system"]) == [LegacyCategoryTag.SYSTEM]

    def test_none(self):
        assert parse_legacy_tags(None) == []

    def test_unknown_value(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_legacy_tags(["HR"])
        assert exc_info.value.details == {"field": "categories"}
