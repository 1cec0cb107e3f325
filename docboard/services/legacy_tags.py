"""Compatibility shim between category codes and legacy category tags.

Documents written before the category tree existed carry only a
``legacy_category_tag``. Listing by category also pulls in those rows when
the selected category's code maps to a tag here. Once every legacy row has
been backfilled with a ``category_id`` this module and its single call site
in ListingService can be removed.
"""

from typing import Iterable, List, Optional

from ..exceptions import ValidationError
from ..models import LegacyCategoryTag

# Each tag is reachable from exactly one seeded category code.
# PRACTICE has no category counterpart and is only selectable by tag.
LEGACY_TAG_CATEGORY_CODES = {
    LegacyCategoryTag.SYSTEM: "CAT_SYSTEM",
    LegacyCategoryTag.INCIDENT: "CAT_INCIDENT",
    LegacyCategoryTag.TRAINING: "CAT_TRAINING",
}

_CODE_TO_TAG = {code: tag for tag, code in LEGACY_TAG_CATEGORY_CODES.items()}


def legacy_tag_for_code(code: Optional[str]) -> Optional[LegacyCategoryTag]:
    """Legacy tag for a category code (case-insensitive exact match), if any."""
    if not code:
        return None
    return _CODE_TO_TAG.get(code.strip().upper())


def parse_legacy_tags(values: Optional[Iterable[str]]) -> List[LegacyCategoryTag]:
    """Parse the deprecated ``categories`` query values into tags.

    Accepts repeated values as well as comma-separated ones. Unknown names
    raise ValidationError.
    """
    tags: List[LegacyCategoryTag] = []
    for raw in values or ():
        for part in raw.split(","):
            name = part.strip().upper()
            if not name:
                continue
            try:
                tag = LegacyCategoryTag(name)
            except ValueError:
                raise ValidationError(
                    f"Unknown legacy category '{part.strip()}'. "
                    f"Use one of: {', '.join(t.value for t in LegacyCategoryTag)}",
                    field="categories",
                )
            if tag not in tags:
                tags.append(tag)
    return tags
