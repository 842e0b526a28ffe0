"""
Category gating for the tag filter.

Decides whether the filter is shown on the current page and converts the
admin allow-list between its persisted form and the AllowList variants.
"""

import logging
from typing import Any, Iterable, Optional

from src.filters.models import (
    ALL_CATEGORIES,
    AllCategories,
    AllowList,
    CurrentView,
    SpecificCategories,
)

logger = logging.getLogger(__name__)


def coerce_category_id(value: Any) -> Optional[int]:
    """
    Normalize a category identifier to a non-negative int.

    Accepts ints, integral floats and digit strings (surrounding whitespace
    and a leading sign allowed). Negative values are folded to their absolute
    value, matching how the storefront stores ids. Returns None for anything
    else, including bools.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return abs(value)
    if isinstance(value, float):
        if not value.is_integer():
            return None
        return abs(int(value))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return abs(int(text, 10))
        except ValueError:
            return None
    return None


def is_filter_active(view: Optional[CurrentView], allow_list: AllowList) -> bool:
    """Return True when the tag filter should be shown for this view."""
    if view is None or not view.is_category_archive:
        return False

    category = view.category
    if category is None:
        return False

    category_id = coerce_category_id(getattr(category, "term_id", None))
    if category_id is None:
        return False

    if isinstance(allow_list, AllCategories):
        return True

    if not isinstance(allow_list, SpecificCategories):
        return False

    return category_id in allow_list


def is_category_enabled(category_id: Any, allow_list: AllowList) -> bool:
    """Whether a category's checkbox is ticked on the settings page."""
    if isinstance(allow_list, AllCategories):
        return True
    if not isinstance(allow_list, SpecificCategories):
        return False
    normalized = coerce_category_id(category_id)
    return normalized is not None and normalized in allow_list


def parse_allow_list(raw: Any) -> AllowList:
    """
    Convert a persisted allow-list value into an AllowList.

    None (never saved) and the "all" sentinel enable every category. A
    collection of coercible ids becomes SpecificCategories. Anything else
    fails closed: the filter is disabled everywhere.
    """
    if raw is None:
        return AllCategories()

    if isinstance(raw, (AllCategories, SpecificCategories)):
        return raw

    if isinstance(raw, str):
        if raw == ALL_CATEGORIES:
            return AllCategories()
        logger.warning(f"Unrecognized allow-list value {raw!r}; disabling tag filter")
        return SpecificCategories()

    if isinstance(raw, (list, tuple, set, frozenset)):
        ids = set()
        for item in raw:
            category_id = coerce_category_id(item)
            if category_id is None:
                logger.warning(f"Allow-list contains non-numeric id {item!r}; disabling tag filter")
                return SpecificCategories()
            ids.add(category_id)
        return SpecificCategories(frozenset(ids))

    logger.warning(f"Unsupported allow-list type {type(raw).__name__}; disabling tag filter")
    return SpecificCategories()


def serialize_allow_list(allow_list: AllowList) -> Any:
    """Persisted form: the "all" sentinel or a sorted list of ids."""
    if isinstance(allow_list, AllCategories):
        return ALL_CATEGORIES
    return sorted(allow_list.category_ids)


def build_allow_list(selected_ids: Iterable[Any], total_category_count: int,
                     known_ids: Optional[Iterable[Any]] = None) -> AllowList:
    """
    Build the allow-list submitted from the settings page.

    Ids that cannot be coerced are dropped, as are ids outside ``known_ids``
    when it is given. Selecting every category collapses to AllCategories,
    so categories added later are enabled too.
    """
    known = None
    if known_ids is not None:
        known = {coerce_category_id(item) for item in known_ids}

    ids = set()
    for item in selected_ids or []:
        category_id = coerce_category_id(item)
        if category_id is None:
            continue
        if known is not None and category_id not in known:
            logger.warning(f"Ignoring unknown category id {item!r} in tag filter settings")
            continue
        ids.add(category_id)

    if total_category_count > 0 and len(ids) == total_category_count:
        return AllCategories()

    return SpecificCategories(frozenset(ids))
