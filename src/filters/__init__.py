"""
Filters package - tag filter for product category archive pages.

- policy: which categories show the filter
- resolver: which tags a category offers (import from src.filters.resolver)
- state: which tag the shopper selected
- render: controls and resubmission form for the template
"""

from src.filters.models import (
    ALL_CATEGORIES,
    DEFAULT_TAG_QUERY_VAR,
    AllCategories,
    AllowList,
    Category,
    CurrentView,
    FilterState,
    SpecificCategories,
    Tag,
)
from src.filters.policy import (
    build_allow_list,
    coerce_category_id,
    is_category_enabled,
    is_filter_active,
    parse_allow_list,
    serialize_allow_list,
)
from src.filters.state import derive_filter_state
from src.filters.render import FilterControl, FilterForm, build_filter_controls

__all__ = [
    # Models
    "ALL_CATEGORIES",
    "DEFAULT_TAG_QUERY_VAR",
    "AllCategories",
    "AllowList",
    "Category",
    "CurrentView",
    "FilterState",
    "SpecificCategories",
    "Tag",
    # Policy
    "build_allow_list",
    "coerce_category_id",
    "is_category_enabled",
    "is_filter_active",
    "parse_allow_list",
    "serialize_allow_list",
    # State
    "derive_filter_state",
    # Rendering
    "FilterControl",
    "FilterForm",
    "build_filter_controls",
]
