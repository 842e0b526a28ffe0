"""
Data model for the category tag filter.
Categories, tags, the admin allow-list and the per-request filter state.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Union

# Query parameter carrying the selected tag slug
DEFAULT_TAG_QUERY_VAR = "product_tag"

# Persisted sentinel meaning "filter enabled in every category"
ALL_CATEGORIES = "all"


@dataclass(frozen=True)
class Category:
    """A product category as supplied by the catalog."""
    term_id: int
    slug: str
    name: str = ""


@dataclass(frozen=True)
class Tag:
    """
    A product tag.

    ``count`` is the number of currently visible products carrying the tag,
    or None when the catalog did not report it.
    """
    term_id: int
    slug: str
    name: str
    count: Optional[int] = None

    @property
    def sort_key(self):
        return (self.name.casefold(), self.term_id)


@dataclass(frozen=True)
class AllCategories:
    """Allow-list variant: the filter is shown in every category."""

    def __str__(self) -> str:
        return ALL_CATEGORIES


@dataclass(frozen=True)
class SpecificCategories:
    """Allow-list variant: the filter is shown only in the listed categories."""
    category_ids: FrozenSet[int] = frozenset()

    def __contains__(self, category_id: int) -> bool:
        return category_id in self.category_ids


AllowList = Union[AllCategories, SpecificCategories]


@dataclass(frozen=True)
class CurrentView:
    """What the storefront is rendering for this request."""
    is_category_archive: bool
    category: Optional[Category] = None


@dataclass(frozen=True)
class FilterState:
    """
    Tag selection derived from the request query string.

    An empty ``selected_slug`` means "show all". ``passthrough`` holds every
    other query parameter exactly as received.
    """
    selected_slug: str = ""
    passthrough: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_filtered(self) -> bool:
        return self.selected_slug != ""
