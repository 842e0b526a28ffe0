"""
Tag resolution for category archive pages.
"""

import logging
from typing import Iterable, List, Optional

from src.database.catalog import BaseCatalog, CatalogError
from src.filters.models import AllowList, Category, CurrentView, Tag
from src.filters.policy import is_filter_active

logger = logging.getLogger(__name__)


def normalize_tags(tags: Iterable[Tag]) -> List[Tag]:
    """
    Drop empty and duplicate tags, then sort by name.

    A tag is empty when the catalog reports a visible count of zero. The
    first occurrence of a term id wins. Names compare case-insensitively,
    ties broken by term id.
    """
    unique = {}
    for tag in tags:
        if tag.count is not None and tag.count <= 0:
            continue
        if tag.term_id in unique:
            continue
        unique[tag.term_id] = tag
    return sorted(unique.values(), key=lambda tag: tag.sort_key)


def resolve_tags(category: Optional[Category], allow_list: AllowList,
                 catalog: BaseCatalog) -> List[Tag]:
    """
    Tags attached to the visible products of a category.

    Returns an empty list when the filter is disabled for the category, when
    the category has no products, or when the catalog lookup fails.
    """
    if category is None:
        return []

    view = CurrentView(is_category_archive=True, category=category)
    if not is_filter_active(view, allow_list):
        return []

    try:
        product_ids = catalog.find_product_ids(category.slug)
        if not product_ids:
            logger.info(f"No products in category '{category.slug}', skipping tag lookup")
            return []

        tags = catalog.find_tags(product_ids, order_by='name', hide_empty=True)
    except CatalogError as e:
        logger.warning(f"Tag filter disabled for category '{category.slug}': {e}")
        return []

    resolved = normalize_tags(tags or [])
    logger.info(
        f"Resolved {len(resolved)} tags from {len(product_ids)} products "
        f"in category '{category.slug}'"
    )
    return resolved
