#!/usr/bin/env python3
"""
Product catalog queries.

The tag resolver only needs two lookups (products in a category, tags on a
set of products); the listing helpers below serve the category pages and the
settings screen. Database failures surface as CatalogError so callers can
degrade instead of crashing the page.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import psycopg2
import psycopg2.extras

from src.database.connection import db_connect
from src.filters.models import Category, Tag

logger = logging.getLogger(__name__)

# Only published products are visible on the storefront
VISIBLE_STATUS = 'publish'

# Categories matched by slug plus all of their descendants
CATEGORY_TREE_CTE = '''
WITH RECURSIVE category_tree AS (
    SELECT term_id FROM product_categories WHERE slug = %(category_slug)s
    UNION
    SELECT c.term_id
    FROM product_categories c
    JOIN category_tree ct ON c.parent_id = ct.term_id
)
'''


class CatalogError(Exception):
    """Raised when a catalog lookup fails."""
    pass


class BaseCatalog(ABC):
    """
    Lookups the tag resolver performs against the product catalog.
    """

    @abstractmethod
    def find_product_ids(self, category_slug: str) -> List[int]:
        """Return ids of every visible product in the category (no limit)."""
        pass

    @abstractmethod
    def find_tags(self, product_ids: Sequence[int], order_by: str = 'name',
                  hide_empty: bool = True) -> List[Tag]:
        """
        Return the distinct tags attached to the given products.

        Args:
            product_ids: Products whose tags are wanted
            order_by: Only 'name' is supported
            hide_empty: Skip tags with no visible products
        """
        pass


def build_tag_filter(tag_slug: Optional[str]) -> tuple:
    """
    Build SQL clause and parameters narrowing a product listing to one tag.
    """
    if tag_slug:
        clause = '''
        AND EXISTS (
            SELECT 1 FROM product_tag_links tl
            JOIN product_tags t ON t.term_id = tl.term_id
            WHERE tl.product_id = p.id AND t.slug = %(tag_slug)s
        )
        '''
        return clause, {'tag_slug': tag_slug}
    return "", {}


def _row_to_tag(row: Dict[str, Any]) -> Tag:
    count = row.get('count')
    return Tag(
        term_id=int(row['term_id']),
        slug=row['slug'],
        name=row['name'],
        count=int(count) if count is not None else None,
    )


def _row_to_category(row: Dict[str, Any]) -> Category:
    return Category(term_id=int(row['term_id']), slug=row['slug'], name=row['name'])


class PostgresCatalog(BaseCatalog):
    """Catalog backed by the PostgreSQL product tables."""

    def find_product_ids(self, category_slug: str) -> List[int]:
        if not category_slug:
            return []
        try:
            with db_connect() as conn:
                with conn.cursor() as cursor:
                    cursor.execute(CATEGORY_TREE_CTE + '''
                    SELECT DISTINCT p.id
                    FROM products p
                    JOIN product_category_links cl ON cl.product_id = p.id
                    WHERE cl.term_id IN (SELECT term_id FROM category_tree)
                    AND p.status = %(status)s
                    ORDER BY p.id
                    ''', {'category_slug': category_slug, 'status': VISIBLE_STATUS})
                    return [int(row[0]) for row in cursor.fetchall()]
        except (psycopg2.Error, ValueError) as e:
            logger.error(f"Error finding products in category '{category_slug}': {e}")
            raise CatalogError(f"product lookup failed for category '{category_slug}'") from e

    def find_tags(self, product_ids: Sequence[int], order_by: str = 'name',
                  hide_empty: bool = True) -> List[Tag]:
        if order_by != 'name':
            raise CatalogError(f"unsupported tag ordering '{order_by}'")
        ids = [int(product_id) for product_id in product_ids]
        if not ids:
            return []

        empty_clause = "WHERE tag_counts.count > 0" if hide_empty else ""
        try:
            with db_connect() as conn:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                    cursor.execute(f'''
                    SELECT * FROM (
                        SELECT t.term_id, t.slug, t.name,
                            (
                                SELECT COUNT(*)
                                FROM product_tag_links vl
                                JOIN products vp ON vp.id = vl.product_id
                                WHERE vl.term_id = t.term_id AND vp.status = %(status)s
                            ) AS count
                        FROM product_tags t
                        WHERE t.term_id IN (
                            SELECT DISTINCT term_id FROM product_tag_links
                            WHERE product_id = ANY(%(product_ids)s)
                        )
                    ) AS tag_counts
                    {empty_clause}
                    ORDER BY tag_counts.name ASC, tag_counts.term_id ASC
                    ''', {'product_ids': ids, 'status': VISIBLE_STATUS})
                    return [_row_to_tag(row) for row in cursor.fetchall()]
        except (psycopg2.Error, ValueError) as e:
            logger.error(f"Error finding tags for {len(ids)} products: {e}")
            raise CatalogError("tag lookup failed") from e

    def get_category_by_slug(self, slug: str) -> Optional[Category]:
        """
        Retrieve a category by its slug. Used for archive page routing.
        """
        try:
            with db_connect() as conn:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                    cursor.execute(
                        'SELECT term_id, slug, name FROM product_categories WHERE slug = %s',
                        (slug,)
                    )
                    row = cursor.fetchone()
                    return _row_to_category(row) if row else None
        except (psycopg2.Error, ValueError) as e:
            logger.error(f"Error retrieving category by slug {slug}: {e}")
            raise CatalogError(f"category lookup failed for '{slug}'") from e

    def get_all_categories(self) -> List[Category]:
        """
        Retrieve every category, empty ones included, sorted by name.
        """
        try:
            with db_connect() as conn:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                    cursor.execute('''
                    SELECT term_id, slug, name FROM product_categories
                    ORDER BY name ASC, term_id ASC
                    ''')
                    return [_row_to_category(row) for row in cursor.fetchall()]
        except (psycopg2.Error, ValueError) as e:
            logger.error(f"Error retrieving categories: {e}")
            raise CatalogError("category listing failed") from e

    def list_products(self, category_slug: str, tag_slug: Optional[str],
                      page: int, page_size: int) -> List[Dict[str, Any]]:
        """
        Visible products in a category, optionally narrowed to one tag slug.
        A tag slug that matches nothing yields an empty page.
        """
        tag_clause, tag_params = build_tag_filter(tag_slug)
        params = {
            'category_slug': category_slug,
            'status': VISIBLE_STATUS,
            'limit': page_size,
            'offset': max(page - 1, 0) * page_size,
        }
        params.update(tag_params)
        try:
            with db_connect() as conn:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                    cursor.execute(CATEGORY_TREE_CTE + f'''
                    SELECT p.id, p.title, p.slug, p.price
                    FROM products p
                    WHERE p.status = %(status)s
                    AND EXISTS (
                        SELECT 1 FROM product_category_links cl
                        WHERE cl.product_id = p.id
                        AND cl.term_id IN (SELECT term_id FROM category_tree)
                    )
                    {tag_clause}
                    ORDER BY p.created_at DESC, p.id DESC
                    LIMIT %(limit)s OFFSET %(offset)s
                    ''', params)
                    return [dict(row) for row in cursor.fetchall()]
        except (psycopg2.Error, ValueError) as e:
            logger.error(f"Error listing products for category '{category_slug}': {e}")
            raise CatalogError(f"product listing failed for category '{category_slug}'") from e

    def count_products(self, category_slug: str, tag_slug: Optional[str]) -> int:
        """Total for list_products, used for pagination."""
        tag_clause, tag_params = build_tag_filter(tag_slug)
        params = {'category_slug': category_slug, 'status': VISIBLE_STATUS}
        params.update(tag_params)
        try:
            with db_connect() as conn:
                with conn.cursor() as cursor:
                    cursor.execute(CATEGORY_TREE_CTE + f'''
                    SELECT COUNT(*)
                    FROM products p
                    WHERE p.status = %(status)s
                    AND EXISTS (
                        SELECT 1 FROM product_category_links cl
                        WHERE cl.product_id = p.id
                        AND cl.term_id IN (SELECT term_id FROM category_tree)
                    )
                    {tag_clause}
                    ''', params)
                    row = cursor.fetchone()
                    return int(row[0]) if row else 0
        except (psycopg2.Error, ValueError) as e:
            logger.error(f"Error counting products for category '{category_slug}': {e}")
            raise CatalogError(f"product count failed for category '{category_slug}'") from e

    def list_all_products(self, page: int, page_size: int) -> List[Dict[str, Any]]:
        """Visible products across the whole shop."""
        try:
            with db_connect() as conn:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                    cursor.execute('''
                    SELECT p.id, p.title, p.slug, p.price
                    FROM products p
                    WHERE p.status = %s
                    ORDER BY p.created_at DESC, p.id DESC
                    LIMIT %s OFFSET %s
                    ''', (VISIBLE_STATUS, page_size, max(page - 1, 0) * page_size))
                    return [dict(row) for row in cursor.fetchall()]
        except (psycopg2.Error, ValueError) as e:
            logger.error(f"Error listing shop products: {e}")
            raise CatalogError("shop listing failed") from e
