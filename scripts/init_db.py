#!/usr/bin/env python3
"""
Script to initialize the PostgreSQL catalog and settings tables.

Usage:
    python scripts/init_db.py            # create tables
    python scripts/init_db.py --seed     # create tables and add demo products
"""

import argparse
import logging
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Load environment variables first
from src.load_env import load_env
load_env()

from src.database.connection import close_connection_pool, init_db_tables, postgres_connect

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

# category slug -> (name, [(product slug, title, price, [tag names])])
DEMO_CATALOG = {
    'shoes': ('Shoes', [
        ('suede-boot', 'Suede Boot', 120, ['Red', 'Blue']),
        ('canvas-sneaker', 'Canvas Sneaker', 55, ['Blue']),
        ('leather-loafer', 'Leather Loafer', 95, []),
    ]),
    'hats': ('Hats', [
        ('wool-beanie', 'Wool Beanie', 20, ['Red', 'Winter']),
    ]),
}


def _slugify(name: str) -> str:
    return name.strip().lower().replace(' ', '-')


def seed_demo_catalog() -> None:
    """Insert the demo categories, products and tags (idempotent)."""
    with postgres_connect() as conn:
        with conn.cursor() as cursor:
            for category_slug, (category_name, products) in DEMO_CATALOG.items():
                cursor.execute('''
                INSERT INTO product_categories (slug, name) VALUES (%s, %s)
                ON CONFLICT (slug) DO UPDATE SET name = EXCLUDED.name
                RETURNING term_id
                ''', (category_slug, category_name))
                category_id = cursor.fetchone()[0]

                for product_slug, title, price, tag_names in products:
                    cursor.execute('''
                    INSERT INTO products (slug, title, price) VALUES (%s, %s, %s)
                    ON CONFLICT (slug) DO UPDATE SET title = EXCLUDED.title, price = EXCLUDED.price
                    RETURNING id
                    ''', (product_slug, title, price))
                    product_id = cursor.fetchone()[0]

                    cursor.execute('''
                    INSERT INTO product_category_links (product_id, term_id) VALUES (%s, %s)
                    ON CONFLICT DO NOTHING
                    ''', (product_id, category_id))

                    for tag_name in tag_names:
                        cursor.execute('''
                        INSERT INTO product_tags (slug, name) VALUES (%s, %s)
                        ON CONFLICT (slug) DO UPDATE SET name = EXCLUDED.name
                        RETURNING term_id
                        ''', (_slugify(tag_name), tag_name))
                        tag_id = cursor.fetchone()[0]
                        cursor.execute('''
                        INSERT INTO product_tag_links (product_id, term_id) VALUES (%s, %s)
                        ON CONFLICT DO NOTHING
                        ''', (product_id, tag_id))

                logger.info(f"Seeded category '{category_slug}' with {len(products)} products")


def main() -> int:
    parser = argparse.ArgumentParser(description="Initialize the storefront database")
    parser.add_argument('--seed', action='store_true', help="Insert demo categories, products and tags")
    args = parser.parse_args()

    logger.info("Initializing PostgreSQL database tables...")
    try:
        init_db_tables()
        if args.seed:
            seed_demo_catalog()
    except Exception as e:
        logger.error(f"❌ Database initialization failed: {e}")
        return 1
    finally:
        close_connection_pool()

    logger.info("✅ Database ready")
    return 0


if __name__ == "__main__":
    sys.exit(main())
