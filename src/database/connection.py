#!/usr/bin/env python3
"""
PostgreSQL database connection manager.
Provides a unified interface for database connections with connection pooling.
"""

import os
import logging
import psycopg2
import psycopg2.extras
import psycopg2.pool
from typing import Optional, Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)

# Global connection pool
_connection_pool: Optional[psycopg2.pool.ThreadedConnectionPool] = None


def get_connection_string() -> Optional[str]:
    """
    Get the PostgreSQL connection string from the DATABASE_URL environment variable.

    Returns:
        Connection string if configured, None otherwise.
    """
    return os.environ.get('DATABASE_URL')


def init_connection_pool(minconn: int = 2, maxconn: int = 10) -> None:
    """
    Initialize the PostgreSQL connection pool.

    Args:
        minconn: Minimum number of connections to maintain.
        maxconn: Maximum number of connections allowed.
    """
    global _connection_pool

    if _connection_pool is not None:
        logger.debug("Connection pool already initialized.")
        return

    conn_string = get_connection_string()
    if not conn_string:
        raise ValueError("DATABASE_URL environment variable not set.")

    try:
        conn_params = {
            'dsn': conn_string,
            'keepalives': 1,
            'keepalives_idle': 30,
            'keepalives_interval': 10,
            'keepalives_count': 5,
            'connect_timeout': 10,
            'options': '-c statement_timeout=30000'  # 30-second statement timeout
        }

        _connection_pool = psycopg2.pool.ThreadedConnectionPool(
            minconn=minconn,
            maxconn=maxconn,
            **conn_params
        )
        logger.info(f"PostgreSQL connection pool initialized (min={minconn}, max={maxconn}).")
    except Exception as e:
        logger.error(f"Failed to initialize connection pool: {e}")
        raise


def _validate_connection(conn: psycopg2.extensions.connection) -> bool:
    """
    Validate that a connection is still alive and usable.
    """
    try:
        if conn.closed:
            logger.warning("Connection is closed.")
            return False

        with conn.cursor() as cursor:
            cursor.execute('SELECT 1')
            cursor.fetchone()
        return True
    except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
        logger.warning(f"Connection validation failed: {e}")
        return False


def close_connection_pool() -> None:
    """Close all connections in the pool."""
    global _connection_pool

    if _connection_pool is not None:
        _connection_pool.closeall()
        _connection_pool = None
        logger.info("Connection pool closed.")


@contextmanager
def postgres_connect() -> Iterator[psycopg2.extensions.connection]:
    """
    Context manager that yields a PostgreSQL connection from the pool.
    Handles connection validation, commits, rollbacks, and returns the connection to the pool.
    """
    if _connection_pool is None:
        init_connection_pool()

    conn = None
    try:
        conn = _connection_pool.getconn()
        if not _validate_connection(conn):
            logger.warning("Stale connection detected, attempting to reconnect.")
            _connection_pool.putconn(conn, close=True)
            conn = _connection_pool.getconn()
            if not _validate_connection(conn):
                raise psycopg2.OperationalError("Failed to get a valid connection from the pool.")

        yield conn
        conn.commit()
    except Exception as e:
        if conn:
            try:
                conn.rollback()
            except psycopg2.Error as rollback_error:
                logger.error(f"Rollback failed: {rollback_error}")
        logger.error(f"Transaction failed: {e}")
        raise
    finally:
        if conn:
            _connection_pool.putconn(conn)


@contextmanager
def db_connect() -> Iterator[psycopg2.extensions.connection]:
    """
    Context manager that yields a PostgreSQL connection and guarantees it is returned.
    Commits on success and rolls back on failure.
    """
    with postgres_connect() as conn:
        yield conn


def init_db_tables() -> None:
    """
    Initialize the database with the catalog and settings tables.
    """
    try:
        with postgres_connect() as conn:
            with conn.cursor() as cursor:
                cursor.execute('''
                CREATE TABLE IF NOT EXISTS product_categories (
                    term_id SERIAL PRIMARY KEY,
                    slug TEXT UNIQUE NOT NULL,
                    name TEXT NOT NULL,
                    parent_id INTEGER REFERENCES product_categories (term_id) ON DELETE SET NULL
                )
                ''')

                cursor.execute('''
                CREATE TABLE IF NOT EXISTS products (
                    id SERIAL PRIMARY KEY,
                    title TEXT NOT NULL,
                    slug TEXT UNIQUE NOT NULL,
                    price NUMERIC(12, 2),
                    status TEXT NOT NULL DEFAULT 'publish',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                ''')

                cursor.execute('''
                CREATE TABLE IF NOT EXISTS product_category_links (
                    product_id INTEGER NOT NULL REFERENCES products (id) ON DELETE CASCADE,
                    term_id INTEGER NOT NULL REFERENCES product_categories (term_id) ON DELETE CASCADE,
                    PRIMARY KEY (product_id, term_id)
                )
                ''')

                cursor.execute('''
                CREATE TABLE IF NOT EXISTS product_tags (
                    term_id SERIAL PRIMARY KEY,
                    slug TEXT UNIQUE NOT NULL,
                    name TEXT NOT NULL
                )
                ''')

                cursor.execute('''
                CREATE TABLE IF NOT EXISTS product_tag_links (
                    product_id INTEGER NOT NULL REFERENCES products (id) ON DELETE CASCADE,
                    term_id INTEGER NOT NULL REFERENCES product_tags (term_id) ON DELETE CASCADE,
                    PRIMARY KEY (product_id, term_id)
                )
                ''')

                cursor.execute('''
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                ''')

                cursor.execute('CREATE INDEX IF NOT EXISTS idx_products_status ON products (status)')
                cursor.execute('CREATE INDEX IF NOT EXISTS idx_category_links_term ON product_category_links (term_id)')
                cursor.execute('CREATE INDEX IF NOT EXISTS idx_tag_links_term ON product_tag_links (term_id)')

        logger.info("Database tables initialized successfully.")

    except Exception as e:
        logger.error(f"Failed to initialize database tables: {e}")
        raise
