"""
Settings management for storefront configuration.
Provides functions to get and set settings stored in the database.
Values are stored as JSON text.
"""

import json
import logging
from typing import Any

import psycopg2

from src.database.connection import db_connect
from src.filters.models import AllCategories, AllowList, SpecificCategories
from src.filters.policy import parse_allow_list, serialize_allow_list

logger = logging.getLogger(__name__)

# Settings key holding the categories where the tag filter is shown
ALLOW_LIST_KEY = 'tag_filter_enabled_categories'

# Returned by get_setting when the key has never been saved
_MISSING = object()


def get_setting(key: str, default: Any = None) -> Any:
    """
    Get a setting value from the database.

    Args:
        key: The setting key
        default: Default value if the setting doesn't exist

    Returns:
        The decoded setting value or default if not found

    Raises:
        ValueError: If the stored value is not valid JSON
    """
    with db_connect() as conn:
        with conn.cursor() as cursor:
            cursor.execute('SELECT value FROM settings WHERE key = %s', (key,))
            row = cursor.fetchone()
    if not row or row[0] is None:
        return default
    return json.loads(row[0])


def set_setting(key: str, value: Any) -> bool:
    """
    Set a setting value in the database.

    Args:
        key: The setting key
        value: Any JSON-serializable value

    Returns:
        True if successful, False otherwise
    """
    try:
        with db_connect() as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    '''
                    INSERT INTO settings (key, value, updated_at)
                    VALUES (%s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (key) DO UPDATE SET
                        value = EXCLUDED.value,
                        updated_at = CURRENT_TIMESTAMP
                    ''',
                    (key, json.dumps(value))
                )
        logger.info(f"Setting '{key}' updated successfully")
        return True
    except (psycopg2.Error, ValueError) as e:
        logger.error(f"Error setting '{key}': {e}")
        return False


def get_allow_list() -> AllowList:
    """
    Categories where the tag filter is enabled.

    Never-saved settings and unreachable storage both mean every category;
    a stored value that cannot be decoded disables the filter everywhere.
    """
    try:
        raw = get_setting(ALLOW_LIST_KEY, _MISSING)
    except json.JSONDecodeError as e:
        logger.warning(f"Setting '{ALLOW_LIST_KEY}' is not valid JSON: {e}")
        return SpecificCategories()
    except (psycopg2.Error, ValueError) as e:
        logger.error(f"Error reading setting '{ALLOW_LIST_KEY}': {e}")
        return AllCategories()

    if raw is _MISSING:
        return AllCategories()
    return parse_allow_list(raw)


def set_allow_list(allow_list: AllowList) -> bool:
    """Persist the allow-list chosen on the settings page."""
    return set_setting(ALLOW_LIST_KEY, serialize_allow_list(allow_list))
