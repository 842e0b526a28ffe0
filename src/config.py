"""
Centralized configuration management for the storefront.
Loads and validates environment variables with typed configuration classes.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from src.load_env import load_env

logger = logging.getLogger(__name__)


def _int_from_env(name: str, default: int) -> int:
    """Read an integer env var, falling back to ``default`` when malformed."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer, using default %d", name, raw, default)
        return default


@dataclass
class DatabaseConfig:
    """Database configuration."""
    url: str

    @property
    def is_configured(self) -> bool:
        """Check if a PostgreSQL URL is present."""
        return self.url.startswith(('postgresql://', 'postgres://'))


@dataclass
class FlaskConfig:
    """Flask application configuration."""
    debug: bool = False
    port: int = 5000
    host: str = '0.0.0.0'
    secret_key: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'FlaskConfig':
        """Create Flask config from environment variables."""
        return cls(
            debug=os.getenv('FLASK_DEBUG', 'False').lower() == 'true',
            port=_int_from_env('PORT', 5000),
            host=os.getenv('FLASK_HOST', '0.0.0.0'),
            secret_key=os.getenv('SECRET_KEY')
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = 'INFO'
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    file_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'LoggingConfig':
        """Create logging config from environment variables."""
        level = os.getenv('LOG_LEVEL', 'INFO').upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            level = 'INFO'
        return cls(
            level=level,
            format=os.getenv('LOG_FORMAT', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            file_path=os.getenv('LOG_FILE')
        )


@dataclass
class StoreConfig:
    """Storefront and tag filter configuration."""
    page_size: int = 24
    tag_query_var: str = 'product_tag'
    admin_username: str = 'admin'
    admin_password: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'StoreConfig':
        """Create store config from environment variables."""
        page_size = _int_from_env('PRODUCTS_PER_PAGE', 24)
        return cls(
            page_size=page_size if page_size > 0 else 24,
            tag_query_var=os.getenv('TAG_QUERY_VAR', 'product_tag').strip() or 'product_tag',
            admin_username=os.getenv('ADMIN_USERNAME', 'admin'),
            admin_password=os.getenv('ADMIN_PASSWORD') or None
        )

    def validate(self) -> bool:
        """The settings page stays locked until a password is configured."""
        if not self.admin_password:
            logger.warning("ADMIN_PASSWORD is not set; the tag filter settings page is disabled")
            return False
        return True


class Config:
    """Main configuration class that aggregates all configuration sections."""

    def __init__(self):
        """Initialize configuration by loading environment variables."""
        load_env()

        self.database = DatabaseConfig(url=os.getenv('DATABASE_URL', ''))
        self.flask = FlaskConfig.from_env()
        self.logging = LoggingConfig.from_env()
        self.store = StoreConfig.from_env()

        self._log_config_status()

    def _log_config_status(self):
        """Log the status of configuration."""
        logger.info("Configuration loaded:")
        logger.info("  Database: %s", "configured" if self.database.is_configured else "missing")
        logger.info("  Admin settings page: %s", "enabled" if self.store.validate() else "disabled")
        logger.info("  Flask: debug=%s, port=%d", self.flask.debug, self.flask.port)
        logger.info("  Tag query variable: %s, page size: %d", self.store.tag_query_var, self.store.page_size)

    def validate_all(self) -> bool:
        """
        Validate all configuration sections.
        Returns True if all required configuration is present.
        """
        validations = [
            ("Database", self.database.is_configured),
            ("Store", self.store.validate()),
        ]

        all_valid = all(valid for _, valid in validations)

        if not all_valid:
            logger.warning("Some configuration sections are invalid:")
            for name, valid in validations:
                if not valid:
                    logger.warning("  - %s: invalid or missing", name)

        return all_valid


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.
    Creates it if it doesn't exist yet.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Reset the global configuration instance (useful for testing)."""
    global _config
    _config = None
