import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Must be in place before app.py builds its configuration
os.environ.setdefault('ADMIN_USERNAME', 'admin')
os.environ.setdefault('ADMIN_PASSWORD', 'test-password')
os.environ.setdefault('SECRET_KEY', 'test-secret-key')
os.environ.setdefault('PRODUCTS_PER_PAGE', '24')


@pytest.fixture(autouse=True)
def reset_global_config():
    """Each test starts without a cached configuration instance."""
    from src.config import reset_config
    reset_config()
    yield
    reset_config()
