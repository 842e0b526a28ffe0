#!/usr/bin/env python3
"""
Flask web application for the storefront.
Provides the shop listing, product category archives with the tag filter,
and the tag filter settings page.
"""

import math
import time
import secrets
from typing import Any, Dict

# Import configuration system
from src.config import get_config

# Initialize configuration
config = get_config()

# Configure logging
import logging
from logging.handlers import RotatingFileHandler
import os

# Base logging configuration
logging.basicConfig(
    level=getattr(logging, config.logging.level),
    format=config.logging.format,
    handlers=[logging.StreamHandler()]  # Log to console by default
)

logger = logging.getLogger(__name__)

# Add file handler if specified in config
if config.logging.file_path:
    log_dir = os.path.dirname(config.logging.file_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    file_handler = RotatingFileHandler(
        config.logging.file_path,
        maxBytes=1024 * 1024 * 5,  # 5 MB
        backupCount=2
    )
    file_handler.setFormatter(logging.Formatter(config.logging.format))
    logging.getLogger().addHandler(file_handler)
    logger.info(f"Logging configured to file: {config.logging.file_path}")

from flask import Flask, abort, flash, redirect, render_template, request, url_for
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect

from src.database.catalog import CatalogError, PostgresCatalog
from src.database.settings_store import get_allow_list, set_allow_list
from src.filters.models import CurrentView
from src.filters.policy import build_allow_list, is_category_enabled, is_filter_active
from src.filters.render import build_filter_controls
from src.filters.resolver import resolve_tags
from src.filters.state import derive_filter_state
from src.utils.validation import parse_page_number

# Configure Flask app
app = Flask(__name__)
app.config['DEBUG'] = config.flask.debug
app.config['SECRET_KEY'] = config.flask.secret_key

# Security: Generate a secret key if not set
if not app.config.get('SECRET_KEY'):
    app.config['SECRET_KEY'] = secrets.token_hex(32)
    logger.warning("SECRET_KEY not set in environment, using generated key (not suitable for production)")

# Security: Secure session configuration
app.config['SESSION_COOKIE_SECURE'] = not config.flask.debug  # True in production
app.config['SESSION_COOKIE_HTTPONLY'] = True
app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'

# Security: Initialize CSRF protection
csrf = CSRFProtect(app)

# Security: Initialize rate limiter
limiter = Limiter(
    app=app,
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"],
    storage_uri="memory://"
)

catalog = PostgresCatalog()

TAG_QUERY_VAR = config.store.tag_query_var
PAGE_SIZE = config.store.page_size
ADMIN_CATEGORY_FIELD = 'tag_filter_categories'


# Security: Add security headers middleware
@app.after_request
def add_security_headers(response):
    """Add security headers to all responses."""
    response.headers['X-Frame-Options'] = 'SAMEORIGIN'
    response.headers['Content-Security-Policy'] = (
        "default-src 'self'; "
        "script-src 'self'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data: https:; "
        "frame-ancestors 'self';"
    )
    response.headers['X-Content-Type-Options'] = 'nosniff'

    # HSTS (HTTP Strict Transport Security) - only in production
    if not config.flask.debug:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

    return response


@app.template_filter('format_price')
def format_price_filter(price: Any) -> str:
    """Format a product price with two decimals."""
    if price is None or price == '':
        return ""
    try:
        return f"{float(price):,.2f}"
    except (TypeError, ValueError):
        return str(price)


def page_url(page: int) -> str:
    """Current URL with the page parameter replaced, all other parameters kept."""
    params: Dict[str, Any] = request.args.to_dict(flat=False)
    params['page'] = [str(page)]
    params.update(request.view_args or {})
    return url_for(request.endpoint, **params)


@app.context_processor
def inject_helpers() -> Dict[str, Any]:
    return {'page_url': page_url, 'tag_query_var': TAG_QUERY_VAR}


def _is_admin(auth) -> bool:
    """Check HTTP basic credentials against the configured admin account."""
    password = config.store.admin_password
    if not password or auth is None:
        return False
    username_ok = secrets.compare_digest(auth.username or '', config.store.admin_username)
    password_ok = secrets.compare_digest(auth.password or '', password)
    return username_ok and password_ok


def _require_admin():
    return (
        render_template('401.html'),
        401,
        {'WWW-Authenticate': 'Basic realm="Tag filter settings"'},
    )


# --- Routes ---

@app.route('/')
@app.route('/shop')
def shop():
    """Shop page: every visible product. The tag filter never shows here."""
    start_time = time.time()
    page = parse_page_number(request.args.get('page'))

    try:
        products = catalog.list_all_products(page, PAGE_SIZE)
    except CatalogError as e:
        logger.error(f"Error loading shop listing: {e}", exc_info=True)
        return render_template('shop.html', products=[], error_message="Unable to load products."), 500

    response = render_template(
        'shop.html',
        products=products,
        current_page=page,
        page_size=PAGE_SIZE,
    )
    logger.info(f"=== Shop request completed in {time.time() - start_time:.3f}s ===")
    return response


@app.route('/product-category/<string:slug>')
def category_archive(slug: str):
    """Category archive: products in one category with the tag filter above them."""
    start_time = time.time()
    logger.info(f"=== Category request started for slug: {slug} ===")

    try:
        category = catalog.get_category_by_slug(slug)
    except CatalogError as e:
        logger.error(f"Error loading category '{slug}': {e}", exc_info=True)
        return render_template('category.html', category=None, products=[],
                               error_message="Unable to load this category."), 500

    if not category:
        logger.warning(f"Category not found for slug: {slug}")
        abort(404)

    page = parse_page_number(request.args.get('page'))

    allow_list = get_allow_list()
    view = CurrentView(is_category_archive=True, category=category)
    filter_active = is_filter_active(view, allow_list)

    state = derive_filter_state(request.args.to_dict(flat=False), tag_key=TAG_QUERY_VAR)

    filter_form = None
    if filter_active:
        tags = resolve_tags(category, allow_list, catalog)
        if tags:
            filter_form = build_filter_controls(tags, state, tag_key=TAG_QUERY_VAR)
            if state.is_filtered and filter_form.active_control is None:
                logger.info(f"Selected tag '{state.selected_slug}' not offered in category '{slug}'")

    try:
        db_start = time.time()
        products = catalog.list_products(category.slug, state.selected_slug, page, PAGE_SIZE)
        total_results = catalog.count_products(category.slug, state.selected_slug)
        logger.info(f"Listing query completed in {time.time() - db_start:.3f}s, {total_results} results")
    except CatalogError as e:
        logger.error(f"Error listing products for '{slug}': {e}", exc_info=True)
        return render_template('category.html', category=category, products=[],
                               filter_active=filter_active, filter_form=filter_form,
                               error_message="Unable to load products."), 500

    total_pages = math.ceil(total_results / PAGE_SIZE) if total_results > 0 else 1

    response = render_template(
        'category.html',
        category=category,
        products=products,
        filter_active=filter_active,
        filter_form=filter_form,
        current_page=page,
        total_pages=total_pages,
        total_results=total_results,
    )
    logger.info(f"=== Category request completed in {time.time() - start_time:.3f}s ===")
    return response


@app.route('/admin/tag-filter', methods=['GET', 'POST'])
@limiter.limit("30 per minute", methods=['POST'])
def tag_filter_settings():
    """Settings page: choose the categories where the tag filter is shown."""
    if not _is_admin(request.authorization):
        return _require_admin()

    try:
        categories = catalog.get_all_categories()
    except CatalogError as e:
        logger.error(f"Error loading categories for settings page: {e}", exc_info=True)
        categories = []

    if request.method == 'POST':
        selected = request.form.getlist(ADMIN_CATEGORY_FIELD)
        allow_list = build_allow_list(
            selected, len(categories),
            known_ids=[category.term_id for category in categories] or None,
        )
        if set_allow_list(allow_list):
            logger.info(f"Tag filter categories saved: {allow_list}")
            flash("Settings saved.", "success")
        else:
            flash("Settings could not be saved. Please try again.", "error")
        return redirect(url_for('tag_filter_settings'))

    allow_list = get_allow_list()
    rows = [
        {'category': category, 'enabled': is_category_enabled(category.term_id, allow_list)}
        for category in categories
    ]
    return render_template(
        'admin/tag_filter_settings.html',
        rows=rows,
        field_name=ADMIN_CATEGORY_FIELD,
    )


@app.errorhandler(404)
def page_not_found(e):
    """404 error handler."""
    return render_template('404.html'), 404


if __name__ == '__main__':
    os.environ['FLASK_SKIP_DOTENV'] = '1'  # .env already loaded by the config system
    try:
        logger.info(f"Starting Flask app on {config.flask.host}:{config.flask.port}")
        logger.info(f"Debug mode: {config.flask.debug}")
        app.run(
            debug=config.flask.debug,
            host=config.flask.host,
            port=config.flask.port
        )
    except Exception as e:
        logger.error(f"Failed to start Flask app: {e}", exc_info=True)
