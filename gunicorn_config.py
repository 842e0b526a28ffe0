"""
Gunicorn configuration for the storefront.

Usage:
    gunicorn --config gunicorn_config.py wsgi:app
"""

import multiprocessing
import os

# Server socket
bind = "0.0.0.0:" + str(os.environ.get("PORT", 8000))

# Worker processes. Category pages make blocking database calls, so sync
# workers sized to the CPU count are enough.
workers = int(os.environ.get("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))
worker_class = "sync"
timeout = 30
keepalive = 2

# Restart workers after this many requests to prevent memory leaks
max_requests = 1000
max_requests_jitter = 50

# Logging
accesslog = "-"  # Log to stdout
errorlog = "-"   # Log to stderr
loglevel = os.environ.get("LOG_LEVEL", "info").lower()

proc_name = "category-tag-filter"
