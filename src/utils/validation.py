#!/usr/bin/env python3
"""
Shared input cleaning for values taken from the request.
Query-string values are untrusted and are reduced to plain text here
before any comparison or rendering.
"""

import re
from typing import Any

from markupsafe import Markup

# Script and style elements are dropped with their contents
_SCRIPT_RE = re.compile(r'<(script|style)[^>]*?>.*?</\1>', re.IGNORECASE | re.DOTALL)
# Anything tag-shaped left after striptags()
_TAG_RE = re.compile(r'<[^>]*>')
# C0/C1 control characters and DEL
_CONTROL_RE = re.compile(r'[\x00-\x1f\x7f-\x9f]')
# Percent-encoded octets left over from double encoding
_OCTET_RE = re.compile(r'%[a-fA-F0-9]{2}')
_WHITESPACE_RE = re.compile(r'\s+')


def sanitize_text_field(value: Any) -> str:
    """
    Reduce an untrusted value to a single line of plain text.

    Decodes bytes as UTF-8, strips markup, removes control characters and
    percent-encoded octets, collapses whitespace and trims the result.
    Non-string input yields an empty string.
    """
    if isinstance(value, bytes):
        value = value.decode('utf-8', errors='ignore')
    if not isinstance(value, str):
        return ""

    text = value
    if '<' in text:
        text = _SCRIPT_RE.sub('', text)
        # Entities are kept as typed; striptags() would otherwise unescape them
        text = str(Markup(text.replace('&', '&amp;')).striptags())
        text = _TAG_RE.sub('', text)

    text = _CONTROL_RE.sub(' ', text)

    while True:
        stripped = _OCTET_RE.sub('', text)
        if stripped == text:
            break
        text = stripped

    return _WHITESPACE_RE.sub(' ', text).strip()


def parse_page_number(value: Any, default: int = 1) -> int:
    """Parse a 1-based page number, falling back to ``default`` when invalid."""
    try:
        page = int(value)
    except (TypeError, ValueError):
        return default
    return page if page >= 1 else default
