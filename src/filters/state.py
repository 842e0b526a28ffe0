"""
Filter state derived from the request query string.
"""

from typing import Any, Mapping, Optional

from src.filters.models import DEFAULT_TAG_QUERY_VAR, FilterState
from src.utils.validation import sanitize_text_field


def _first_value(value: Any) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def derive_filter_state(query_params: Optional[Mapping[str, Any]],
                        tag_key: str = DEFAULT_TAG_QUERY_VAR) -> FilterState:
    """
    Split query parameters into the selected tag and passthrough parameters.

    Args:
        query_params: Plain mapping, or a mapping of value lists such as
            ``request.args.to_dict(flat=False)``
        tag_key: Name of the tag parameter

    Returns:
        FilterState with the sanitized tag slug ("" when absent) and every
        other parameter unchanged
    """
    query_params = query_params or {}

    selected = ""
    if tag_key in query_params:
        raw = _first_value(query_params[tag_key])
        selected = sanitize_text_field(raw)

    passthrough = {key: value for key, value in query_params.items() if key != tag_key}
    return FilterState(selected_slug=selected, passthrough=passthrough)
