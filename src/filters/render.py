"""
View model for the tag filter partial.

Turns resolved tags and the filter state into the list of controls and the
GET form the template renders.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Sequence, Tuple
from urllib.parse import urlencode

from src.filters.models import DEFAULT_TAG_QUERY_VAR, FilterState, Tag

SHOW_ALL_LABEL = "All"


@dataclass(frozen=True)
class FilterControl:
    """One clickable button in the filter bar."""
    label: str
    slug: str
    active: bool


@dataclass
class FilterForm:
    """Controls plus the hidden form used to resubmit the page."""
    controls: List[FilterControl]
    selected_slug: str
    passthrough: Dict[str, Any] = field(default_factory=dict)
    tag_key: str = DEFAULT_TAG_QUERY_VAR

    @property
    def active_control(self):
        for control in self.controls:
            if control.active:
                return control
        return None

    def hidden_fields(self) -> Iterator[Tuple[str, str]]:
        """Passthrough parameters as (name, value) pairs, repeated values expanded."""
        for key, value in self.passthrough.items():
            if key == self.tag_key:
                continue
            if isinstance(value, (list, tuple)):
                for item in value:
                    yield key, str(item)
            else:
                yield key, "" if value is None else str(value)

    def resubmit_url(self, slug: str, base_path: str = "") -> str:
        """The GET request issued when ``slug`` is chosen."""
        params = [(self.tag_key, slug)] + list(self.hidden_fields())
        return f"{base_path}?{urlencode(params)}"


def build_filter_controls(tags: Sequence[Tag], state: FilterState,
                          tag_key: str = DEFAULT_TAG_QUERY_VAR) -> FilterForm:
    """
    Build the "show all" control followed by one control per tag.

    A selection matching none of the tags leaves every control inactive; the
    selection is still carried in the hidden field.
    """
    selected = state.selected_slug
    controls = [FilterControl(label=SHOW_ALL_LABEL, slug="", active=selected == "")]
    for tag in tags:
        controls.append(FilterControl(label=tag.name, slug=tag.slug, active=tag.slug == selected))

    return FilterForm(
        controls=controls,
        selected_slug=selected,
        passthrough=dict(state.passthrough),
        tag_key=tag_key,
    )
