"""
List controller for catalog views.

Every catalog page (trails, hunting areas, public lands, campgrounds) turns
the raw list it fetched into the list it renders with the same pipeline:

1. keep items matching the selected state, if any;
2. keep items whose name or location contains the search text, unless the
   remote source already applied that text;
3. keep items of the selected difficulties;
4. keep items whose parsed distance is within the maximum distance;
5. sort by the selected key.

All functions here are pure: they never mutate their inputs and return new
lists, so they can be called from a route, a background job or a test
without any setup. Python's ``sorted`` is stable, which gives the
tie-breaking rule for free: items that compare equal keep the order the
data source returned them in.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Sequence, Union

from .schemas import CatalogItem


DIFFICULTY_ORDER = {"Easy": 0, "Moderate": 1, "Difficult": 2, "Expert": 3}

_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d[\d,]*)?(?:\.\d+)?)")


class SortKey(str, Enum):
    POPULARITY = "popularity"
    RATING = "rating"
    DISTANCE = "distance"
    DIFFICULTY = "difficulty"


@dataclass(frozen=True)
class Unfiltered:
    """No value selected: every item passes."""

    def matches(self, value: Optional[str]) -> bool:
        return True


@dataclass(frozen=True)
class FilterTo:
    """A concrete selection: only items carrying exactly ``value`` pass."""

    value: str

    def matches(self, value: Optional[str]) -> bool:
        return value == self.value


Selection = Union[Unfiltered, FilterTo]

UNFILTERED = Unfiltered()


def selection_from(value: Optional[str]) -> Selection:
    """Build a selection from a raw query value.

    ``None`` and the empty string mean "no selection". The legacy ``"all"``
    value sent by older clients is accepted for the same meaning.
    """
    if value is None:
        return UNFILTERED
    value = value.strip()
    if not value or value.lower() == "all":
        return UNFILTERED
    return FilterTo(value)


@dataclass(frozen=True)
class FilterCriteria:
    query: str = ""
    state: Selection = UNFILTERED
    difficulties: FrozenSet[str] = field(default_factory=frozenset)
    max_distance: Optional[float] = None
    sort: SortKey = SortKey.POPULARITY
    # True when the free-text query was already sent to the remote source.
    query_delegated: bool = False
    keep_unparsable_distance: bool = False
    featured_only: bool = False

    def with_query(self, query: str) -> "FilterCriteria":
        return replace(self, query=query)

    def with_state(self, state: Selection) -> "FilterCriteria":
        return replace(self, state=state)

    def with_sort(self, sort: SortKey) -> "FilterCriteria":
        return replace(self, sort=sort)

    def with_max_distance(self, bound: Optional[float]) -> "FilterCriteria":
        return replace(self, max_distance=bound)

    def with_featured_only(self, featured_only: bool) -> "FilterCriteria":
        return replace(self, featured_only=featured_only)

    def toggle_difficulty(self, difficulty: str) -> "FilterCriteria":
        if difficulty in self.difficulties:
            return replace(self, difficulties=self.difficulties - {difficulty})
        return replace(self, difficulties=self.difficulties | {difficulty})


def parse_distance(text: Optional[str]) -> Optional[float]:
    """Return the leading numeric magnitude of a distance string.

    ``"8.8 mi"`` gives ``8.8`` and ``"1,200 ft"`` gives ``1200.0``. Strings
    that do not start with a number (``"n/a"``, ``""``, ``None``) give
    ``None``.
    """
    if text is None:
        return None
    match = _LEADING_NUMBER.match(str(text))
    if not match:
        return None
    raw = match.group(1).replace(",", "")
    if raw in ("", "+", "-", "."):
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _norm(s: Optional[str]) -> str:
    return (s or "").strip().lower()


def filter_by_state(items: Sequence[CatalogItem], state: Selection) -> List[CatalogItem]:
    return [item for item in items if state.matches(item.state)]


def filter_featured(items: Sequence[CatalogItem], featured_only: bool) -> List[CatalogItem]:
    if not featured_only:
        return list(items)
    return [item for item in items if item.is_featured]


def filter_by_query(items: Sequence[CatalogItem], query: Optional[str]) -> List[CatalogItem]:
    nq = _norm(query)
    if not nq:
        return list(items)
    return [
        item for item in items
        if nq in _norm(item.name) or nq in _norm(item.location)
    ]


def filter_by_difficulty(
    items: Sequence[CatalogItem], difficulties: Iterable[str]
) -> List[CatalogItem]:
    wanted = set(difficulties)
    if not wanted:
        return list(items)
    return [item for item in items if item.difficulty in wanted]


def filter_by_max_distance(
    items: Sequence[CatalogItem],
    bound: Optional[float],
    keep_unparsable: bool = False,
) -> List[CatalogItem]:
    """Keep items whose parsed distance is at most ``bound``.

    Items whose distance cannot be parsed fail the bound unless
    ``keep_unparsable`` is set.
    """
    if bound is None:
        return list(items)
    kept: List[CatalogItem] = []
    for item in items:
        dist = parse_distance(item.distance)
        if dist is None:
            if keep_unparsable:
                kept.append(item)
            continue
        if dist <= bound:
            kept.append(item)
    return kept


def _distance_key(item: CatalogItem):
    dist = parse_distance(item.distance)
    # Unparsable distances sort after every real one.
    return (dist is None, dist if dist is not None else 0.0)


def sort_items(items: Sequence[CatalogItem], key: Union[SortKey, str]) -> List[CatalogItem]:
    key = SortKey(key)
    if key == SortKey.RATING:
        return sorted(items, key=lambda i: i.rating if i.rating is not None else 0.0, reverse=True)
    if key == SortKey.DISTANCE:
        return sorted(items, key=_distance_key)
    if key == SortKey.DIFFICULTY:
        return sorted(items, key=lambda i: DIFFICULTY_ORDER.get(i.difficulty or "", 0))
    return sorted(items, key=lambda i: i.reviews, reverse=True)


def apply_criteria(items: Sequence[CatalogItem], criteria: FilterCriteria) -> List[CatalogItem]:
    """Run the full filter/sort pipeline for one list view."""
    result = filter_by_state(items, criteria.state)
    result = filter_featured(result, criteria.featured_only)
    if not criteria.query_delegated:
        result = filter_by_query(result, criteria.query)
    result = filter_by_difficulty(result, criteria.difficulties)
    result = filter_by_max_distance(
        result, criteria.max_distance, keep_unparsable=criteria.keep_unparsable_distance
    )
    return sort_items(result, criteria.sort)


def available_states(items: Iterable[CatalogItem]) -> List[str]:
    return sorted({item.state for item in items if item.state})
