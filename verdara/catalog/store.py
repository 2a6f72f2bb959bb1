"""
Data store for the catalog API.

``ITEMS`` is populated at import time from the bundled dataset. When an
upstream Verdara API is configured (``VERDARA_CATALOG_UPSTREAM``), list
requests are sent there first through ``RemoteListSource`` and the bundled
dataset is only used when the upstream cannot be reached. Each entry is
validated into a ``CatalogItem`` from ``schemas``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import ValidationError

from .. import config
from .remote import RemoteListError, RemoteListSource, build_query_params
from .schemas import CatalogItem


logger = logging.getLogger(__name__)

DATA_FILE = Path(__file__).resolve().parents[1] / "data" / "catalog_items.json"


def _load_sample_items(path: Path = DATA_FILE) -> List[CatalogItem]:
    """Load the bundled catalog dataset.

    Malformed entries and duplicate ids are skipped with a warning so one
    bad record cannot take the whole catalog down.
    """
    items: List[CatalogItem] = []
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as exc:
        logger.error("Could not load catalog dataset %s: %s", path, exc)
        return items
    seen = set()
    for entry in raw:
        try:
            item = CatalogItem(**entry)
        except (TypeError, ValidationError) as exc:
            logger.warning("Skipping invalid catalog entry %r: %s", entry, exc)
            continue
        if item.id in seen:
            logger.warning("Skipping duplicate catalog id %s", item.id)
            continue
        seen.add(item.id)
        items.append(item)
    logger.info("Loaded %d catalog items from %s", len(items), path.name)
    return items


ITEMS: List[CatalogItem] = _load_sample_items()

_upstream: Optional[RemoteListSource] = (
    RemoteListSource(config.CATALOG_UPSTREAM) if config.CATALOG_UPSTREAM else None
)


def _norm(s: Optional[str]) -> str:
    return (s or "").strip().lower()


def list_items(item_type: Optional[str] = None) -> List[CatalogItem]:
    ntype = _norm(item_type)
    if not ntype:
        return list(ITEMS)
    return [item for item in ITEMS if _norm(item.type) == ntype]


def search_items(
    query: str, item_type: Optional[str] = None, include_state: bool = True
) -> List[CatalogItem]:
    """Case-insensitive match on name, location or (optionally) state.

    Trail search looks at name and location only; activity searches also
    match the state code.
    """
    nq = _norm(query)
    items = list_items(item_type)
    if not nq:
        return items
    return [
        item for item in items
        if nq in _norm(item.name)
        or nq in _norm(item.location)
        or (include_state and nq in _norm(item.state))
    ]


def get_item(item_id: int) -> Optional[CatalogItem]:
    return next((item for item in ITEMS if item.id == item_id), None)


def featured_items(item_type: Optional[str] = None) -> List[CatalogItem]:
    return [item for item in list_items(item_type) if item.is_featured]


def fetch_items(item_type: Optional[str] = None, q: Optional[str] = None) -> List[CatalogItem]:
    """Return the raw list for one ``type``/``q`` key.

    The upstream is asked first when configured; on any fetch failure the
    bundled dataset answers instead.
    """
    if _upstream is not None:
        try:
            return _upstream.fetch(build_query_params(item_type, q))
        except RemoteListError as exc:
            logger.warning("Upstream catalog unavailable, using bundled data: %s", exc)
    if q and q.strip():
        return search_items(q, item_type)
    return list_items(item_type)


def paginate(items: List[CatalogItem], page: int, page_size: int) -> Tuple[List[CatalogItem], int, int, int]:
    """Slice ``items`` for one page.

    Returns ``(page_items, page, total, total_pages)`` where ``page`` has
    been clamped to the available range.
    """
    ps = max(1, int(page_size))
    total = len(items)
    total_pages = max(1, (total + ps - 1) // ps)
    p = min(max(1, int(page)), total_pages)
    start = (p - 1) * ps
    return items[start:start + ps], p, total, total_pages
