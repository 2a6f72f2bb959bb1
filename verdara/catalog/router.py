"""
Route definitions for the catalog API.

Endpoints under /api:
- GET    /activities                     : raw list for a type/q key
- GET    /trails, /trails/featured       : trail lists
- GET    /trails/search                  : trail search (empty q -> [])
- GET    /trails/{item_id}               : one trail
- GET    /campgrounds                    : campground list
- GET    /catalog/view                   : filtered, sorted, paginated list
- GET    /favorites/{session_id}         : session favourites
- POST   /favorites/{session_id}/toggle  : toggle one favourite
- DELETE /favorites/{session_id}         : forget the session
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from typing_extensions import Literal

from . import store
from .favorites import FavoritesRegistry
from .filters import FilterCriteria, SortKey, apply_criteria, available_states, selection_from
from .schemas import CatalogItem, CatalogPage, FavoriteState, FavoriteToggle


logger = logging.getLogger(__name__)

SortField = Literal["popularity", "rating", "distance", "difficulty"]

router = APIRouter(prefix="/api", tags=["catalog"])

# ---------------------------------------------------------------------------
# Favourites live in process memory only, one set per browsing session.
favorites_registry = FavoritesRegistry()


@router.get("/activities", response_model=List[CatalogItem])
def list_activities(
    type: Optional[str] = Query(default=None, description="Item type (hunting, public_lands, ...)"),
    q: Optional[str] = Query(default=None, description="Search on name, location or state"),
) -> List[CatalogItem]:
    return store.fetch_items(item_type=type, q=q)


@router.get("/trails", response_model=List[CatalogItem])
def list_trails() -> List[CatalogItem]:
    return store.list_items("trail")


@router.get("/trails/featured", response_model=List[CatalogItem])
def list_featured_trails() -> List[CatalogItem]:
    return store.featured_items("trail")


@router.get("/trails/search", response_model=List[CatalogItem])
def search_trails(q: Optional[str] = Query(default=None)) -> List[CatalogItem]:
    if not q or not q.strip():
        return []
    return store.search_items(q, "trail", include_state=False)


@router.get("/trails/{item_id}", response_model=CatalogItem)
def get_trail(item_id: int) -> CatalogItem:
    item = store.get_item(item_id)
    if item is None or item.type != "trail":
        raise HTTPException(status_code=404, detail="Trail not found")
    return item


@router.get("/campgrounds", response_model=List[CatalogItem])
def list_campgrounds() -> List[CatalogItem]:
    return store.list_items("campground")


@router.get("/catalog/view", response_model=CatalogPage)
def catalog_view(
    type: Optional[str] = Query(default=None, description="Item type"),
    q: Optional[str] = Query(default=None, description="Free-text search"),
    state: Optional[str] = Query(default=None, description="Two-letter state code"),
    difficulty: List[str] = Query(default=[], description="Repeatable difficulty filter"),
    max_distance: Optional[float] = Query(default=None, ge=0, description="Maximum distance"),
    featured: bool = Query(default=False, description="Only featured items"),
    sort: SortField = Query(default="popularity", description="Sort key"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=24, ge=1, le=200),
    session_id: Optional[str] = Query(default=None, description="Favourites session"),
) -> CatalogPage:
    """
    Run the list controller over the raw list for the ``type``/``q`` key.

    The free-text query is passed to the data source, so the controller
    does not apply it a second time. ``available_states`` is computed from
    the raw list so the state selector does not shrink as filters narrow
    the result.
    """
    raw = store.fetch_items(item_type=type, q=q)
    criteria = FilterCriteria(
        query=q or "",
        state=selection_from(state),
        difficulties=frozenset(difficulty),
        max_distance=max_distance,
        sort=SortKey(sort),
        query_delegated=True,
        featured_only=featured,
    )
    items = apply_criteria(raw, criteria)
    page_items, page, total, total_pages = store.paginate(items, page, page_size)

    favs = favorites_registry.get(session_id).as_list() if session_id else []
    return CatalogPage(
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
        items=page_items,
        available_states=available_states(raw),
        favorites=favs,
    )


@router.get("/favorites/{session_id}", response_model=FavoriteState)
def list_favorites(session_id: str) -> FavoriteState:
    return FavoriteState(
        session_id=session_id,
        favorites=favorites_registry.get(session_id).as_list(),
    )


@router.post("/favorites/{session_id}/toggle", response_model=FavoriteState)
def toggle_favorite(session_id: str, body: FavoriteToggle) -> FavoriteState:
    updated = favorites_registry.toggle(session_id, body.item_id)
    logger.debug("Session %s toggled favourite %s", session_id, body.item_id)
    return FavoriteState(session_id=session_id, favorites=updated.as_list())


@router.delete("/favorites/{session_id}")
def clear_favorites(session_id: str):
    favorites_registry.clear(session_id)
    return {"status": "ok"}
