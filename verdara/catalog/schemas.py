"""
Pydantic schema definitions for the catalog module.

``CatalogItem`` is the single shape shared by trails, activity locations
(hunting areas, public lands, fishing spots, ...) and campgrounds. Fields
that only make sense for one kind of item are optional so that a front-end
can render any catalog card from the same payload. ``CatalogPage`` bundles
a filtered, sorted and paginated slice together with the metadata the list
view needs (available states, the caller's favourites).
"""

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class CatalogItem(BaseModel):
    """A single outdoor-recreation entry.

    ``rating`` is optional and, when present, lies between 0 and 5 so the
    front-end can show a dash for unrated items instead of 0.0.
    ``distance`` is kept as the human-readable string supplied by the data
    source (e.g. ``"8.8 mi"``); the list controller parses its leading
    number when filtering or sorting by distance. List fields keep their
    display order; a null list or review count from the data source reads
    as empty. ``isFeatured`` is accepted as well as ``is_featured``.
    """

    id: int
    type: str = "trail"
    name: str
    location: str = ""
    state: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0.0, le=5.0)
    reviews: int = Field(default=0, ge=0)
    season: Optional[str] = None
    regulations: Optional[str] = None
    difficulty: Optional[str] = None
    distance: Optional[str] = None
    elevation: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    species: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    is_featured: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_featured", "isFeatured"),
    )
    image: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None

    @field_validator("tags", "species", "amenities", "features", mode="before")
    @classmethod
    def _null_list(cls, v):
        return [] if v is None else v

    @field_validator("reviews", mode="before")
    @classmethod
    def _null_reviews(cls, v):
        return 0 if v is None else v


class CatalogPage(BaseModel):
    """A wrapper for the ``/catalog/view`` endpoint."""

    page: int
    page_size: int
    total: int
    total_pages: int
    items: List[CatalogItem]
    available_states: List[str] = Field(default_factory=list)
    favorites: List[int] = Field(default_factory=list)


class FavoriteToggle(BaseModel):
    item_id: int


class FavoriteState(BaseModel):
    session_id: str
    favorites: List[int]
