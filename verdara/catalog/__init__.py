"""
Catalog package for the outdoor-recreation catalog API.

This package contains schemas, the list controller (filtering and
sorting), session favourites, the remote list source and the route
definitions that expose trails, activity locations and campgrounds to a
front-end. Data comes from the bundled dataset or, when configured, from
an upstream Verdara API.
"""

from .router import router as catalog_router  # noqa: F401
