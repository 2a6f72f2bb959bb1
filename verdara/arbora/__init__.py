"""
Arbora: scheduling tools for arborist businesses.

Exposes client and job records plus a month calendar grid.
"""

from .router import router as arbora_router  # noqa: F401
