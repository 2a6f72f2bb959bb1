"""
Session-local favourites.

A ``Favorites`` value is an immutable set of catalog item ids. Toggling
returns a new value, so a list view can keep the previous snapshot around
and compare. ``FavoritesRegistry`` keeps one snapshot per browsing session
in process memory only; favourites vanish when the session is cleared or
the process restarts.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List


@dataclass(frozen=True)
class Favorites:
    ids: FrozenSet[int] = field(default_factory=frozenset)

    def toggle(self, item_id: int) -> "Favorites":
        if item_id in self.ids:
            return Favorites(self.ids - {item_id})
        return Favorites(self.ids | {item_id})

    def is_favorite(self, item_id: int) -> bool:
        return item_id in self.ids

    def as_list(self) -> List[int]:
        return sorted(self.ids)

    def __len__(self) -> int:
        return len(self.ids)


class FavoritesRegistry:
    """In-memory ``session_id -> Favorites`` map."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Favorites] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Favorites:
        with self._lock:
            return self._sessions.get(session_id, Favorites())

    def toggle(self, session_id: str, item_id: int) -> Favorites:
        with self._lock:
            updated = self._sessions.get(session_id, Favorites()).toggle(item_id)
            self._sessions[session_id] = updated
            return updated

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)
