"""
Remote list source for catalog views.

A ``RemoteListSource`` fetches a JSON array of catalog items from a Verdara
API (``/api/activities`` by default) for a given set of query parameters.
The parameters form the cache key: asking again for a key that already
resolved is answered from memory, while a new key starts one background
fetch and reports a ``pending`` snapshot with an empty list until the
response arrives.

Only the most recently requested key is "current". A slow response for an
older key still lands in the cache but never replaces what the caller is
looking at. After ``close()`` the source is disposed and late responses
are dropped entirely.

There is no retry: a failed fetch leaves the key in the ``error`` state
until the caller invalidates it or requests it again.

HTTP is done with the standard library; a custom User-Agent and Accept
header are sent with every request.
"""

from __future__ import annotations

import json
import logging
import threading
import urllib.error
import urllib.parse
import urllib.request
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from .. import config
from .schemas import CatalogItem


logger = logging.getLogger(__name__)

PENDING = "pending"
OK = "ok"
ERROR = "error"

USER_AGENT = "VerdaraCatalog/1.0"


class RemoteListError(Exception):
    """The remote list could not be fetched or parsed."""


@dataclass(frozen=True)
class ListSnapshot:
    status: str
    items: List[CatalogItem] = field(default_factory=list)
    error: Optional[str] = None
    key: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == PENDING


def build_query_params(item_type: Optional[str] = None, query: Optional[str] = None) -> Dict[str, str]:
    """Build the parameter set for a list request.

    ``q`` is only included when the search text is non-blank, so clearing
    the search box returns to the unfiltered key.
    """
    params: Dict[str, str] = {}
    if item_type:
        params["type"] = item_type
    if query and query.strip():
        params["q"] = query.strip()
    return params


def cache_key(params: Mapping[str, Any]) -> str:
    clean = [(k, str(v)) for k, v in sorted(params.items()) if v not in (None, "")]
    return urllib.parse.urlencode(clean)


def _http_get_json(url: str, timeout: float) -> Any:
    """Perform an HTTP GET and return the decoded JSON body.

    Raises ``RemoteListError`` on any network, status or decoding failure.
    """
    request = urllib.request.Request(
        url,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
    )
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            if response.status != 200:
                raise RemoteListError(f"{url} returned status {response.status}")
            body = response.read().decode("utf-8", errors="ignore")
    except urllib.error.URLError as exc:
        raise RemoteListError(f"request to {url} failed: {exc}") from exc
    except OSError as exc:
        raise RemoteListError(f"request to {url} failed: {exc}") from exc
    try:
        return json.loads(body)
    except ValueError as exc:
        raise RemoteListError(f"invalid JSON from {url}") from exc


def parse_items(data: Any) -> List[CatalogItem]:
    """Validate a decoded JSON array into catalog items.

    Entries that are not objects or fail validation are logged and skipped;
    duplicate ids keep their first occurrence.
    """
    if not isinstance(data, list):
        raise RemoteListError("expected a JSON array of catalog items")
    items: List[CatalogItem] = []
    seen = set()
    for entry in data:
        if not isinstance(entry, dict):
            logger.warning("Skipping non-object catalog entry: %r", entry)
            continue
        try:
            item = CatalogItem(**entry)
        except ValidationError as exc:
            logger.warning("Skipping invalid catalog entry %s: %s", entry.get("id"), exc)
            continue
        if item.id in seen:
            logger.warning("Dropping duplicate catalog id %s", item.id)
            continue
        seen.add(item.id)
        items.append(item)
    return items


class RemoteListSource:
    def __init__(
        self,
        base_url: str,
        path: str = "/api/activities",
        timeout: float = config.HTTP_TIMEOUT,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.path = path
        self.timeout = timeout
        self._executor = executor or ThreadPoolExecutor(max_workers=2)
        self._owns_executor = executor is None
        self._lock = threading.RLock()
        self._cache: Dict[str, List[CatalogItem]] = {}
        self._errors: Dict[str, str] = {}
        self._inflight: Dict[str, Tuple[int, Future]] = {}
        self._generations: Dict[str, int] = {}
        self._current_key: Optional[str] = None
        self._closed = False

    def url_for(self, params: Mapping[str, Any]) -> str:
        key = cache_key(params)
        url = f"{self.base_url}{self.path}"
        return f"{url}?{key}" if key else url

    def fetch(self, params: Mapping[str, Any]) -> List[CatalogItem]:
        """Blocking single attempt; raises ``RemoteListError`` on failure."""
        url = self.url_for(params)
        logger.info("Fetching catalog list %s", url)
        items = parse_items(_http_get_json(url, self.timeout))
        logger.info("Fetched %d catalog items from %s", len(items), url)
        return items

    def request(self, params: Mapping[str, Any]) -> ListSnapshot:
        """Make ``params`` the current key and return its snapshot.

        Starts a background fetch when the key is neither cached nor
        already in flight.
        """
        key = cache_key(params)
        future = None
        generation = 0
        with self._lock:
            if self._closed:
                raise RuntimeError("RemoteListSource is closed")
            self._current_key = key
            if key not in self._cache and key not in self._inflight:
                self._errors.pop(key, None)
                generation = self._generations.get(key, 0)
                future = self._executor.submit(self.fetch, dict(params))
                self._inflight[key] = (generation, future)
        if future is not None:
            future.add_done_callback(
                lambda f, k=key, g=generation: self._on_done(k, g, f)
            )
        return self.snapshot()

    def _on_done(self, key: str, generation: int, future: Future) -> None:
        with self._lock:
            inflight = self._inflight.get(key)
            if inflight is not None and inflight[1] is future:
                del self._inflight[key]
            if self._closed:
                logger.debug("Ignoring late response for %s after close", key)
                return
            if generation != self._generations.get(key, 0):
                logger.debug("Ignoring response for %s fetched before invalidation", key)
                return
            exc = future.exception()
            if exc is not None:
                logger.error("Catalog list fetch failed for %s: %s", key or "<all>", exc)
                self._errors[key] = str(exc)
                return
            self._cache[key] = future.result()

    def snapshot(self) -> ListSnapshot:
        with self._lock:
            key = self._current_key
            if key is None:
                return ListSnapshot(status=PENDING)
            if key in self._cache:
                return ListSnapshot(status=OK, items=list(self._cache[key]), key=key)
            if key in self._errors:
                return ListSnapshot(status=ERROR, error=self._errors[key], key=key)
            return ListSnapshot(status=PENDING, key=key)

    def wait(self, timeout: Optional[float] = None) -> ListSnapshot:
        """Block until the current key's fetch (if any) completes."""
        with self._lock:
            key = self._current_key
            inflight = self._inflight.get(key) if key is not None else None
        if inflight is not None:
            generation, future = inflight
            future.exception(timeout=timeout)
            # The done callback may not have run yet; recording twice is harmless.
            self._on_done(key, generation, future)
        return self.snapshot()

    def invalidate(self, params: Optional[Mapping[str, Any]] = None) -> None:
        """Drop one key (or every key) so the next ``request`` refetches.

        A fetch already in flight for a dropped key is abandoned: its
        result is never cached.
        """
        with self._lock:
            if params is None:
                keys = list(self._inflight)
                self._cache.clear()
                self._errors.clear()
            else:
                keys = [cache_key(params)]
                self._cache.pop(keys[0], None)
                self._errors.pop(keys[0], None)
            for key in keys:
                self._generations[key] = self._generations.get(key, 0) + 1
                self._inflight.pop(key, None)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._cache.clear()
            self._errors.clear()
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    @property
    def closed(self) -> bool:
        return self._closed
