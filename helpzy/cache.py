"""In-memory cache storage holding named cache generations.

Mirrors the browser Cache Storage contract closely enough for the agent:
caches are addressed by name, entries are keyed by request URL, and only
GET requests can be stored.
"""

import logging
import threading
from collections.abc import Callable, Iterable

from .models import Request, Response

logger = logging.getLogger(__name__)


class CacheError(Exception):
    """Raised when a cache cannot be opened, read, or written."""

    pass


class Cache:
    """A single named cache generation."""

    def __init__(self, name: str, lock: threading.Lock) -> None:
        self.name = name
        self._lock = lock
        self._entries: dict[str, Response] = {}
        self._closed = False

    def match(self, request: Request) -> Response | None:
        """Return the stored response for an exact URL match, or None.

        Only GET requests ever match.
        """
        if request.method != "GET":
            return None
        with self._lock:
            if self._closed:
                raise CacheError(f"Cache '{self.name}' has been deleted")
            cached = self._entries.get(request.url)
        return cached.clone() if cached is not None else None

    def put(self, request: Request, response: Response) -> None:
        """Store a response keyed by the request URL.

        Raises:
            CacheError: If the request is not a GET, the response is partial,
                or the cache has been deleted.
        """
        if request.method != "GET":
            raise CacheError(f"Cannot cache {request.method} request for {request.url}")
        if response.status == 206:
            raise CacheError(f"Cannot cache partial response for {request.url}")
        with self._lock:
            if self._closed:
                raise CacheError(f"Cache '{self.name}' has been deleted")
            self._entries[request.url] = response

    def add_all(self, requests: Iterable[Request], fetch: Callable[[Request], Response]) -> None:
        """Fetch every request and store all responses, or none of them.

        Args:
            requests: Requests to precache.
            fetch: Callable performing the network request.

        Raises:
            CacheError: If any fetch fails or returns a non-ok status.
        """
        fetched: list[tuple[Request, Response]] = []
        for request in requests:
            try:
                response = fetch(request)
            except Exception as e:
                raise CacheError(f"Failed to fetch {request.url}: {e}") from e
            if not response.ok:
                raise CacheError(f"Failed to fetch {request.url}: status {response.status}")
            fetched.append((request, response))

        for request, response in fetched:
            self.put(request, response)

    def delete(self, request: Request) -> bool:
        with self._lock:
            return self._entries.pop(request.url, None) is not None

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CacheStorage:
    """Named cache generations sharing one lock.

    Thread-safe: concurrent fetch handlers may read and write at the same time.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._caches: dict[str, Cache] = {}

    def open(self, name: str) -> Cache:
        """Return the cache with the given name, creating it if missing."""
        with self._lock:
            cache = self._caches.get(name)
            if cache is None:
                cache = Cache(name, self._lock)
                self._caches[name] = cache
                logger.debug("Created cache %s", name)
            return cache

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._caches

    def keys(self) -> list[str]:
        """Return cache names in creation order."""
        with self._lock:
            return list(self._caches)

    def delete(self, name: str) -> bool:
        """Delete a cache generation.

        Returns:
            True if the cache existed and was deleted.
        """
        with self._lock:
            cache = self._caches.pop(name, None)
            if cache is None:
                return False
            cache._closed = True
            return True
