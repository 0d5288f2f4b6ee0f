"""Offline cache agent: install, activate, fetch, sync and message handling.

Each lifecycle event is a plain method taking a synthetic payload, so the
agent can be driven by tests or by the registration model without a browser.

Fetch strategy (cache-first):
- Non-http(s) requests are not intercepted.
- Exact cache hits are served without touching the network.
- Misses go to the network; successful same-origin 200 responses are cached.
- Network failures resolve to OFFLINE instead of raising.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

from .cache import CacheError, CacheStorage
from .models import OFFLINE, Request, Response, WorkerState, is_skip_waiting
from .network import Network, NetworkError
from .sync import DEFAULT_SYNC_TAGS, PendingRequestQueue

logger = logging.getLogger(__name__)

# Documents precached on install; both must be fetched or install fails.
DEFAULT_PRECACHE = ("/", "/index.html")

INTERCEPTED_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class AgentState:
    """Version and precache manifest owned by one agent instance.

    Attributes:
        current_version: Name of the current cache generation (e.g. "helpzy-v4").
        manifest: Paths precached on install.
        origin: Origin manifest paths are resolved against; empty keeps them as is.
        skip_waiting_on_install: Activate as soon as install completes instead of waiting.
    """

    current_version: str
    manifest: tuple[str, ...] = DEFAULT_PRECACHE
    origin: str = ""
    skip_waiting_on_install: bool = True

    def manifest_requests(self) -> list[Request]:
        if not self.origin:
            return [Request(url=path) for path in self.manifest]
        base = self.origin.rstrip("/") + "/"
        return [Request(url=urljoin(base, path.lstrip("/"))) for path in self.manifest]


@dataclass
class FetchEvent:
    """A request offered to the agent.

    ``responded`` stays False when the agent lets the request pass through.
    """

    request: Request
    responded: bool = False
    response: Response | None = None

    def respond_with(self, response: Response | None) -> None:
        self.responded = True
        self.response = response


class CacheAgent:
    """Intercepts requests and keeps one cache generation populated and current."""

    def __init__(
        self,
        state: AgentState,
        caches: CacheStorage,
        network: Network,
        sync_queue: PendingRequestQueue | None = None,
        sync_tags: Iterable[str] = DEFAULT_SYNC_TAGS,
    ) -> None:
        """Initialize the agent.

        Args:
            state: Version tag and precache manifest.
            caches: Cache storage shared by every agent generation.
            network: Fetcher used for misses and precaching.
            sync_queue: Queue replayed on background sync.
            sync_tags: Tags the sync handler recognizes.
        """
        self.state = state
        self.caches = caches
        self.network = network
        self.sync_queue = sync_queue if sync_queue is not None else PendingRequestQueue()
        self.sync_tags = frozenset(sync_tags)
        self.worker_state = WorkerState.PARSED
        self.skip_waiting_requested = False
        self.clients_claimed = False
        self._state_listeners: list[Callable[["CacheAgent"], None]] = []
        self._skip_waiting_listeners: list[Callable[["CacheAgent"], None]] = []

    def __repr__(self) -> str:
        return f"CacheAgent({self.cache_name!r}, {self.worker_state.value})"

    @property
    def cache_name(self) -> str:
        return self.state.current_version

    def add_state_listener(self, callback: Callable[["CacheAgent"], None]) -> None:
        self._state_listeners.append(callback)

    def add_skip_waiting_listener(self, callback: Callable[["CacheAgent"], None]) -> None:
        self._skip_waiting_listeners.append(callback)

    def _set_state(self, state: WorkerState) -> None:
        if state == self.worker_state:
            return
        logger.debug("Agent %s: %s -> %s", self.cache_name, self.worker_state.value, state.value)
        self.worker_state = state
        for callback in list(self._state_listeners):
            callback(self)

    def mark_redundant(self) -> None:
        self._set_state(WorkerState.REDUNDANT)

    # Lifecycle

    def install(self) -> bool:
        """Precache the manifest into the current generation.

        Returns:
            True if every manifest entry was stored; False if install failed
            and the agent became redundant.
        """
        logger.info("Installing agent %s", self.cache_name)
        self._set_state(WorkerState.INSTALLING)
        try:
            cache = self.caches.open(self.cache_name)
            cache.add_all(self.state.manifest_requests(), self.network.fetch)
        except CacheError as e:
            logger.error("Install of %s failed: %s", self.cache_name, e)
            self._set_state(WorkerState.REDUNDANT)
            return False

        logger.info("Precached %d entries into %s", len(self.state.manifest), self.cache_name)
        if self.state.skip_waiting_on_install:
            self.skip_waiting()
        self._set_state(WorkerState.INSTALLED)
        return True

    def activate(self) -> list[str]:
        """Delete every other cache generation and claim open pages.

        Returns:
            Names of the deleted caches.
        """
        logger.info("Activating agent %s", self.cache_name)
        self._set_state(WorkerState.ACTIVATING)
        deleted: list[str] = []
        for name in self.caches.keys():
            if name == self.cache_name:
                continue
            try:
                if self.caches.delete(name):
                    logger.info("Deleted old cache %s", name)
                    deleted.append(name)
            except Exception as e:
                logger.warning("Failed to delete cache %s: %s", name, e)

        self.clients_claimed = True
        self._set_state(WorkerState.ACTIVATED)
        return deleted

    def skip_waiting(self) -> None:
        """Ask to activate without waiting for controlled pages to close."""
        self.skip_waiting_requested = True
        for callback in list(self._skip_waiting_listeners):
            callback(self)

    # Events

    def handle_fetch(self, event: FetchEvent) -> None:
        """Answer a request from cache or network.

        Leaves the event untouched for non-http(s) schemes.
        """
        request = event.request
        if request.scheme not in INTERCEPTED_SCHEMES:
            return

        event.respond_with(self._cache_first(request))

    def fetch(self, request: Request) -> Response | None:
        """Convenience wrapper: handle a request and return what the page would receive.

        Passed-through requests go straight to the network.
        """
        event = FetchEvent(request)
        self.handle_fetch(event)
        if event.responded:
            return event.response
        return self.network.fetch(request)

    def _cache_first(self, request: Request) -> Response | None:
        try:
            cached = self.caches.open(self.cache_name).match(request)
        except CacheError as e:
            logger.debug("Cache lookup failed for %s: %s", request.url, e)
            cached = None
        except Exception as e:
            logger.warning("Cache lookup failed for %s: %s", request.url, e)
            cached = None
        if cached is not None:
            logger.debug("Cache hit: %s", request.url)
            return cached

        try:
            response = self.network.fetch(request)
        except NetworkError as e:
            logger.debug("Offline, no cached copy of %s: %s", request.url, e)
            return OFFLINE
        except Exception as e:
            logger.warning("Fetch of %s failed: %s", request.url, e)
            return OFFLINE

        if response is None or response.status != 200 or response.type != "basic":
            return response

        self._store(request, response.clone())
        return response

    def _store(self, request: Request, response: Response) -> None:
        try:
            self.caches.open(self.cache_name).put(request, response)
        except CacheError as e:
            logger.debug("Skipped caching %s: %s", request.url, e)
        except Exception as e:
            logger.warning("Failed to cache %s: %s", request.url, e)

    def handle_sync(self, tag: str) -> bool:
        """Replay queued requests for a recognized sync tag.

        Returns:
            True if the tag was recognized and every queued record replayed.
        """
        if tag not in self.sync_tags:
            logger.debug("Ignoring unknown sync tag %s", tag)
            return False

        logger.info("Syncing queued requests for: %s", tag)
        try:
            self.sync_queue.replay(tag, self.network.fetch)
        except Exception as e:
            logger.warning("Sync %s failed: %s", tag, e)
            return False
        return not self.sync_queue.pending(tag)

    def handle_message(self, data: Any) -> None:
        """Handle a control message posted by a page."""
        if is_skip_waiting(data):
            logger.info("Agent %s received SKIP_WAITING", self.cache_name)
            self.skip_waiting()
