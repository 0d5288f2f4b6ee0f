"""Queue of mutations waiting for connectivity, replayed on background sync.

Records are kept in memory per sync tag and replayed in the order they were
queued. A record is dropped only after a successful replay; the first failure
stops the replay for that tag so later records never overtake it.
"""

import logging
import threading
from collections import defaultdict, deque
from collections.abc import Callable
from datetime import UTC, datetime

from .models import PendingRequest, Request, Response

logger = logging.getLogger(__name__)

# Sync tags registered by the marketplace pages.
SYNC_QUOTES = "sync-quotes"
SYNC_POSTS = "sync-posts"
DEFAULT_SYNC_TAGS = (SYNC_QUOTES, SYNC_POSTS)


class PendingRequestQueue:
    """Thread-safe FIFO of pending requests, one queue per tag."""

    def __init__(self) -> None:
        self._queues: dict[str, deque[PendingRequest]] = defaultdict(deque)
        self._lock = threading.Lock()

    def enqueue(self, tag: str, request: Request) -> PendingRequest:
        """Queue a request that failed while offline."""
        record = PendingRequest(tag=tag, request=request, queued_at=datetime.now(UTC))
        with self._lock:
            self._queues[tag].append(record)
        logger.info("Queued %s %s for %s", request.method, request.url, tag)
        return record

    def pending(self, tag: str) -> list[PendingRequest]:
        with self._lock:
            return list(self._queues.get(tag, ()))

    def __len__(self) -> int:
        with self._lock:
            return sum(len(q) for q in self._queues.values())

    def replay(self, tag: str, send: Callable[[Request], Response]) -> int:
        """Replay queued requests for a tag in FIFO order.

        Args:
            tag: Sync tag whose records are replayed.
            send: Callable performing the request; may raise.

        Returns:
            Number of records replayed successfully and removed.

        Raises:
            Exception: Whatever ``send`` raised, after successful records were removed.
        """
        replayed = 0
        while True:
            with self._lock:
                queue = self._queues.get(tag)
                if not queue:
                    break
                record = queue[0]

            response = send(record.request)
            if not response.ok:
                logger.warning(
                    "Replay of %s %s returned %d, keeping %d record(s) queued",
                    record.request.method,
                    record.request.url,
                    response.status,
                    len(self.pending(tag)),
                )
                break

            with self._lock:
                queue = self._queues.get(tag)
                if queue and queue[0] is record:
                    queue.popleft()
            replayed += 1

        if replayed:
            logger.info("Replayed %d queued request(s) for %s", replayed, tag)
        return replayed
