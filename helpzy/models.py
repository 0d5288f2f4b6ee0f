"""Data models for the offline cache agent and its update lifecycle."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any
from urllib.parse import urlparse

# Control message type that asks a waiting agent to activate immediately.
SKIP_WAITING = "SKIP_WAITING"

# Value a fetch resolves to when the network is unreachable and nothing is cached.
OFFLINE = None


@dataclass(frozen=True)
class Request:
    """An outgoing request seen by the cache agent.

    Attributes:
        url: Absolute request URL.
        method: HTTP method, upper case.
        headers: Request headers.
        body: Request payload for mutations, or None.
    """

    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None

    @property
    def scheme(self) -> str:
        return urlparse(self.url).scheme.lower()


@dataclass(frozen=True)
class Response:
    """A network or cached response.

    Attributes:
        status: HTTP status code.
        body: Response payload.
        headers: Response headers.
        type: "basic" for same-origin responses, "cors" or "opaque" otherwise.
        url: Final URL the response was served from.
    """

    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    type: str = "basic"
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def clone(self) -> "Response":
        """Return an independent copy that can be stored while the original is returned."""
        return replace(self, headers=dict(self.headers))


class WorkerState(Enum):
    """Lifecycle states of a cache agent relative to its registration."""

    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


@dataclass(frozen=True)
class PendingRequest:
    """A mutation queued for replay once connectivity returns.

    Attributes:
        tag: Sync tag the record belongs to (e.g. "sync-quotes").
        request: The request to replay.
        queued_at: When the record was queued.
    """

    tag: str
    request: Request
    queued_at: datetime


def is_skip_waiting(data: Any) -> bool:
    """Return True if a control message asks the agent to skip waiting."""
    return isinstance(data, dict) and data.get("type") == SKIP_WAITING
