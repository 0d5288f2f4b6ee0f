"""Network access for the cache agent, backed by requests."""

import logging
from typing import Protocol
from urllib.parse import urljoin, urlparse

import requests

from .models import Request, Response

logger = logging.getLogger(__name__)


class NetworkError(Exception):
    """Raised when a request cannot reach the network (offline, DNS, refused)."""

    pass


class Network(Protocol):
    """Anything the agent can fetch through."""

    def fetch(self, request: Request) -> Response: ...


def _origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme.lower()}://{parsed.netloc.lower()}"


class RequestsNetwork:
    """Fetches requests over HTTP with a shared requests session.

    Responses served from the configured origin are typed "basic"; anything
    else is "cors" so the agent never caches it.
    """

    def __init__(self, origin: str, timeout: int = 10, session: requests.Session | None = None) -> None:
        """Initialize the network fetcher.

        Args:
            origin: Origin of the application (e.g. "http://localhost:8080").
            timeout: Per-request timeout in seconds.
            session: Optional session to reuse, mainly for tests.
        """
        self.origin = origin.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def resolve(self, url: str) -> str:
        """Return an absolute URL, joining relative paths to the origin."""
        if urlparse(url).scheme:
            return url
        return urljoin(self.origin + "/", url.lstrip("/"))

    def fetch(self, request: Request) -> Response:
        """Perform the request.

        Raises:
            NetworkError: If the request fails before a response arrives.
        """
        url = self.resolve(request.url)
        try:
            resp = self._session.request(
                request.method,
                url,
                headers=request.headers,
                data=request.body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.debug("Network request %s %s failed: %s", request.method, url, e)
            raise NetworkError(f"{request.method} {url} failed: {e}") from e

        final_url = resp.url or url
        response_type = "basic" if _origin_of(final_url) == _origin_of(self.origin) else "cors"
        return Response(
            status=resp.status_code,
            body=resp.content,
            headers=dict(resp.headers),
            type=response_type,
            url=final_url,
        )

    def close(self) -> None:
        self._session.close()
