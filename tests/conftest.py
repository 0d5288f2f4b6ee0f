"""Shared fixtures: an in-memory network and an agent wired to it."""

import pytest

from helpzy.agent import AgentState, CacheAgent
from helpzy.cache import CacheStorage
from helpzy.models import Request, Response
from helpzy.network import NetworkError

ORIGIN = "https://helpzy.app"


def html_response(url: str, body: bytes = b"<html>helpzy</html>") -> Response:
    """Build a same-origin 200 HTML response."""
    return Response(status=200, body=body, headers={"Content-Type": "text/html"}, type="basic", url=url)


class FakeNetwork:
    """Serves canned responses by URL and records every call.

    URLs without a canned response behave as if the device is offline.
    """

    def __init__(self, responses: dict | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[Request] = []

    def fetch(self, request: Request) -> Response:
        self.calls.append(request)
        outcome = self.responses.get(request.url)
        if outcome is None:
            raise NetworkError(f"offline: {request.url}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def precache_responses() -> dict:
    """Responses for the default precache manifest."""
    return {
        f"{ORIGIN}/": html_response(f"{ORIGIN}/"),
        f"{ORIGIN}/index.html": html_response(f"{ORIGIN}/index.html"),
    }


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork(precache_responses())


@pytest.fixture
def caches() -> CacheStorage:
    return CacheStorage()


@pytest.fixture
def agent(caches: CacheStorage, network: FakeNetwork) -> CacheAgent:
    """A helpzy-v4 agent that has not been installed."""
    return CacheAgent(AgentState(current_version="helpzy-v4", origin=ORIGIN), caches, network)
