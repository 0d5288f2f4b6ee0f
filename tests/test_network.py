"""Tests for the requests-backed network fetcher."""

from unittest.mock import MagicMock

import pytest
import requests

from helpzy.models import Request
from helpzy.network import NetworkError, RequestsNetwork


def _session_returning(status: int = 200, url: str = "https://helpzy.app/", content: bytes = b"ok") -> MagicMock:
    session = MagicMock(spec=requests.Session)
    resp = MagicMock()
    resp.status_code = status
    resp.url = url
    resp.content = content
    resp.headers = {"Content-Type": "text/plain"}
    session.request.return_value = resp
    return session


class TestRequestsNetwork:
    """Tests for RequestsNetwork."""

    def test_same_origin_response_is_basic(self) -> None:
        """Responses from the app origin are typed basic."""
        network = RequestsNetwork("https://helpzy.app", session=_session_returning(url="https://helpzy.app/page"))

        response = network.fetch(Request(url="https://helpzy.app/page"))

        assert response.status == 200
        assert response.type == "basic"
        assert response.body == b"ok"
        assert response.headers["Content-Type"] == "text/plain"

    def test_cross_origin_response_is_cors(self) -> None:
        """Responses from another origin are typed cors."""
        network = RequestsNetwork(
            "https://helpzy.app",
            session=_session_returning(url="https://storage.example.com/avatar.png"),
        )

        response = network.fetch(Request(url="https://storage.example.com/avatar.png"))

        assert response.type == "cors"

    def test_redirect_off_origin_is_cors(self) -> None:
        """The final URL decides the response type."""
        network = RequestsNetwork("https://helpzy.app", session=_session_returning(url="https://login.example.com/"))

        assert network.fetch(Request(url="https://helpzy.app/login")).type == "cors"

    def test_relative_urls_join_origin(self) -> None:
        """Relative request URLs are resolved against the origin."""
        session = _session_returning()
        network = RequestsNetwork("https://helpzy.app/", timeout=5, session=session)

        network.fetch(Request(url="/index.html"))

        session.request.assert_called_once_with(
            "GET",
            "https://helpzy.app/index.html",
            headers={},
            data=None,
            timeout=5,
        )

    def test_passes_method_and_body(self) -> None:
        """Mutations keep their method and payload."""
        session = _session_returning(status=201)
        network = RequestsNetwork("https://helpzy.app", session=session)

        response = network.fetch(Request(url="https://helpzy.app/api/quotes", method="POST", body=b"{}"))

        assert response.status == 201
        args, kwargs = session.request.call_args
        assert args[0] == "POST"
        assert kwargs["data"] == b"{}"

    @pytest.mark.parametrize(
        "error",
        [requests.ConnectionError("refused"), requests.Timeout("slow"), requests.exceptions.InvalidSchema("ftp")],
    )
    def test_request_errors_become_network_errors(self, error: Exception) -> None:
        """Every requests failure surfaces as NetworkError."""
        session = MagicMock(spec=requests.Session)
        session.request.side_effect = error
        network = RequestsNetwork("https://helpzy.app", session=session)

        with pytest.raises(NetworkError):
            network.fetch(Request(url="https://helpzy.app/"))

    def test_close_closes_session(self) -> None:
        """close() releases the session."""
        session = _session_returning()
        RequestsNetwork("https://helpzy.app", session=session).close()

        session.close.assert_called_once()
