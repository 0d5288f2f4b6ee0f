"""Tests for the cache storage module."""

import threading

import pytest

from conftest import ORIGIN, FakeNetwork, html_response
from helpzy.cache import CacheError, CacheStorage
from helpzy.models import Request, Response


class TestCacheStorage:
    """Tests for CacheStorage."""

    def test_open_creates_once(self) -> None:
        """Opening the same name twice returns the same cache."""
        storage = CacheStorage()

        assert storage.open("helpzy-v4") is storage.open("helpzy-v4")
        assert storage.keys() == ["helpzy-v4"]

    def test_keys_in_creation_order(self) -> None:
        """Cache names are listed oldest first."""
        storage = CacheStorage()
        for name in ("helpzy-v2", "helpzy-v3", "helpzy-v4"):
            storage.open(name)

        assert storage.keys() == ["helpzy-v2", "helpzy-v3", "helpzy-v4"]

    def test_delete(self) -> None:
        """Deleting removes the name; deleting again reports False."""
        storage = CacheStorage()
        storage.open("helpzy-v3")

        assert storage.delete("helpzy-v3") is True
        assert storage.delete("helpzy-v3") is False
        assert not storage.has("helpzy-v3")

    def test_deleted_cache_rejects_writes(self) -> None:
        """A handle to a deleted cache can no longer be written."""
        storage = CacheStorage()
        cache = storage.open("helpzy-v3")
        storage.delete("helpzy-v3")

        with pytest.raises(CacheError, match="deleted"):
            cache.put(Request(url=f"{ORIGIN}/"), html_response(f"{ORIGIN}/"))


class TestCache:
    """Tests for a single cache generation."""

    def test_exact_url_match(self) -> None:
        """Entries match on the exact URL only."""
        cache = CacheStorage().open("helpzy-v4")
        cache.put(Request(url=f"{ORIGIN}/page"), html_response(f"{ORIGIN}/page"))

        assert cache.match(Request(url=f"{ORIGIN}/page")) is not None
        assert cache.match(Request(url=f"{ORIGIN}/page?x=1")) is None
        assert cache.match(Request(url=f"{ORIGIN}/page/")) is None

    def test_non_get_never_matches(self) -> None:
        """A POST to a cached URL is not answered from cache."""
        cache = CacheStorage().open("helpzy-v4")
        cache.put(Request(url=f"{ORIGIN}/"), html_response(f"{ORIGIN}/"))

        assert cache.match(Request(url=f"{ORIGIN}/", method="POST")) is None

    def test_rejects_non_get_put(self) -> None:
        """Only GET requests can be stored."""
        cache = CacheStorage().open("helpzy-v4")

        with pytest.raises(CacheError, match="POST"):
            cache.put(Request(url=f"{ORIGIN}/api", method="POST"), Response(status=200))

    def test_rejects_partial_content(self) -> None:
        """206 responses cannot be stored."""
        cache = CacheStorage().open("helpzy-v4")

        with pytest.raises(CacheError, match="partial"):
            cache.put(Request(url=f"{ORIGIN}/video"), Response(status=206))

    def test_put_overwrites(self) -> None:
        """The last write for a URL wins."""
        cache = CacheStorage().open("helpzy-v4")
        request = Request(url=f"{ORIGIN}/")
        cache.put(request, html_response(f"{ORIGIN}/", b"one"))
        cache.put(request, html_response(f"{ORIGIN}/", b"two"))

        assert cache.match(request).body == b"two"
        assert len(cache) == 1

    def test_match_returns_copy(self) -> None:
        """Mutating a matched response's headers does not change the stored entry."""
        cache = CacheStorage().open("helpzy-v4")
        request = Request(url=f"{ORIGIN}/")
        cache.put(request, html_response(f"{ORIGIN}/"))

        cache.match(request).headers["X-Test"] = "1"

        assert "X-Test" not in cache.match(request).headers

    def test_delete_entry(self) -> None:
        """Entries can be removed individually."""
        cache = CacheStorage().open("helpzy-v4")
        request = Request(url=f"{ORIGIN}/")
        cache.put(request, html_response(f"{ORIGIN}/"))

        assert cache.delete(request) is True
        assert cache.delete(request) is False

    def test_add_all_stores_everything(self) -> None:
        """add_all fetches and stores every request."""
        urls = [f"{ORIGIN}/", f"{ORIGIN}/index.html"]
        network = FakeNetwork({url: html_response(url) for url in urls})
        cache = CacheStorage().open("helpzy-v4")

        cache.add_all([Request(url=url) for url in urls], network.fetch)

        assert sorted(cache.keys()) == urls

    def test_add_all_is_all_or_nothing(self) -> None:
        """One failed fetch leaves the cache untouched."""
        network = FakeNetwork({f"{ORIGIN}/": html_response(f"{ORIGIN}/")})
        cache = CacheStorage().open("helpzy-v4")

        with pytest.raises(CacheError, match="index.html"):
            cache.add_all([Request(url=f"{ORIGIN}/"), Request(url=f"{ORIGIN}/index.html")], network.fetch)

        assert cache.keys() == []

    def test_concurrent_writes(self) -> None:
        """Concurrent writers do not lose entries."""
        cache = CacheStorage().open("helpzy-v4")

        def writer(start: int) -> None:
            for i in range(start, start + 50):
                url = f"{ORIGIN}/item/{i}"
                cache.put(Request(url=url), html_response(url))

        threads = [threading.Thread(target=writer, args=(n * 50,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(cache) == 200
