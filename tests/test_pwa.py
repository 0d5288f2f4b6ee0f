"""Tests for the rendered PWA assets."""

import json
from pathlib import Path

from helpzy._pwa import (
    build_assets,
    compute_cache_version,
    inject_pwa,
    render_manifest,
    render_registration_js,
    render_service_worker,
    render_shell,
)
from helpzy.config import AppConfig, CacheConfig, Config, ServerConfig


class TestServiceWorker:
    """Tests for the service worker script."""

    def test_embeds_cache_name_and_manifest(self) -> None:
        """Cache name, precache list and sync tags come from the arguments."""
        js = render_service_worker("helpzy-v4", ["/", "/index.html"], ["sync-quotes", "sync-posts"])

        assert 'const CACHE_NAME = "helpzy-v4";' in js
        assert 'const PRECACHE_URLS = ["/", "/index.html"];' in js
        assert 'const SYNC_TAGS = ["sync-quotes", "sync-posts"];' in js

    def test_handles_every_lifecycle_event(self) -> None:
        """install, activate, fetch, sync and message handlers are present."""
        js = render_service_worker("helpzy-v4", ["/"], ["sync-quotes"])

        for event in ("install", "activate", "fetch", "sync", "message"):
            assert f"self.addEventListener('{event}'" in js

    def test_fetch_caches_only_basic_200(self) -> None:
        """The fetch handler guards scheme, status and response type."""
        js = render_service_worker("helpzy-v4", ["/"], [])

        assert "url.protocol !== 'http:' && url.protocol !== 'https:'" in js
        assert "response.status !== 200 || response.type !== 'basic'" in js
        assert "response.clone()" in js

    def test_activate_keeps_only_current_generation(self) -> None:
        """Activation deletes every other cache and claims clients."""
        js = render_service_worker("helpzy-v4", ["/"], [])

        assert "cacheName !== CACHE_NAME" in js
        assert "self.clients.claim()" in js

    def test_skip_waiting_on_install_toggle(self) -> None:
        """Install only calls skipWaiting when enabled."""
        with_skip = render_service_worker("helpzy-v4", ["/"], [], skip_waiting_on_install=True)
        without_skip = render_service_worker("helpzy-v4", ["/"], [], skip_waiting_on_install=False)

        assert ".then(() => self.skipWaiting())" in with_skip
        assert ".then(() => self.skipWaiting())" not in without_skip
        # The SKIP_WAITING message handler is always there
        assert "event.data.type === 'SKIP_WAITING'" in without_skip


class TestRegistrationScript:
    """Tests for the page-side registration script."""

    def test_poll_interval(self) -> None:
        """The update check interval is rendered in milliseconds."""
        js = render_registration_js(60000)

        assert "}, 60000);" in js

    def test_update_flow(self) -> None:
        """The script detects upgrades, posts SKIP_WAITING and reloads once."""
        js = render_registration_js(60000)

        assert "newWorker.state === 'installed' && navigator.serviceWorker.controller" in js
        assert "postMessage({ type: 'SKIP_WAITING' })" in js
        assert "if (refreshing) return;" in js
        assert "if (reg.waiting) showUpdate();" in js

    def test_install_prompt(self) -> None:
        """The install prompt honours the dismissal window."""
        js = render_registration_js(60000)

        assert "beforeinstallprompt" in js
        assert "installPromptDismissed" in js
        assert "604800000" in js


class TestManifestAndShell:
    """Tests for the manifest and page shell."""

    def test_manifest_fields(self) -> None:
        """The manifest is valid JSON with install metadata."""
        manifest = json.loads(render_manifest("Helpzy", "Helpzy", "v4", "#4f46e5"))

        assert manifest["name"] == "Helpzy"
        assert manifest["version"] == "v4"
        assert manifest["start_url"] == "/"
        assert manifest["display"] == "standalone"
        assert manifest["theme_color"] == "#4f46e5"

    def test_shell_contains_banners_and_script(self) -> None:
        """The shell links the manifest and embeds banners and the script."""
        html = render_shell("Helpzy", "#4f46e5", "console.log('registered');")

        assert '<link rel="manifest" href="/manifest.json">' in html
        assert 'id="updateBanner"' in html
        assert 'id="installBanner"' in html
        assert 'id="offlineBanner"' in html
        assert "console.log('registered');" in html
        assert '<div id="root"></div>' in html

    def test_shell_escapes_app_name(self) -> None:
        """The app name is HTML-escaped."""
        html = render_shell("<Helpzy>", "#000", "")

        assert "&lt;Helpzy&gt;" in html
        assert "<Helpzy>" not in html

    def test_inject_into_existing_page(self) -> None:
        """Snippets land before the closing head and body tags."""
        page = "<html><head><title>App</title></head><body><div id=\"root\"></div></body></html>"

        html = inject_pwa(page, "Helpzy", "#4f46e5", "/*sw*/")

        assert html.index('rel="manifest"') < html.index("</head>")
        assert html.index("/*sw*/") < html.index("</body>")
        assert html.count("<head>") == 1

    def test_inject_without_tags(self) -> None:
        """Fragments without head or body still get the snippets."""
        html = inject_pwa("<div>bare</div>", "Helpzy", "#4f46e5", "/*sw*/")

        assert html.startswith("    <meta name=\"theme-color\"")
        assert html.rstrip().endswith("</script>")


class TestVersion:
    """Tests for cache version computation."""

    def test_stable_for_same_content(self) -> None:
        assert compute_cache_version("abc") == compute_cache_version("abc")

    def test_changes_with_content(self) -> None:
        assert compute_cache_version("abc") != compute_cache_version("abd")

    def test_format(self) -> None:
        version = compute_cache_version("abc")

        assert version.startswith("v")
        assert len(version) == 9


class TestBuildAssets:
    """Tests for build_assets."""

    def test_fixed_version(self) -> None:
        """A configured version names the generation."""
        assets = build_assets(Config())

        assert assets.cache_name == "helpzy-v4"
        assert assets.version == "v4"
        assert '"helpzy-v4"' in assets.service_worker_js
        assert json.loads(assets.manifest_json)["version"] == "v4"

    def test_auto_version_tracks_shell(self) -> None:
        """With version "auto" the generation changes when the shell changes."""
        first = build_assets(Config(cache=CacheConfig(version="auto")))
        second = build_assets(Config(app=AppConfig(name="Helpzy Beta"), cache=CacheConfig(version="auto")))

        assert first.cache_name.startswith("helpzy-v")
        assert first.cache_name != second.cache_name

    def test_uses_static_index(self, tmp_path: Path) -> None:
        """A built index.html becomes the shell."""
        (tmp_path / "index.html").write_text("<html><head></head><body><div id=\"app\"></div></body></html>")

        assets = build_assets(Config(server=ServerConfig(static_dir=str(tmp_path))))

        assert '<div id="app"></div>' in assets.shell_html
        assert 'id="updateBanner"' in assets.shell_html

    def test_static_dir_without_index_uses_default_shell(self, tmp_path: Path) -> None:
        """Without an index.html the standalone shell is served."""
        assets = build_assets(Config(server=ServerConfig(static_dir=str(tmp_path))))

        assert '<div id="root"></div>' in assets.shell_html
