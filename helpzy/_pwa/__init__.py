"""Progressive Web App assets for the Helpzy page.

This package renders the service worker, the registration/update script,
the web app manifest and the page shell from configuration, so the browser
code ships the same cache name, precache manifest and sync tags as the
Python agent model.

PWA Features:
- Installable on mobile and desktop devices
- Offline support via Service Worker caching
- Cache versioning for update detection (fixed, or auto-computed from the page)
- Update banner with a one-time reload when the new version takes over
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from ..config import Config
from ._manifest import render_manifest
from ._registration import render_registration_js
from ._service_worker import render_service_worker
from ._shell import inject_pwa, render_shell
from ._version import compute_cache_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PwaAssets:
    """Rendered browser assets for one cache generation."""

    cache_name: str
    version: str
    service_worker_js: str
    manifest_json: str
    shell_html: str


def build_assets(config: Config) -> PwaAssets:
    """Render every PWA asset for the given configuration.

    When ``server.static_dir`` contains an index.html, that page is used as
    the shell with the PWA snippets injected.
    """
    registration_js = render_registration_js(config.updates.poll_interval * 1000)

    index_path = Path(config.server.static_dir) / "index.html" if config.server.static_dir else None
    if index_path is not None and index_path.is_file():
        logger.debug("Using %s as page shell", index_path)
        shell_html = inject_pwa(
            index_path.read_text(encoding="utf-8"),
            config.app.name,
            config.app.theme_color,
            registration_js,
        )
    else:
        shell_html = render_shell(config.app.name, config.app.theme_color, registration_js)

    version = compute_cache_version(shell_html) if config.cache.is_auto_version else config.cache.version
    cache_name = config.cache.cache_name(version)

    return PwaAssets(
        cache_name=cache_name,
        version=version,
        service_worker_js=render_service_worker(
            cache_name,
            config.cache.precache,
            config.sync.tags,
            config.cache.skip_waiting_on_install,
        ),
        manifest_json=render_manifest(
            config.app.name,
            config.app.short_name,
            version,
            config.app.theme_color,
        ),
        shell_html=shell_html,
    )


__all__ = [
    "PwaAssets",
    "build_assets",
    "compute_cache_version",
    "render_manifest",
    "render_registration_js",
    "render_service_worker",
    "render_shell",
    "inject_pwa",
]
