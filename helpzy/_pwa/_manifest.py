"""Web App Manifest for PWA installation."""

import json


def render_manifest(name: str, short_name: str, version: str, theme_color: str) -> str:
    """Render the manifest served at /manifest.json.

    Args:
        name: Full application name.
        short_name: Name shown under the home screen icon.
        version: Cache version, so manifest changes track agent updates.
        theme_color: Browser UI color.
    """
    manifest = {
        "name": name,
        "short_name": short_name,
        "description": "Post service requests and receive quotes from local providers",
        "version": version,
        "id": "/",
        "start_url": "/",
        "scope": "/",
        "display": "standalone",
        "orientation": "any",
        "background_color": "#ffffff",
        "theme_color": theme_color,
        "categories": ["business", "lifestyle"],
    }
    return json.dumps(manifest, indent=2)
