"""HTTP origin server for the Helpzy page shell and its service worker."""

import json
import logging
import mimetypes
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import unquote, urlparse

from ._pwa import PwaAssets
from .config import ServerConfig

logger = logging.getLogger(__name__)


class ServerError(Exception):
    """Raised when the server cannot start."""
    pass


def _resolve_static(root: Path, url_path: str) -> Optional[Path]:
    """Map a URL path to a file under root, refusing anything outside it."""
    relative = unquote(url_path).lstrip("/")
    if not relative:
        return None
    candidate = (root / relative).resolve()
    if not candidate.is_relative_to(root.resolve()):
        return None
    return candidate if candidate.is_file() else None


class ShellHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the page shell, PWA assets and static files."""

    # Class-level references set by factory
    assets: Optional[PwaAssets] = None
    static_dir: Optional[Path] = None

    def log_message(self, format: str, *args: Any) -> None:
        """Override to use Python logging instead of stderr."""
        logger.debug("HTTP %s - %s", self.address_string(), format % args)

    def _send_body(self, code: int, body: bytes, content_type: str, headers: Optional[Dict[str, str]] = None) -> None:
        self.send_response(code)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.send_header("Connection", "close")
        self.end_headers()
        self.wfile.write(body)

    def _send_json(self, code: int, data: Dict[str, Any]) -> None:
        """Send a JSON response with the given status code."""
        body = json.dumps(data, indent=2).encode("utf-8")
        self._send_body(code, body, "application/json")

    def _send_error_json(self, code: int, message: str) -> None:
        """Send a JSON error response."""
        self._send_json(code, {"error": message})

    def do_GET(self) -> None:
        """Handle GET requests."""
        path = urlparse(self.path).path

        try:
            if self.assets is None:
                self._send_error_json(503, "Assets not available")
            elif path in ("/", "/index.html"):
                self._handle_shell()
            elif path == "/sw.js":
                self._handle_service_worker()
            elif path == "/manifest.json":
                self._handle_manifest()
            elif path == "/health":
                self._send_json(200, {"status": "ok", "cache": self.assets.cache_name})
            else:
                self._handle_static(path)
        except Exception as e:
            logger.exception("Error handling request: %s", e)
            self._send_error_json(500, "Internal server error")

    def _handle_shell(self) -> None:
        """Serve the page shell; the agent decides how long it stays cached."""
        self._send_body(
            200,
            self.assets.shell_html.encode("utf-8"),
            "text/html; charset=utf-8",
            {"Cache-Control": "no-cache"},
        )

    def _handle_service_worker(self) -> None:
        """Serve sw.js uncached so update checks always see the latest version."""
        self._send_body(
            200,
            self.assets.service_worker_js.encode("utf-8"),
            "application/javascript; charset=utf-8",
            {"Cache-Control": "no-cache", "Service-Worker-Allowed": "/"},
        )

    def _handle_manifest(self) -> None:
        self._send_body(
            200,
            self.assets.manifest_json.encode("utf-8"),
            "application/manifest+json",
            {"Cache-Control": "max-age=3600"},
        )

    def _handle_static(self, path: str) -> None:
        """Serve a file from the static directory, or the shell for client-side routes."""
        if self.static_dir is not None:
            file_path = _resolve_static(self.static_dir, path)
            if file_path is not None:
                content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
                self._send_body(200, file_path.read_bytes(), content_type, {"Cache-Control": "max-age=3600"})
                return

        # Paths without an extension belong to the single-page app's router
        if "." not in path.rsplit("/", 1)[-1]:
            self._handle_shell()
            return

        self._send_error_json(404, "Not found")


def _create_handler_class(assets: PwaAssets, static_dir: Optional[str] = None) -> type:
    """Create a handler class with the rendered assets bound."""

    class BoundShellHandler(ShellHandler):
        pass

    BoundShellHandler.assets = assets
    BoundShellHandler.static_dir = Path(static_dir) if static_dir else None
    return BoundShellHandler


class AppServer:
    """Threaded HTTP server for the page shell and PWA assets."""

    def __init__(self, config: ServerConfig, assets: PwaAssets) -> None:
        """Initialize the server.

        Args:
            config: Server configuration.
            assets: Rendered PWA assets to serve.
        """
        self.config = config
        self.assets = assets
        self._server: Optional[HTTPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._shutdown_event = threading.Event()

    def start(self) -> None:
        """Start the server in a background thread.

        Raises:
            ServerError: If the server fails to start.
        """
        if self._thread is not None and self._thread.is_alive():
            logger.warning("Server is already running")
            return

        try:
            handler_class = _create_handler_class(self.assets, self.config.static_dir)
            self._server = HTTPServer((self.config.host, self.config.port), handler_class)
            self._server.timeout = 1.0  # Allow periodic shutdown checks

            self._shutdown_event.clear()
            self._thread = threading.Thread(
                target=self._serve_forever,
                name="app-server",
                daemon=True,
            )
            self._thread.start()

            logger.info("Server started on port %d (cache %s)", self.config.port, self.assets.cache_name)

        except OSError as e:
            if e.errno == 98 or e.errno == 48:  # EADDRINUSE (Linux=98, macOS=48)
                raise ServerError(
                    f"Port {self.config.port} is already in use. "
                    f"Another process may be using this port, or helpzy is already running."
                )
            elif e.errno == 13:  # EACCES
                raise ServerError(
                    f"Permission denied for port {self.config.port}. "
                    f"Ports below 1024 require root privileges. "
                    f"Use a port >= 1024 or run with elevated permissions."
                )
            else:
                raise ServerError(f"Failed to start server on port {self.config.port}: {e}")

    def _serve_forever(self) -> None:
        """Server loop that checks for shutdown."""
        while not self._shutdown_event.is_set():
            if self._server:
                self._server.handle_request()

    def stop(self) -> None:
        """Stop the server gracefully."""
        if self._thread is None:
            return

        logger.info("Stopping server...")
        self._shutdown_event.set()

        if self._server:
            self._server.server_close()

        if self._thread.is_alive():
            self._thread.join(timeout=5.0)

        self._server = None
        self._thread = None
        logger.info("Server stopped")

    @property
    def is_running(self) -> bool:
        """Check if the server is running."""
        return self._thread is not None and self._thread.is_alive()
