"""Helpzy - offline caching and update lifecycle for the Helpzy web app."""

import argparse
import logging
import signal
import sys
from threading import Event
from typing import Optional

__version__ = "0.1.0"

# Global shutdown event for signal handlers
_shutdown_event: Optional[Event] = None

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def _handle_shutdown(signum: int, frame: object) -> None:
    """Signal handler for graceful shutdown."""
    sig_name = signal.Signals(signum).name
    logger.info("Received %s, initiating shutdown...", sig_name)
    if _shutdown_event is not None:
        _shutdown_event.set()


def _cmd_run(args: argparse.Namespace) -> None:
    """Execute the run command - serve the page shell and service worker."""
    global _shutdown_event

    _setup_logging(args.verbose)

    logger.info("Helpzy %s starting...", __version__)

    # Import here to avoid circular imports and allow logging setup first
    from .config import load_config, ConfigError
    from .server import AppServer, ServerError
    from ._pwa import build_assets

    try:
        config = load_config(args.config)
        logger.info("Configuration loaded from %s", args.config)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    if not config.server.enabled:
        logger.error("Server is disabled in configuration, nothing to run")
        sys.exit(1)

    assets = build_assets(config)
    logger.info("Serving cache generation %s", assets.cache_name)

    _shutdown_event = Event()
    signal.signal(signal.SIGTERM, _handle_shutdown)
    signal.signal(signal.SIGINT, _handle_shutdown)

    server = AppServer(config.server, assets)
    try:
        server.start()
    except ServerError as e:
        logger.error("Failed to start server: %s", e)
        sys.exit(1)

    try:
        logger.info("Server running, waiting for shutdown signal...")
        _shutdown_event.wait()
    except KeyboardInterrupt:
        # Backup handler if signal doesn't work
        logger.info("Keyboard interrupt received")
    finally:
        server.stop()
        logger.info("Shutdown complete")


def _cmd_render(args: argparse.Namespace) -> None:
    """Execute the render command - write sw.js, manifest.json and index.html."""
    from pathlib import Path

    from .config import load_config, ConfigError
    from ._pwa import build_assets

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    out_dir = Path(args.output)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        assets = build_assets(config)
        (out_dir / "sw.js").write_text(assets.service_worker_js, encoding="utf-8")
        (out_dir / "manifest.json").write_text(assets.manifest_json, encoding="utf-8")
        if not args.skip_shell:
            (out_dir / "index.html").write_text(assets.shell_html, encoding="utf-8")
    except OSError as e:
        print(f"Error: Failed to write assets - {e}")
        sys.exit(1)

    print(f"Rendered cache generation {assets.cache_name} into {out_dir}")


def _cmd_check_config(args: argparse.Namespace) -> None:
    """Execute the check-config command - validate and summarize configuration."""
    from .config import load_config, ConfigError
    from ._pwa import build_assets

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"App:        {config.app.name} ({config.app.origin})")
    cache_name = build_assets(config).cache_name
    if config.cache.is_auto_version:
        print(f"Cache:      {cache_name} (derived from page shell)")
    else:
        print(f"Cache:      {cache_name}")
    print(f"Precache:   {', '.join(config.cache.precache)}")
    print(f"Sync tags:  {', '.join(config.sync.tags)}")
    print(f"Update poll every {config.updates.poll_interval}s")
    print("Configuration OK")


def _cmd_precache_check(args: argparse.Namespace) -> None:
    """Execute the precache-check command - install an agent against the live origin."""
    _setup_logging(args.verbose)

    from .agent import AgentState, CacheAgent
    from .cache import CacheStorage
    from .config import load_config, ConfigError
    from .network import RequestsNetwork
    from ._pwa import build_assets

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    network = RequestsNetwork(config.app.origin, timeout=config.network.timeout)
    state = AgentState(
        current_version=build_assets(config).cache_name,
        manifest=config.cache.precache,
        origin=config.app.origin,
    )
    agent = CacheAgent(state, CacheStorage(), network, sync_tags=config.sync.tags)

    print(f"Precaching {len(state.manifest)} entries from {config.app.origin}...\n")
    try:
        installed = agent.install()
    finally:
        network.close()

    cache = agent.caches.open(agent.cache_name)
    for request in state.manifest_requests():
        status = "✓ CACHED" if cache.match(request) is not None else "✗ MISSING"
        print(f"{status}: {request.url}")

    print(f"\nResult: install {'succeeded' if installed else 'failed'}")
    if not installed:
        sys.exit(1)


def main() -> None:
    """Main entry point for the helpzy package."""
    parser = argparse.ArgumentParser(
        description="Helpzy - offline caching and update lifecycle for the Helpzy web app"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"helpzy {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser(
        "run",
        help="Serve the page shell, service worker and manifest (default)",
    )
    run_parser.add_argument(
        "-c", "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    run_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    run_parser.set_defaults(func=_cmd_run)

    render_parser = subparsers.add_parser(
        "render",
        help="Write sw.js, manifest.json and index.html for static hosting",
    )
    render_parser.add_argument(
        "-c", "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    render_parser.add_argument(
        "-o", "--output",
        default="dist",
        help="Directory to write assets into (default: dist)",
    )
    render_parser.add_argument(
        "--skip-shell",
        action="store_true",
        help="Do not write index.html",
    )
    render_parser.set_defaults(func=_cmd_render)

    check_parser = subparsers.add_parser(
        "check-config",
        help="Validate the configuration file",
    )
    check_parser.add_argument(
        "-c", "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    check_parser.set_defaults(func=_cmd_check_config)

    precache_parser = subparsers.add_parser(
        "precache-check",
        help="Verify the app origin serves every precache entry",
    )
    precache_parser.add_argument(
        "-c", "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    precache_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    precache_parser.set_defaults(func=_cmd_precache_check)

    args = parser.parse_args()

    # Default to 'run' if no command specified
    if args.command is None:
        args.config = "config.yaml"
        args.verbose = False
        args.func = _cmd_run

    args.func(args)
