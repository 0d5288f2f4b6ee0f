"""Configuration loader with type-safe dataclasses."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .sync import DEFAULT_SYNC_TAGS


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


# Minimum seconds between update checks; browsers throttle faster polling anyway.
MIN_POLL_INTERVAL = 10

# Version value that derives the cache version from the page shell content.
AUTO_VERSION = "auto"


@dataclass(frozen=True)
class AppConfig:
    """Application identity shown in the manifest and page shell."""

    name: str = "Helpzy"
    short_name: str = "Helpzy"
    origin: str = "http://localhost:8080"  # same-origin responses are the only ones cached
    theme_color: str = "#4f46e5"

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigError("App name cannot be empty")
        if not self.short_name:
            raise ConfigError("App short_name cannot be empty")
        if not self.origin.startswith(("http://", "https://")):
            raise ConfigError(f"App origin must start with http:// or https://, got '{self.origin}'")


@dataclass(frozen=True)
class CacheConfig:
    """Configuration for the cache generation and precache manifest."""

    prefix: str = "helpzy"
    version: str = "v4"  # or "auto" to hash the page shell
    precache: tuple[str, ...] = ("/", "/index.html")
    skip_waiting_on_install: bool = True

    def __post_init__(self) -> None:
        if not self.prefix:
            raise ConfigError("Cache prefix cannot be empty")
        if not self.version:
            raise ConfigError("Cache version cannot be empty")
        for path in self.precache:
            if not path.startswith("/"):
                raise ConfigError(f"Precache entries must be absolute paths, got '{path}'")

    @property
    def is_auto_version(self) -> bool:
        return self.version == AUTO_VERSION

    def cache_name(self, version: str | None = None) -> str:
        """Return the generation name, e.g. "helpzy-v4"."""
        return f"{self.prefix}-{version or self.version}"


@dataclass(frozen=True)
class UpdatesConfig:
    """Configuration for the page-side update check."""

    poll_interval: int = 60

    def __post_init__(self) -> None:
        if self.poll_interval < MIN_POLL_INTERVAL:
            raise ConfigError(
                f"Update poll_interval must be at least {MIN_POLL_INTERVAL} seconds (got {self.poll_interval})"
            )


@dataclass(frozen=True)
class SyncConfig:
    """Background sync tags the agent replays."""

    tags: tuple[str, ...] = DEFAULT_SYNC_TAGS

    def __post_init__(self) -> None:
        for tag in self.tags:
            if not tag:
                raise ConfigError("Sync tags cannot be empty")


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for the origin server."""

    enabled: bool = True
    host: str = ""
    port: int = 8080
    static_dir: str | None = None  # built SPA assets served alongside the shell

    def __post_init__(self) -> None:
        if self.port < 1 or self.port > 65535:
            raise ConfigError(f"Server port must be between 1 and 65535, got {self.port}")
        if self.static_dir is not None and not Path(self.static_dir).is_dir():
            raise ConfigError(f"Static directory not found: {self.static_dir}")


@dataclass(frozen=True)
class NetworkConfig:
    """Configuration for network requests made by the agent."""

    timeout: int = 10

    def __post_init__(self) -> None:
        if self.timeout < 1:
            raise ConfigError(f"Network timeout must be at least 1 second, got {self.timeout}")


@dataclass(frozen=True)
class Config:
    """Main configuration container."""

    app: AppConfig = field(default_factory=AppConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    updates: UpdatesConfig = field(default_factory=UpdatesConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)


def _section(data: dict, name: str) -> dict | None:
    section = data.get(name)
    if section is not None and not isinstance(section, dict):
        raise ConfigError(f"'{name}' section must be a dictionary")
    return section


def _parse_str_list(value: object, name: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ConfigError(f"'{name}' must be a list")
    return tuple(str(item) for item in value)


def _parse_app_config(data: dict | None) -> AppConfig:
    """Parse app configuration section."""
    if data is None:
        return AppConfig()

    defaults = AppConfig()
    name = str(data.get("name", defaults.name))
    return AppConfig(
        name=name,
        short_name=str(data.get("short_name", name)),
        origin=str(data.get("origin", defaults.origin)).rstrip("/"),
        theme_color=str(data.get("theme_color", defaults.theme_color)),
    )


def _parse_cache_config(data: dict | None) -> CacheConfig:
    """Parse cache configuration section."""
    if data is None:
        return CacheConfig()

    defaults = CacheConfig()
    precache = data.get("precache")
    return CacheConfig(
        prefix=str(data.get("prefix", defaults.prefix)),
        version=str(data.get("version", defaults.version)),
        precache=_parse_str_list(precache, "cache.precache") if precache is not None else defaults.precache,
        skip_waiting_on_install=bool(data.get("skip_waiting_on_install", True)),
    )


def _parse_updates_config(data: dict | None) -> UpdatesConfig:
    """Parse updates configuration section."""
    if data is None:
        return UpdatesConfig()

    return UpdatesConfig(poll_interval=int(data.get("poll_interval", 60)))


def _parse_sync_config(data: dict | None) -> SyncConfig:
    """Parse sync configuration section."""
    if data is None:
        return SyncConfig()

    tags = data.get("tags")
    if tags is None:
        return SyncConfig()
    return SyncConfig(tags=_parse_str_list(tags, "sync.tags"))


def _parse_server_config(data: dict | None) -> ServerConfig:
    """Parse server configuration section."""
    if data is None:
        return ServerConfig()

    static_dir = data.get("static_dir")
    return ServerConfig(
        enabled=bool(data.get("enabled", True)),
        host=str(data.get("host", "")),
        port=int(data.get("port", 8080)),
        static_dir=str(static_dir) if static_dir is not None else None,
    )


def _parse_network_config(data: dict | None) -> NetworkConfig:
    """Parse network configuration section."""
    if data is None:
        return NetworkConfig()

    return NetworkConfig(timeout=int(data.get("timeout", 10)))


def _apply_env_overrides(config_data: dict) -> dict:
    """Apply environment variable overrides to configuration.

    Supported overrides:
    - HELPZY_APP_ORIGIN: Override app.origin
    - HELPZY_CACHE_VERSION: Override cache.version
    - HELPZY_UPDATE_POLL_INTERVAL: Override updates.poll_interval
    - HELPZY_SERVER_PORT: Override server.port
    - HELPZY_SERVER_ENABLED: Override server.enabled (true/false)
    - HELPZY_STATIC_DIR: Override server.static_dir
    """
    for section in ("app", "cache", "updates", "server"):
        if config_data.get(section) is None:
            config_data[section] = {}

    origin = os.environ.get("HELPZY_APP_ORIGIN")
    if origin is not None:
        config_data["app"]["origin"] = origin

    cache_version = os.environ.get("HELPZY_CACHE_VERSION")
    if cache_version is not None:
        config_data["cache"]["version"] = cache_version

    poll_interval = os.environ.get("HELPZY_UPDATE_POLL_INTERVAL")
    if poll_interval is not None:
        config_data["updates"]["poll_interval"] = int(poll_interval)

    server_port = os.environ.get("HELPZY_SERVER_PORT")
    if server_port is not None:
        config_data["server"]["port"] = int(server_port)

    server_enabled = os.environ.get("HELPZY_SERVER_ENABLED")
    if server_enabled is not None:
        config_data["server"]["enabled"] = server_enabled.lower() in ("true", "1", "yes")

    static_dir = os.environ.get("HELPZY_STATIC_DIR")
    if static_dir is not None:
        config_data["server"]["static_dir"] = static_dir

    return config_data


def load_config(config_path: str) -> Config:
    """Load and validate configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If the file cannot be read or configuration is invalid.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML configuration: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file: {e}")

    # An empty file means all defaults
    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a YAML dictionary")

    data = _apply_env_overrides(data)

    try:
        return Config(
            app=_parse_app_config(_section(data, "app")),
            cache=_parse_cache_config(_section(data, "cache")),
            updates=_parse_updates_config(_section(data, "updates")),
            sync=_parse_sync_config(_section(data, "sync")),
            server=_parse_server_config(_section(data, "server")),
            network=_parse_network_config(_section(data, "network")),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}")
