"""
Configuration management for Cadence
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class PlayerConfig:
    """Configuration for the playback session and the mpv device."""

    default_volume: float = 0.7
    unmute_volume: float = 0.5  # Used when unmuting with nothing remembered
    mpv_socket_path: Optional[str] = None
    poll_interval: float = 0.25  # Seconds between device status polls

    def validate(self) -> None:
        """Validate player configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        for name in ("default_volume", "unmute_volume"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")
        if self.unmute_volume == 0.0:
            raise ValueError("unmute_volume must be above 0.0")
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")


@dataclass
class CatalogConfig:
    """Configuration for the track catalog REST backend."""

    base_url: str = "http://localhost:4000/api"
    timeout: int = 30


@dataclass
class WebConfig:
    """Configuration for the control API."""

    host: str = "127.0.0.1"
    port: int = 8642
    allowed_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:5173"]
    )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/cadence/cadence.log)
    )
    max_file_size_mb: int = 10  # Maximum log file size before rotation
    backup_count: int = 5  # Number of backup files to keep
    console_output: bool = False  # Also output to console (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    player: PlayerConfig = field(default_factory=PlayerConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    web: WebConfig = field(default_factory=WebConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "cadence"
    return Path.home() / ".config" / "cadence"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Lets a development checkout pick up its own config file regardless of
    the working directory.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    try:
        current = Path(__file__).resolve().parent
        for parent in [current] + list(current.parents):
            if (parent / "pyproject.toml").exists():
                config_path = parent / "config.toml"
                if config_path.exists():
                    return config_path
                return None
    except OSError:
        pass
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/cadence (or ~/.config/cadence)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "cadence"
    return Path.home() / ".local" / "share" / "cadence"


def get_log_file_path(config: Config) -> Path:
    """Resolve the log file, honouring a custom [logging] log_file."""
    if config.logging.log_file:
        return Path(config.logging.log_file).expanduser()
    return get_data_dir() / "cadence.log"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Cadence Configuration

[player]
# Startup volume (0.0-1.0)
default_volume = 0.7

# Volume restored by unmute when nothing audible was remembered
unmute_volume = 0.5

# Path for mpv socket (auto-detected if not specified)
# mpv_socket_path = "/tmp/cadence-mpv-socket"

# Seconds between mpv status polls (position, duration, end of file)
poll_interval = 0.25

[catalog]
# REST backend serving songs, albums and playlists
base_url = "http://localhost:4000/api"

# HTTP timeout in seconds
timeout = 30

[web]
# Control API bind address
host = "127.0.0.1"
port = 8642

# Browser origins allowed to call the API
allowed_origins = ["http://localhost:5173"]

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/cadence/cadence.log)
# log_file = "/path/to/custom/cadence.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of backup log files to keep
backup_count = 5

# Also output logs to console (useful for debugging)
console_output = false
""".strip()


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - CADENCE_CATALOG_URL
    - ALLOWED_ORIGINS (comma separated)
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        return _apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)

        config = Config()

        if "player" in toml_data:
            player_data = toml_data["player"]
            config.player = PlayerConfig(
                default_volume=float(
                    player_data.get("default_volume", config.player.default_volume)
                ),
                unmute_volume=float(
                    player_data.get("unmute_volume", config.player.unmute_volume)
                ),
                mpv_socket_path=player_data.get("mpv_socket_path"),
                poll_interval=float(
                    player_data.get("poll_interval", config.player.poll_interval)
                ),
            )
            try:
                config.player.validate()
            except ValueError as e:
                print(f"Warning: Invalid player configuration: {e}")
                print("Using default player configuration.")
                config.player = PlayerConfig()

        if "catalog" in toml_data:
            catalog_data = toml_data["catalog"]
            config.catalog = CatalogConfig(
                base_url=catalog_data.get("base_url", config.catalog.base_url).rstrip(
                    "/"
                ),
                timeout=catalog_data.get("timeout", config.catalog.timeout),
            )

        if "web" in toml_data:
            web_data = toml_data["web"]
            config.web = WebConfig(
                host=web_data.get("host", config.web.host),
                port=web_data.get("port", config.web.port),
                allowed_origins=web_data.get(
                    "allowed_origins", config.web.allowed_origins
                ),
            )

        if "logging" in toml_data:
            logging_data = toml_data["logging"]
            log_file = logging_data.get("log_file")
            if log_file:
                log_file = str(Path(log_file).expanduser())
            config.logging = LoggingConfig(
                level=logging_data.get("level", config.logging.level).upper(),
                log_file=log_file,
                max_file_size_mb=logging_data.get(
                    "max_file_size_mb", config.logging.max_file_size_mb
                ),
                backup_count=logging_data.get(
                    "backup_count", config.logging.backup_count
                ),
                console_output=logging_data.get(
                    "console_output", config.logging.console_output
                ),
            )

        return _apply_env_overrides(config)

    except (tomllib.TOMLDecodeError, OSError, TypeError, ValueError) as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        return _apply_env_overrides(Config())


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides on top of file values."""
    catalog_url = os.environ.get("CADENCE_CATALOG_URL")
    if catalog_url:
        config.catalog.base_url = catalog_url.rstrip("/")

    allowed_origins = os.environ.get("ALLOWED_ORIGINS")
    if allowed_origins:
        config.web.allowed_origins = [
            origin.strip() for origin in allowed_origins.split(",") if origin.strip()
        ]

    return config

