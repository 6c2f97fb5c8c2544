"""
Banker configuration management.

Settings are loaded from several sources with a clear priority order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/banker.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The BankerConfig
dataclass provides typed access to all settings.

Usage:
    from coop_banker.config import config

    print(config.server.port)
    print(config.feed.profile_uuid)
    print(config.ledger.absolute_path)

Environment Variable Mapping:
    BANKER_HOST          -> server.host
    BANKER_PORT          -> server.port
    BANKER_FEED_URL      -> feed.api_url
    HYPIXEL_API_KEY      -> feed.api_key
    PROFILE_UUID         -> feed.profile_uuid
    BANKER_FEED_TIMEOUT  -> feed.timeout_seconds
    BANKER_POLL_MINUTES  -> feed.poll_interval_minutes
    BANKER_LEDGER_PATH   -> ledger.path
    BANKER_TIMEZONE      -> report.timezone
    BANKER_LOG_LEVEL     -> logging.level
"""

import configparser
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Config file paths
CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "banker.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "banker.example.ini"


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServerSettings:
    """Network server configuration."""

    host: str = "127.0.0.1"
    port: int = 7878


@dataclass
class FeedSettings:
    """Hypixel profile API access."""

    api_url: str = "https://api.hypixel.net/v2/skyblock/profile"
    api_key: str = ""
    profile_uuid: str = ""
    timeout_seconds: float = 10.0
    poll_interval_minutes: int = 10

    @property
    def is_configured(self) -> bool:
        """True when both credentials needed to poll the API are present."""
        return bool(self.api_key and self.profile_uuid)


@dataclass
class LedgerSettings:
    """Ledger file location."""

    path: str = "data/data.json"

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to the ledger file."""
        p = Path(self.path)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p


@dataclass
class ReportSettings:
    """Rendered report options."""

    recent_operations: int = 25
    timezone: str = "Europe/Paris"


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed"] = "detailed"


@dataclass
class BankerConfig:
    """
    Complete banker configuration.

    Aggregates all settings sections. Access via the module-level `config`
    singleton.
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    feed: FeedSettings = field(default_factory=FeedSettings)
    ledger: LedgerSettings = field(default_factory=LedgerSettings)
    report: ReportSettings = field(default_factory=ReportSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _load_from_ini(parser: configparser.ConfigParser, cfg: BankerConfig) -> None:
    """Load configuration from parsed INI file into BankerConfig."""
    # Server section
    if parser.has_section("server"):
        if parser.has_option("server", "host"):
            cfg.server.host = parser.get("server", "host")
        if parser.has_option("server", "port"):
            cfg.server.port = parser.getint("server", "port")

    # Feed section
    if parser.has_section("feed"):
        if parser.has_option("feed", "api_url"):
            cfg.feed.api_url = parser.get("feed", "api_url")
        if parser.has_option("feed", "api_key"):
            cfg.feed.api_key = parser.get("feed", "api_key")
        if parser.has_option("feed", "profile_uuid"):
            cfg.feed.profile_uuid = parser.get("feed", "profile_uuid")
        if parser.has_option("feed", "timeout_seconds"):
            cfg.feed.timeout_seconds = parser.getfloat("feed", "timeout_seconds")
        if parser.has_option("feed", "poll_interval_minutes"):
            cfg.feed.poll_interval_minutes = parser.getint("feed", "poll_interval_minutes")

    # Ledger section
    if parser.has_section("ledger"):
        if parser.has_option("ledger", "path"):
            cfg.ledger.path = parser.get("ledger", "path")

    # Report section
    if parser.has_section("report"):
        if parser.has_option("report", "recent_operations"):
            cfg.report.recent_operations = parser.getint("report", "recent_operations")
        if parser.has_option("report", "timezone"):
            cfg.report.timezone = parser.get("report", "timezone")

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: BankerConfig) -> None:
    """Apply environment variable overrides to configuration."""
    # Server settings
    if env_host := os.getenv("BANKER_HOST"):
        cfg.server.host = env_host
    if env_port := os.getenv("BANKER_PORT"):
        cfg.server.port = int(env_port)

    # Feed settings
    if env_url := os.getenv("BANKER_FEED_URL"):
        cfg.feed.api_url = env_url
    if env_key := os.getenv("HYPIXEL_API_KEY"):
        cfg.feed.api_key = env_key
    if env_profile := os.getenv("PROFILE_UUID"):
        cfg.feed.profile_uuid = env_profile
    if env_timeout := os.getenv("BANKER_FEED_TIMEOUT"):
        cfg.feed.timeout_seconds = float(env_timeout)
    if env_poll := os.getenv("BANKER_POLL_MINUTES"):
        cfg.feed.poll_interval_minutes = int(env_poll)

    # Ledger settings
    if env_ledger := os.getenv("BANKER_LEDGER_PATH"):
        cfg.ledger.path = env_ledger

    # Report settings
    if env_tz := os.getenv("BANKER_TIMEZONE"):
        cfg.report.timezone = env_tz

    # Logging settings
    if env_log := os.getenv("BANKER_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()


def load_config() -> BankerConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/banker.ini
        3. config/banker.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        BankerConfig: Fully populated configuration object.
    """
    cfg = BankerConfig()

    config_file = None
    if CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        config_file = CONFIG_EXAMPLE

    if config_file:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)

    return cfg


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

config = load_config()


# =============================================================================
# LOGGING
# =============================================================================

_LOG_FORMATS = {
    "simple": "%(levelname)s %(message)s",
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Install the root logging handler from the ``[logging]`` settings.

    Called once by the CLI before any command runs.
    """
    settings = settings or config.logging
    logging.basicConfig(
        level=getattr(logging, settings.level, logging.INFO),
        format=_LOG_FORMATS[settings.format],
        force=True,
    )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_config_status() -> dict:
    """
    Get configuration status for diagnostics.

    The API key itself is never included.
    """
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "feed_configured": config.feed.is_configured,
        "ledger_path": str(config.ledger.absolute_path),
        "poll_interval_minutes": config.feed.poll_interval_minutes,
    }
