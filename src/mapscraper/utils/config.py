"""Configuration management system using Pydantic v2 and YAML.

This module provides type-safe configuration loading with validation
for mapscraper. Values come from an optional YAML file and are then
overridden by a small set of environment variables.
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .exceptions import ConfigFileNotFoundError, ConfigurationError


DEFAULT_CONFIG_PATH = Path("config") / "config.yaml"

_FALSE_VALUES = {"0", "false", "no", "off"}


class BrowserConfig(BaseModel):
    """Configuration for the Playwright browser session."""

    headless: bool = Field(default=True, description="Run browser in headless mode")
    slow_mo: int = Field(default=0, ge=0, description="Slow motion delay in ms (debugging)")
    timeout: int = Field(default=30, ge=5, description="Default page timeout in seconds")
    user_agent: Optional[str] = Field(default=None, description="User agent override")
    locale: str = Field(default="id-ID", description="Browser locale")
    viewport_width: int = Field(default=1366, ge=320)
    viewport_height: int = Field(default=900, ge=320)
    args: list[str] = Field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-accelerated-2d-canvas",
            "--disable-blink-features=AutomationControlled",
        ],
        description="Extra Chromium launch arguments",
    )


class SelectorConfig(BaseModel):
    """CSS selectors and attribute names for the map-search page."""

    feed: str = Field(default="[role='feed']", description="Scrollable result feed container")
    card: str = Field(default="a.hfpxzc", description="Clickable result entry inside the feed")
    panel: str = Field(
        default="div.bJzME.Hu9e2e.tTVLSc > div > div.e07Vkf.kA9KIf > div > div",
        description="Root of the detail panel opened by a card",
    )
    title: str = Field(default="h1", description="Title element inside the detail panel")
    item_button: str = Field(default="button[data-item-id]", description="Item buttons inside the detail panel")
    item_id_attribute: str = Field(default="data-item-id", description="Raw identifier attribute of an item button")
    item_label_attribute: str = Field(default="aria-label", description="Label attribute of an item button")
    consent_buttons: list[str] = Field(
        default_factory=lambda: [
            "button[aria-label='Accept all']",
            "button[aria-label='Terima semua']",
            "form[action*='consent'] button",
        ],
        description="Consent dialog buttons, tried in order",
    )


class ScraperConfig(BaseModel):
    """Configuration for the feed extraction pipeline."""

    base_url: str = Field(default="https://www.google.com/maps/search", description="Search base path")
    search_term: str = Field(default="Toko", description="Search phrase")
    area: str = Field(default="", description="Area qualifier appended to the search phrase in single mode")
    batch_mode: bool = Field(default=True, description="Iterate all positions instead of one coordinate")
    single_coordinate: str = Field(default="@-6.8890102,106.873541,13z", description="Coordinate used in single mode")
    positions_file: str = Field(default="./data/positions.json", description="Query points for batch mode")
    max_scroll_attempts: int = Field(default=5, ge=1, description="Scroll rounds per feed")
    scroll_delay: float = Field(default=1.5, ge=0.0, description="Base wait after a scroll round in seconds")
    scroll_backoff: float = Field(default=1.5, ge=1.0, description="Growth factor of the scroll wait per round")
    max_scroll_delay: float = Field(default=15.0, ge=0.0, description="Upper bound of the scroll wait")
    scroll_step: int = Field(default=400, ge=50, description="Pixels per scroll step")
    scroll_step_pause_ms: int = Field(default=120, ge=0, description="Pause between scroll steps")
    click_delay_range: list[float] = Field(default=[3.0, 6.0], description="Random pause after clicking a card")
    panel_timeout_ms: int = Field(default=5000, ge=0, description="Wait for the detail panel")
    load_timeout_ms: int = Field(default=5000, ge=0, description="Wait for network idle after navigation")
    feed_timeout_ms: int = Field(default=10000, ge=0, description="Wait for the result feed")

    @field_validator('click_delay_range')
    @classmethod
    def validate_click_delay_range(cls, v: list[float]) -> list[float]:
        """Ensure delay range has exactly 2 values with min <= max."""
        if len(v) != 2:
            raise ValueError("click_delay_range must contain exactly 2 values [min, max]")
        if v[0] > v[1]:
            raise ValueError("click_delay_range min must not exceed max")
        if v[0] < 0:
            raise ValueError("click_delay_range values must be non-negative")
        return v

    @field_validator('single_coordinate')
    @classmethod
    def validate_single_coordinate(cls, v: str) -> str:
        if not v.startswith('@'):
            raise ValueError("single_coordinate must look like '@lat,lng,zoomz'")
        return v


class StorageConfig(BaseModel):
    """Configuration for result persistence."""

    output_dir: str = Field(default="./data/results", description="Directory for per-point result files")
    export_csv: bool = Field(default=True, description="Also write a CSV file per point")
    skip_existing: bool = Field(default=False, description="Skip points whose JSON output already exists")


class AppConfig(BaseModel):
    """Root configuration model containing all sub-configurations."""

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    selectors: SelectorConfig = Field(default_factory=SelectorConfig)
    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Choose from: {valid_levels}")
        return v_upper

    @classmethod
    def from_yaml(cls, path: Path | str) -> "AppConfig":
        """Build a configuration from a YAML file without env overrides."""
        path = Path(path)
        if not path.exists():
            raise ConfigFileNotFoundError(path=str(path))
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                context={"path": str(path)},
            )
        return cls.model_validate(data)


def _as_bool(value: str, name: str) -> bool:
    return value.strip().lower() not in _FALSE_VALUES


def _as_int(value: str, name: str) -> int:
    try:
        return int(value.strip())
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be an integer", context={"value": value}
        ) from e


# env var -> (section, field, converter)
ENV_OVERRIDES = {
    "MAPSCRAPER_SEARCH": ("scraper", "search_term", lambda v, n: v),
    "MAPSCRAPER_BATCH": ("scraper", "batch_mode", _as_bool),
    "MAPSCRAPER_HEADLESS": ("browser", "headless", _as_bool),
    "MAPSCRAPER_MAX_SCROLLS": ("scraper", "max_scroll_attempts", _as_int),
    "LOG_LEVEL": (None, "log_level", lambda v, n: v),
}


def apply_env_overrides(config: AppConfig) -> AppConfig:
    """Return a copy of ``config`` with environment overrides applied.

    The result is re-validated, so an override such as
    ``MAPSCRAPER_MAX_SCROLLS=0`` fails the same way a bad YAML value would.
    """
    data = config.model_dump()
    for env_name, (section, field, convert) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None or raw == "":
            continue
        value = convert(raw, env_name)
        if section is None:
            data[field] = value
        else:
            data[section][field] = value
    return AppConfig.model_validate(data)


# Singleton pattern for configuration
_config: Optional[AppConfig] = None


def load_config(config_path: Optional[Path | str] = None) -> AppConfig:
    """Load and validate configuration.

    Resolution order for the file: explicit ``config_path``, then the
    MAPSCRAPER_CONFIG environment variable, then config/config.yaml in the
    working directory. An explicit or env-provided path must exist; the
    default path is optional and falls back to built-in defaults.

    Args:
        config_path: Path to configuration file

    Returns:
        Validated AppConfig instance with environment overrides applied

    Raises:
        ConfigFileNotFoundError: If an explicitly requested file doesn't exist
        ValueError: If configuration is invalid
    """
    if config_path is None:
        env_config_path = os.environ.get('MAPSCRAPER_CONFIG')
        config_path = Path(env_config_path) if env_config_path else None

    if config_path is not None:
        config = AppConfig.from_yaml(config_path)
    elif DEFAULT_CONFIG_PATH.exists():
        config = AppConfig.from_yaml(DEFAULT_CONFIG_PATH)
    else:
        config = AppConfig()

    return apply_env_overrides(config)


def get_config(config_path: Optional[Path | str] = None, reload: bool = False) -> AppConfig:
    """Get configuration instance (singleton pattern).

    Args:
        config_path: Path to configuration file (only used on first call or if reload=True)
        reload: Force reload of configuration

    Returns:
        Cached or newly loaded AppConfig instance
    """
    global _config

    if _config is None or reload:
        _config = load_config(config_path)

    return _config


def reset_config() -> None:
    """Reset cached configuration (useful for testing)."""
    global _config
    _config = None
