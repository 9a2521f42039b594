#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration System for SellerWatch
Handles YAML configuration loading, validation, and type conversion.

The configuration is loaded and validated once at startup and then passed
explicitly to the client and the aggregation engine.
"""

import copy
import os
import yaml
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .utils import end_of_day, parse_datetime


class ConfigError(Exception):
    """Configuration-related errors"""
    pass


VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_LABEL_GRANULARITIES = ["day", "timestamp"]


@dataclass
class ApiConfig:
    """Upstream marketplace API endpoints and transport settings"""
    base_url: str = ""
    users_path: str = "users"
    listings_path: str = "listings"
    payouts_path: str = "payouts"
    timeout: float = 30.0
    retry_attempts: int = 3
    retry_backoff: float = 2.0

    def __post_init__(self):
        """Validate endpoint configuration"""
        self.base_url = (self.base_url or "").strip().rstrip('/')
        if not self.base_url:
            raise ValueError("api.base_url cannot be empty")
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"api.base_url must start with http:// or https://, got '{self.base_url}'")
        for name in ("users_path", "listings_path", "payouts_path"):
            value = (getattr(self, name) or "").strip().strip('/')
            if not value:
                raise ValueError(f"api.{name} cannot be empty")
            setattr(self, name, value)
        if self.timeout <= 0:
            raise ValueError("api.timeout must be positive")
        if self.retry_attempts < 1:
            raise ValueError("api.retry_attempts must be >= 1")
        if self.retry_backoff < 0:
            raise ValueError("api.retry_backoff cannot be negative")


@dataclass
class FetchConfig:
    """Windowing and pagination limits imposed by the upstream"""
    page_size: int = 200
    max_span_days: int = 120
    listings_page_origin: int = 1
    payouts_page_origin: int = 0
    max_pages: int = 500
    concurrent_windows: bool = False

    def __post_init__(self):
        if self.page_size <= 0:
            raise ValueError("fetch.page_size must be positive")
        if self.max_span_days <= 0:
            raise ValueError("fetch.max_span_days must be positive")
        if self.listings_page_origin not in (0, 1) or self.payouts_page_origin not in (0, 1):
            raise ValueError("fetch page origins must be 0 or 1")
        if self.max_pages <= 0:
            raise ValueError("fetch.max_pages must be positive")


@dataclass
class DateRange:
    """Date range configuration for queries"""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    default_lookback_days: int = 120

    def __post_init__(self):
        """Validate date range"""
        if self.start and self.end and self.start > self.end:
            raise ValueError("Start date must not be after end date")
        if self.default_lookback_days <= 0:
            raise ValueError("default_lookback_days must be positive")

    def resolve(self, now: Optional[datetime] = None) -> "DateRange":
        """
        Fill missing bounds: end defaults to the end of today, start to
        end minus default_lookback_days.
        """
        now_dt = now if now is not None else datetime.now(timezone.utc)
        end = self.end if self.end is not None else end_of_day(now_dt)
        start = self.start
        if start is None:
            start = (end - timedelta(days=self.default_lookback_days)).replace(
                hour=0, minute=0, second=0, microsecond=0
            )
        return DateRange(start=start, end=end, default_lookback_days=self.default_lookback_days)


DEFAULT_THEMES: Dict[str, Dict[str, str]] = {
    "default": {"chart1": "#EC4899", "chart2": "#3B82F6"},
    "ebay": {"chart1": "#0064D2", "chart2": "#86B817"},
}


@dataclass
class ThemePalette:
    """Series colors for one theme"""
    name: str
    chart1: str
    chart2: str


@dataclass
class ChartConfig:
    """Chart derivation settings"""
    label_granularity: str = "day"
    theme: str = "default"
    themes: Dict[str, ThemePalette] = field(default_factory=dict)

    def __post_init__(self):
        if self.label_granularity not in VALID_LABEL_GRANULARITIES:
            raise ValueError(f"chart.label_granularity must be one of {VALID_LABEL_GRANULARITIES}")
        if not self.themes:
            self.themes = {
                name: ThemePalette(name=name, **colors) for name, colors in DEFAULT_THEMES.items()
            }
        self.themes = {key.lower().strip(): value for key, value in self.themes.items()}
        self.theme = (self.theme or "default").lower().strip()
        if self.theme not in self.themes:
            raise ValueError(f"chart.theme '{self.theme}' is not one of {sorted(self.themes)}")

    def palette(self, theme: Optional[str] = None) -> ThemePalette:
        """
        Get the palette for a theme (the configured theme when None)

        Raises:
            ConfigError: If the theme is unknown
        """
        key = (theme or self.theme).lower().strip()
        if key not in self.themes:
            raise ConfigError(f"Unknown theme '{theme}'. Available: {sorted(self.themes)}")
        return self.themes[key]


@dataclass
class OutputConfig:
    """Output configuration for chart payloads"""
    dir: str = "output"


@dataclass
class ClientConfig:
    """Main client configuration"""
    api: ApiConfig
    fetch: FetchConfig = field(default_factory=FetchConfig)
    date_range: DateRange = field(default_factory=DateRange)
    chart: ChartConfig = field(default_factory=ChartConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    entities: List[str] = field(default_factory=list)
    logging_level: str = "INFO"

    def __post_init__(self):
        """Validate main configuration"""
        cleaned = [str(e).strip() for e in (self.entities or [])]
        self.entities = [e for e in cleaned if e]

        if self.logging_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"logging_level must be one of: {VALID_LOG_LEVELS}")
        self.logging_level = self.logging_level.upper()


def _parse_config_datetime(value: Any, is_end: bool = False) -> Optional[datetime]:
    """
    Parse a configured date; date-only end bounds cover the whole day

    Raises:
        ConfigError: If datetime format is invalid
    """
    if value is None:
        return None
    try:
        parsed = parse_datetime(value)
    except ValueError as e:
        raise ConfigError(str(e))
    date_only = isinstance(value, str) and len(value.strip()) == 10
    if is_end and parsed is not None and (date_only or not isinstance(value, (str, datetime))):
        parsed = end_of_day(parsed)
    return parsed


def _load_raw_config(config_path: str) -> Dict[str, Any]:
    """
    Load raw configuration from YAML file

    Raises:
        ConfigError: If file cannot be loaded or parsed
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read {config_path}: {e}")

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Configuration must be a YAML mapping, got {type(raw_config)}")

    return raw_config


def _resolve_base_url(api_raw: Dict[str, Any]) -> str:
    """base_url wins; otherwise read the variable named by base_url_env."""
    base_url = str(api_raw.get("base_url") or "").strip()
    if base_url:
        return base_url
    env_key = str(api_raw.get("base_url_env") or "").strip()
    if not env_key:
        raise ConfigError("api.base_url or api.base_url_env must be set")
    env_val = os.getenv(env_key)
    if env_val is None or not env_val.strip():
        raise ConfigError(f"API base URL environment variable not set: {env_key}")
    return env_val.strip()


def _build_themes(themes_raw: Any) -> Dict[str, ThemePalette]:
    if themes_raw is None:
        return {}
    if not isinstance(themes_raw, dict):
        raise ConfigError("'chart.themes' must be a mapping")
    themes = {name: ThemePalette(name=name, **colors) for name, colors in DEFAULT_THEMES.items()}
    for name, colors in themes_raw.items():
        if not isinstance(colors, dict) or "chart1" not in colors or "chart2" not in colors:
            raise ConfigError(f"Theme '{name}' must define chart1 and chart2 colors")
        key = str(name).lower().strip()
        themes[key] = ThemePalette(name=key, chart1=str(colors["chart1"]), chart2=str(colors["chart2"]))
    return themes


def build_config_from_dict(config_dict: Dict[str, Any]) -> ClientConfig:
    """
    Build ClientConfig from dictionary

    Args:
        config_dict: Raw configuration dictionary (with a 'client' section)

    Returns:
        Validated ClientConfig instance

    Raises:
        ConfigError: If configuration is invalid
    """
    try:
        client_config = config_dict.get("client", {})
        if not isinstance(client_config, dict):
            raise ConfigError("'client' section must be a mapping")

        api_raw = client_config.get("api") or {}
        if not isinstance(api_raw, dict):
            raise ConfigError("'api' section must be a mapping")
        api_config = ApiConfig(
            base_url=_resolve_base_url(api_raw),
            users_path=api_raw.get("users_path", "users"),
            listings_path=api_raw.get("listings_path", "listings"),
            payouts_path=api_raw.get("payouts_path", "payouts"),
            timeout=float(api_raw.get("timeout", 30.0)),
            retry_attempts=int(api_raw.get("retry_attempts", 3)),
            retry_backoff=float(api_raw.get("retry_backoff", 2.0)),
        )

        fetch_raw = client_config.get("fetch") or {}
        fetch_config = FetchConfig(
            page_size=int(fetch_raw.get("page_size", 200)),
            max_span_days=int(fetch_raw.get("max_span_days", 120)),
            listings_page_origin=int(fetch_raw.get("listings_page_origin", 1)),
            payouts_page_origin=int(fetch_raw.get("payouts_page_origin", 0)),
            max_pages=int(fetch_raw.get("max_pages", 500)),
            concurrent_windows=bool(fetch_raw.get("concurrent_windows", False)),
        )

        date_range_raw = client_config.get("date_range") or {}
        date_range = DateRange(
            start=_parse_config_datetime(date_range_raw.get("start")),
            end=_parse_config_datetime(date_range_raw.get("end"), is_end=True),
            default_lookback_days=int(date_range_raw.get("default_lookback_days", 120)),
        )

        chart_raw = client_config.get("chart") or {}
        chart_config = ChartConfig(
            label_granularity=str(chart_raw.get("label_granularity", "day")).strip().lower(),
            theme=str(chart_raw.get("theme", "default")),
            themes=_build_themes(chart_raw.get("themes")),
        )

        output_raw = client_config.get("output") or {}
        output_config = OutputConfig(dir=str(output_raw.get("dir", "output")))

        entities = client_config.get("entities") or []
        if not isinstance(entities, list):
            raise ConfigError("'entities' must be a list")

        return ClientConfig(
            api=api_config,
            fetch=fetch_config,
            date_range=date_range,
            chart=chart_config,
            output=output_config,
            entities=entities,
            logging_level=str((client_config.get("logging") or {}).get("level", "INFO")),
        )

    except (ValueError, TypeError) as e:
        raise ConfigError(f"Configuration validation failed: {e}")


def load_client_config(config_path: str) -> ClientConfig:
    """
    Load and validate client configuration from YAML file

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated ClientConfig instance

    Raises:
        ConfigError: If configuration cannot be loaded or is invalid
    """
    raw_config = _load_raw_config(config_path)
    return build_config_from_dict(raw_config)


def apply_cli_overrides(config: ClientConfig, **overrides) -> ClientConfig:
    """
    Apply command-line overrides to configuration

    Args:
        config: Base configuration
        **overrides: start, end, entities, theme, output_dir, log_level

    Returns:
        Updated copy of the configuration

    Raises:
        ConfigError: If overrides are invalid
    """
    updated_config = copy.deepcopy(config)

    try:
        if overrides.get("start"):
            updated_config.date_range.start = _parse_config_datetime(overrides["start"])

        if overrides.get("end"):
            updated_config.date_range.end = _parse_config_datetime(overrides["end"], is_end=True)

        entities = overrides.get("entities")
        if entities:
            if isinstance(entities, str):
                entities = entities.split(",")
            updated_config.entities = [str(e).strip() for e in entities if str(e).strip()]

        if overrides.get("theme"):
            updated_config.chart.theme = str(overrides["theme"])

        if overrides.get("output_dir"):
            updated_config.output.dir = str(overrides["output_dir"])

        if overrides.get("log_level"):
            updated_config.logging_level = str(overrides["log_level"])

        # Re-validate after overrides
        updated_config.__post_init__()
        updated_config.date_range.__post_init__()
        updated_config.chart.__post_init__()

    except ValueError as e:
        raise ConfigError(f"Failed to apply CLI overrides: {e}")

    return updated_config
