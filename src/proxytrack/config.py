"""Runtime settings for the proxy pipeline.

Example settings file (settings.yaml):

    economic_format: "json"
    fred_api_key: "abcdef0123456789"
    request_timeout: 15
    benchmark_tickers:
      - "SPY"
      - "QQQ"
    cache_ttl:
      equity: 3600
      economic-series: 86400
      probability-market: 300
    log_level: "INFO"

Environment variables override the file: ``FRED_API_KEY``,
``PROXYTRACK_ECONOMIC_FORMAT`` and ``PROXYTRACK_LOG_LEVEL``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import Field, ValidationError, field_validator

from proxytrack.exceptions import ConfigError
from proxytrack.types import FrozenModel

VALID_ECONOMIC_FORMATS = frozenset(["json", "csv"])

VALID_LOG_LEVELS = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])

# Commodities, currencies and metals never get equity benchmarks
DEFAULT_BENCHMARK_EXCLUSIONS = (
    "HG=F",
    "BZ=F",
    "CL=F",
    "DX-Y.NYB",
    "GLD",
    "SLV",
)

# Staleness windows in seconds, by source volatility
DEFAULT_CACHE_TTL = {
    "equity": 60 * 60,
    "economic-series": 24 * 60 * 60,
    "probability-market": 5 * 60,
    "probability-market-short": 60,
    "news": 5 * 60,
}

_ENV_OVERRIDES = {
    "FRED_API_KEY": "fred_api_key",
    "PROXYTRACK_ECONOMIC_FORMAT": "economic_format",
    "PROXYTRACK_LOG_LEVEL": "log_level",
}


class Settings(FrozenModel):
    """Source endpoints, credentials and pipeline policy.

    URLs default to the public upstream hosts; point them at same-origin
    forwarding endpoints where those are deployed.

    :param chart_url: Quote chart endpoint, the ticker is appended as a path segment.
    :param fred_observations_url: Economic series JSON observations endpoint.
    :param fred_csv_url: Economic series public CSV endpoint.
    :param economic_format: Which economic endpoint to use ("json" or "csv").
    :param fred_api_key: Credential for the JSON endpoint.
    :param gamma_url: Prediction market metadata API base.
    :param clob_url: Prediction market price-history API base.
    :param news_url: RSS search endpoint for news proxies.
    :param request_timeout: Total timeout per HTTP request, in seconds.
    :param user_agent: User-Agent header sent upstream.
    :param benchmark_tickers: Up to two tickers compared against equity proxies.
    :param benchmark_exclusions: Tickers that never get benchmarks.
    :param cache_ttl: Staleness window per source, in seconds.
    :param synthetic_seed: Fixed seed for generated series, None to seed by identifier.
    :param log_level: Level for the ``proxytrack`` logger.
    """

    chart_url: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    fred_observations_url: str = "https://api.stlouisfed.org/fred/series/observations"
    fred_csv_url: str = "https://fred.stlouisfed.org/graph/fredgraph.csv"
    economic_format: str = "json"
    fred_api_key: str | None = None
    gamma_url: str = "https://gamma-api.polymarket.com"
    clob_url: str = "https://clob.polymarket.com"
    news_url: str = "https://news.google.com/rss/search"
    request_timeout: float = 20.0
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    benchmark_tickers: list[str] = Field(default_factory=lambda: ["SPY", "QQQ"])
    benchmark_exclusions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BENCHMARK_EXCLUSIONS)
    )
    cache_ttl: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_CACHE_TTL))
    synthetic_seed: int | None = None
    log_level: str = "INFO"

    @field_validator("economic_format")
    @classmethod
    def _economic_format(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in VALID_ECONOMIC_FORMATS:
            raise ValueError(
                f"must be one of {sorted(VALID_ECONOMIC_FORMATS)}, got '{value}'"
            )
        return value

    @field_validator("fred_api_key")
    @classmethod
    def _blank_key_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("request_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("benchmark_tickers")
    @classmethod
    def _at_most_two(cls, value: list[str]) -> list[str]:
        tickers = [t.strip().upper() for t in value if t.strip()]
        if len(tickers) > 2:
            raise ValueError("at most two benchmark tickers are supported")
        return tickers

    @field_validator("cache_ttl")
    @classmethod
    def _merge_ttl_defaults(cls, value: dict[str, float]) -> dict[str, float]:
        for key, seconds in value.items():
            if seconds < 0:
                raise ValueError(f"TTL for '{key}' must be non-negative")
        return {**DEFAULT_CACHE_TTL, **value}

    @field_validator("log_level")
    @classmethod
    def _log_level(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in VALID_LOG_LEVELS:
            raise ValueError(f"must be one of {sorted(VALID_LOG_LEVELS)}")
        return value

    def ttl_for(self, source: str) -> float:
        """Staleness window for a cache source name, 0 when unknown."""
        return self.cache_ttl.get(source, 0.0)


def load_settings(
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Build settings from an optional YAML file and the environment.

    :param config_path: Path to a YAML settings file, or None for defaults.
    :param env: Environment mapping, defaults to ``os.environ``.
    :returns: Validated Settings object.
    :raises ConfigError: If the file cannot be read or a value is invalid.
    """
    raw_config: dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        try:
            with open(config_path) as f:
                loaded = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ConfigError(f"Configuration file not found: {config_path}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError("Configuration must be a YAML mapping")
        raw_config.update(loaded)

    unknown = sorted(set(raw_config) - set(Settings.model_fields))
    if unknown:
        raise ConfigError(f"Unknown settings: {unknown}")

    environ = os.environ if env is None else env
    for variable, field in _ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            raw_config[field] = value

    try:
        return Settings(**raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e


__all__ = [
    "Settings",
    "load_settings",
    "DEFAULT_CACHE_TTL",
    "DEFAULT_BENCHMARK_EXCLUSIONS",
]
