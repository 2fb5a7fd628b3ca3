"""Proxy time-series pipeline package root."""

from proxytrack.catalog import load_catalog
from proxytrack.config import Settings, load_settings
from proxytrack.exceptions import DataSourceError, ProxyTrackError
from proxytrack.logging_utils import configure_logging
from proxytrack.service import ProxyDataService

__all__ = [
    "ProxyDataService",
    "Settings",
    "load_settings",
    "load_catalog",
    "configure_logging",
    "ProxyTrackError",
    "DataSourceError",
]
