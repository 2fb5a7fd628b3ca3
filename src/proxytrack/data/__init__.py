"""Source adapters for proxy data."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, assert_never

from proxytrack.data.base import DataSource
from proxytrack.data.economic import EconomicSeriesSource
from proxytrack.data.equity import EquityPriceSource
from proxytrack.data.http import HttpClient
from proxytrack.data.markets import ProbabilityMarketSource
from proxytrack.data.news import NewsSource
from proxytrack.exceptions import DataValidationError
from proxytrack.types import ProxyKind

if TYPE_CHECKING:
    from proxytrack.config import Settings


def resolve_data_source(kind: ProxyKind, client: Any, settings: Settings) -> DataSource:
    """Construct the numeric source adapter for a proxy kind.

    :param kind: Proxy kind to serve.
    :param client: HTTP client shared by the adapters.
    :param settings: Endpoint and credential settings.
    :returns: DataSource instance for the kind.
    :raises DataValidationError: For news proxies, which have no numeric series.
    """
    if kind is ProxyKind.EQUITY or kind is ProxyKind.FUND:
        return EquityPriceSource(client, settings.chart_url)
    elif kind is ProxyKind.ECONOMIC_SERIES:
        return EconomicSeriesSource(
            client,
            observations_url=settings.fred_observations_url,
            csv_url=settings.fred_csv_url,
            api_key=settings.fred_api_key,
            wire_format=settings.economic_format,
        )
    elif kind is ProxyKind.PROBABILITY_MARKET:
        return ProbabilityMarketSource(
            client,
            gamma_url=settings.gamma_url,
            clob_url=settings.clob_url,
            trend_seed=settings.synthetic_seed,
        )
    elif kind is ProxyKind.NEWS:
        raise DataValidationError(
            "News proxies have no numeric series; fetch headlines instead"
        )
    else:
        assert_never(kind)


__all__ = [
    "DataSource",
    "HttpClient",
    "EquityPriceSource",
    "EconomicSeriesSource",
    "ProbabilityMarketSource",
    "NewsSource",
    "resolve_data_source",
]
