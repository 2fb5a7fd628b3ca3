"""Proxy data facade.

``ProxyDataService`` is the single entry point callers use to turn a proxy
descriptor and a timeframe into a normalized series. It resolves the
timeframe, dispatches to the adapter for the descriptor's kind through the
cache, fetches benchmarks concurrently for equities and funds, and replaces
any failed live fetch with generated data flagged ``is_synthetic``.

Example:

    async with ProxyDataService.from_config("settings.yaml") as service:
        series = await service.get_series(descriptor, "YTD")

``from_config`` also applies the configured log level to the package logger.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Mapping, assert_never

from proxytrack import synthetic
from proxytrack.cache import SeriesCache
from proxytrack.config import Settings, load_settings
from proxytrack.data import DataSource, HttpClient, NewsSource, resolve_data_source
from proxytrack.exceptions import (DataSourceError, DataValidationError,
                                   NotFoundError)
from proxytrack.logging_utils import configure_logging
from proxytrack.normalize import benchmarks_enabled, merge
from proxytrack.timeframes import (parse_timeframe, resolve_range,
                                   resolve_sampling_policy)
from proxytrack.types import (DataPoint, DateRange, Headline, MarketTimeframe,
                              ProxyDescriptor, ProxyKind, ProxySeries,
                              SamplingPolicy, Timeframe)

logger = logging.getLogger(__name__)

# Cache token for headline lookups, which have no timeframe
_LATEST = "latest"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProxyDataService:
    """Fetch, normalize and cache proxy time series.

    :param settings: Pipeline settings, defaults to ``Settings()``.
    :param client: HTTP client shared by every adapter. When omitted the
        service creates one and closes it in ``close()``.
    :param cache: Result cache, defaults to a fresh ``SeriesCache``.
    :param now: Wall clock used to resolve timeframes, injectable for tests.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: HttpClient | None = None,
        cache: SeriesCache | None = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.settings = settings or Settings()
        self._owns_client = client is None
        self.client = client or HttpClient(
            timeout=self.settings.request_timeout,
            user_agent=self.settings.user_agent,
        )
        self.cache = cache if cache is not None else SeriesCache()
        self._now = now
        self._sources: dict[ProxyKind, DataSource] = {}
        self._news = NewsSource(self.client, self.settings.news_url)

    @classmethod
    def from_config(
        cls,
        config_path: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        log_file: str | Path | None = None,
    ) -> ProxyDataService:
        """Load settings, configure package logging and build a service.

        :param config_path: YAML settings file, or None for defaults.
        :param env: Environment overrides, defaults to ``os.environ``.
        :param log_file: Optional file that also receives log records.
        :raises ConfigError: If the settings cannot be loaded.
        """
        settings = load_settings(config_path, env)
        configure_logging(settings, log_file)
        return cls(settings)

    async def __aenter__(self) -> ProxyDataService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Wait for pending loads, then release the HTTP session if owned."""
        await self.cache.close()
        if self._owns_client:
            await self.client.close()

    def source_for(self, kind: ProxyKind) -> DataSource:
        """Adapter serving ``kind``, built on first use.

        :raises DataValidationError: For news proxies.
        """
        source = self._sources.get(kind)
        if source is None:
            source = resolve_data_source(kind, self.client, self.settings)
            self._sources[kind] = source
        return source

    async def get_series(
        self,
        descriptor: ProxyDescriptor,
        timeframe: str | Timeframe,
    ) -> ProxySeries:
        """Time series for one proxy over one timeframe.

        A live source failure never reaches the caller: the series is
        generated instead, anchored on the descriptor's baseline, and flagged
        ``is_synthetic``. Benchmarks that fail are left out of the rows.

        :param descriptor: Proxy to fetch.
        :param timeframe: Token from the kind's timeframe family.
        :returns: Points and calendar-day rows for the request.
        :raises DataValidationError: For news proxies, an empty identifier or
            a timeframe outside the kind's family.
        """
        if descriptor.kind is ProxyKind.NEWS:
            raise DataValidationError(
                f"Proxy '{descriptor.id}' is a news proxy; use get_headlines()"
            )
        identifier = descriptor.identifier.strip()
        if not identifier:
            raise DataValidationError(f"Proxy '{descriptor.id}' has no identifier")

        token = parse_timeframe(descriptor.kind, timeframe)
        now = self._now()
        date_range = resolve_range(token, now)
        policy = resolve_sampling_policy(token, now)

        benchmark_names: list[str] = []
        if benchmarks_enabled(descriptor, token, self.settings.benchmark_exclusions):
            benchmark_names = list(self.settings.benchmark_tickers)

        results = await asyncio.gather(
            self._primary(descriptor, identifier, token, date_range, policy),
            *(self._benchmark(name, token, date_range, policy) for name in benchmark_names),
        )
        (points, is_synthetic), benchmark_points = results[0], results[1:]

        benchmarks = {
            name: series
            for name, series in zip(benchmark_names, benchmark_points)
            if series
        }
        rows = merge(points, benchmarks)
        present = [name for name in benchmarks if any(name in row.benchmarks for row in rows)]

        return ProxySeries(
            descriptor_id=descriptor.id,
            kind=descriptor.kind,
            timeframe=token.value,
            points=points,
            is_synthetic=is_synthetic,
            rows=rows,
            benchmarks=present,
        )

    async def get_many(
        self,
        requests: Iterable[tuple[ProxyDescriptor, str | Timeframe]],
    ) -> list[ProxySeries]:
        """Run several ``get_series`` requests concurrently, preserving order."""
        return list(
            await asyncio.gather(*(self.get_series(d, tf) for d, tf in requests))
        )

    async def get_headlines(self, descriptor: ProxyDescriptor, limit: int = 8) -> list[Headline]:
        """Latest headlines for a news proxy.

        Source failures yield an empty list.

        :raises DataValidationError: For non-news proxies or an empty query.
        """
        if descriptor.kind is not ProxyKind.NEWS:
            raise DataValidationError(
                f"Proxy '{descriptor.id}' is not a news proxy; use get_series()"
            )
        query = descriptor.identifier.strip()
        if not query:
            raise DataValidationError(f"Proxy '{descriptor.id}' has no news query")

        key = (self._news.name, f"{query}|{limit}", _LATEST)
        try:
            return await self.cache.get_or_load(
                key,
                self.settings.ttl_for(self._news.name),
                lambda: self._news.fetch_headlines(query, limit),
            )
        except DataSourceError as e:
            logger.warning("headlines for '%s' unavailable: %s", query, e)
            return []

    async def _primary(
        self,
        descriptor: ProxyDescriptor,
        identifier: str,
        token: Timeframe,
        date_range: DateRange,
        policy: SamplingPolicy,
    ) -> tuple[list[DataPoint], bool]:
        try:
            points = await self._fetch_live(
                descriptor.kind, identifier, token, date_range, policy, descriptor.transform
            )
            return points, False
        except DataSourceError as e:
            logger.warning(
                "%s '%s' %s: %s; using synthetic data",
                descriptor.kind.value, identifier, token.value, e,
            )

        points = synthetic.generate(
            identifier,
            date_range,
            policy.point_count,
            style=synthetic.style_for(descriptor.kind),
            anchor=descriptor.baseline.value,
            seed=self.settings.synthetic_seed,
        )
        return points, True

    async def _benchmark(
        self,
        ticker: str,
        token: Timeframe,
        date_range: DateRange,
        policy: SamplingPolicy,
    ) -> list[DataPoint] | None:
        try:
            return await self._fetch_live(ProxyKind.EQUITY, ticker, token, date_range, policy)
        except DataSourceError as e:
            logger.info("benchmark %s omitted: %s", ticker, e)
            return None

    async def _fetch_live(
        self,
        kind: ProxyKind,
        identifier: str,
        token: Timeframe,
        date_range: DateRange,
        policy: SamplingPolicy,
        transform: str | None = None,
    ) -> list[DataPoint]:
        source = self.source_for(kind)
        cache_id = identifier if transform is None else f"{identifier}|{transform}"
        key = (source.name, cache_id, token.value)

        async def load() -> list[DataPoint]:
            points = await source.fetch(identifier, date_range, policy, transform=transform)
            if not points:
                raise NotFoundError(
                    f"No observations for '{identifier}' in {token.value}", source.name
                )
            return points

        return await self.cache.get_or_load(key, self._ttl(kind, token), load)

    def _ttl(self, kind: ProxyKind, token: Timeframe) -> float:
        if kind is ProxyKind.EQUITY or kind is ProxyKind.FUND:
            return self.settings.ttl_for("equity")
        elif kind is ProxyKind.ECONOMIC_SERIES:
            return self.settings.ttl_for("economic-series")
        elif kind is ProxyKind.PROBABILITY_MARKET:
            if token is MarketTimeframe.ONE_HOUR:
                return self.settings.ttl_for("probability-market-short")
            return self.settings.ttl_for("probability-market")
        elif kind is ProxyKind.NEWS:
            return self.settings.ttl_for("news")
        else:
            assert_never(kind)


__all__ = ["ProxyDataService"]
