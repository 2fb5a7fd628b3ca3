"""Equity and fund prices from the Yahoo chart API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from proxytrack.data.base import DataSource, in_range, parse_number
from proxytrack.exceptions import (DataValidationError, MalformedResponseError,
                                   NotFoundError)
from proxytrack.timeframes import EPOCH, equity_query_params
from proxytrack.types import DataPoint, DateRange, PriceTimeframe, SamplingPolicy

logger = logging.getLogger(__name__)

# Sampling policy interval to chart API interval
INTERVAL_MAP = {
    "1d": "1d",
    "1wk": "1wk",
    "1w": "1wk",
    "1mo": "1mo",
}

# Longest span (days) each look-back token covers, shortest first
_LOOKBACK_LIMITS = (
    (31, PriceTimeframe.ONE_MONTH),
    (92, PriceTimeframe.THREE_MONTHS),
    (184, PriceTimeframe.SIX_MONTHS),
    (366, PriceTimeframe.ONE_YEAR),
)


def timeframe_for(date_range: DateRange) -> PriceTimeframe:
    """Price token whose provider range covers ``date_range``.

    Ranges starting at the epoch or spanning more than a year are ALL, and
    ranges starting Jan 1 of the end year are YTD.
    """
    start, end = date_range.start, date_range.end
    if start <= EPOCH:
        return PriceTimeframe.ALL
    if start == datetime(end.year, 1, 1, tzinfo=timezone.utc):
        return PriceTimeframe.YEAR_TO_DATE
    days = date_range.days
    for limit, token in _LOOKBACK_LIMITS:
        if days <= limit:
            return token
    return PriceTimeframe.ALL


def range_token_for(date_range: DateRange) -> str:
    """Chart API range token covering ``date_range``, e.g. "ytd" or "max"."""
    period, _ = equity_query_params(timeframe_for(date_range))
    return period


class EquityPriceSource(DataSource):
    """Closing prices for a ticker.

    Accepts the raw chart envelope (``chart.result[0]`` with parallel
    ``timestamp`` and ``indicators.quote[0].close`` arrays) and the flattened
    ``[{"date", "value"}]`` list produced by the forwarding endpoint.

    :param client: HTTP client.
    :param chart_url: Chart endpoint; the ticker is appended as a path segment.
    """

    name = "equity"

    def __init__(self, client: Any, chart_url: str) -> None:
        super().__init__(client)
        self.chart_url = chart_url.rstrip("/")

    async def fetch(
        self,
        identifier: str,
        date_range: DateRange,
        policy: SamplingPolicy,
        *,
        transform: str | None = None,
    ) -> list[DataPoint]:
        """Fetch closing prices for ``identifier`` inside ``date_range``.

        :raises MalformedResponseError: If timestamp or close arrays are missing.
        :raises NotFoundError: If the provider reports an unknown ticker.
        :raises DataSourceError: On transport failures.
        """
        ticker = identifier.strip().upper()
        if not ticker:
            raise DataValidationError("EquityPriceSource requires a ticker")

        interval = INTERVAL_MAP.get(policy.interval, "1d")
        period = range_token_for(date_range)
        payload = await self.client.get_json(
            f"{self.chart_url}/{ticker}",
            params={"range": period, "interval": interval},
            source=self.name,
        )

        points = self.parse_payload(payload, ticker)
        kept = in_range(points, date_range)
        logger.debug(
            "%s: %d of %d points inside %s..%s",
            ticker, len(kept), len(points), date_range.start.date(), date_range.end.date(),
        )
        return kept

    @classmethod
    def parse_payload(cls, payload: Any, ticker: str) -> list[DataPoint]:
        """Normalize either response shape into DataPoints, dropping null closes."""
        if isinstance(payload, list):
            return cls._parse_flat(payload, ticker)
        if not isinstance(payload, dict):
            raise MalformedResponseError(
                f"Unexpected chart payload type for {ticker}: {type(payload).__name__}",
                cls.name,
            )

        chart = payload.get("chart")
        if not isinstance(chart, dict):
            raise MalformedResponseError(f"Chart payload for {ticker} has no 'chart' envelope", cls.name)

        results = chart.get("result")
        if not results:
            error = chart.get("error") or {}
            description = error.get("description") if isinstance(error, dict) else None
            raise NotFoundError(
                f"No chart data for {ticker}: {description or 'empty result'}", cls.name
            )

        result = results[0] if isinstance(results, list) else None
        if not isinstance(result, dict):
            raise MalformedResponseError(f"Chart result for {ticker} is not an object", cls.name)

        timestamps = result.get("timestamp")
        closes = None
        quotes = (result.get("indicators") or {}).get("quote")
        if isinstance(quotes, list) and quotes and isinstance(quotes[0], dict):
            closes = quotes[0].get("close")

        if not isinstance(timestamps, list) or not isinstance(closes, list):
            raise MalformedResponseError(
                f"Chart result for {ticker} is missing timestamp or close arrays", cls.name
            )

        points: list[DataPoint] = []
        for ts, close in zip(timestamps, closes):
            value = parse_number(close)
            if value is None or ts is None:
                continue
            points.append(
                DataPoint(timestamp=datetime.fromtimestamp(int(ts), tz=timezone.utc), value=value)
            )
        return points

    @classmethod
    def _parse_flat(cls, rows: list[Any], ticker: str) -> list[DataPoint]:
        points: list[DataPoint] = []
        for row in rows:
            if not isinstance(row, dict) or "date" not in row:
                raise MalformedResponseError(f"Unexpected row in price list for {ticker}: {row!r}", cls.name)
            value = parse_number(row.get("value"))
            if value is None:
                continue
            try:
                ts = datetime.fromisoformat(str(row["date"]).replace("Z", "+00:00"))
            except ValueError as e:
                raise MalformedResponseError(
                    f"Unparseable date '{row['date']}' for {ticker}", cls.name
                ) from e
            points.append(DataPoint(timestamp=ts, value=value))
        return points
