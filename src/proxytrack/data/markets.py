"""Prediction-market probabilities from the Polymarket APIs.

A market slug is resolved to a condition id through the gamma metadata API
(exact slug first, free-text search on the slug's words second), then the
price history is read from the CLOB API. Prices arrive as probabilities in
``[0, 1]`` and are returned as percentages.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from proxytrack import synthetic
from proxytrack.data.base import DataSource, in_range, parse_number
from proxytrack.exceptions import (DataSourceError, DataValidationError,
                                   MalformedResponseError, NotFoundError)
from proxytrack.types import DataPoint, DateRange, SamplingPolicy

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 5


def snapshot_price(market: dict[str, Any]) -> float | None:
    """Current "yes" price of a market in percent, None when absent.

    ``outcomePrices`` is usually a JSON-encoded string such as
    ``'["0.54", "0.46"]'`` but plain lists are accepted too.
    """
    raw = market.get("outcomePrices")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    if not isinstance(raw, list) or not raw:
        return None
    price = parse_number(raw[0])
    return None if price is None else price * 100


class ProbabilityMarketSource(DataSource):
    """Probability history for a prediction market slug.

    :param client: HTTP client.
    :param gamma_url: Market metadata API base.
    :param clob_url: Price history API base.
    :param trend_seed: Seed for the trend path used when history is empty.
    """

    name = "probability-market"

    def __init__(
        self,
        client: Any,
        gamma_url: str,
        clob_url: str,
        trend_seed: int | None = None,
    ) -> None:
        super().__init__(client)
        self.gamma_url = gamma_url.rstrip("/")
        self.clob_url = clob_url.rstrip("/")
        self.trend_seed = trend_seed

    async def fetch(
        self,
        identifier: str,
        date_range: DateRange,
        policy: SamplingPolicy,
        *,
        transform: str | None = None,
    ) -> list[DataPoint]:
        """Fetch the probability history of the market behind ``identifier``.

        Without history inside the range, or when the history request fails,
        a trend path converging on the market's current price is returned
        instead.

        :raises NotFoundError: If the slug cannot be resolved, or the market
            has neither history nor a current price.
        :raises DataSourceError: On transport or payload failures.
        """
        slug = identifier.strip()
        if not slug:
            raise DataValidationError("ProbabilityMarketSource requires a market slug")

        market = await self.resolve_market(slug)
        condition_id = market.get("conditionId")
        if not condition_id:
            raise MalformedResponseError(f"Market '{slug}' has no conditionId", self.name)

        try:
            history = await self.fetch_history(str(condition_id), policy)
        except DataSourceError as e:
            logger.info("%s: price history unavailable (%s)", slug, e)
            history = []
        points = in_range(history, date_range)
        if points:
            return points

        current = snapshot_price(market)
        if current is None:
            raise NotFoundError(f"Market '{slug}' has no price history or current price", self.name)

        logger.info("%s: no history in range, interpolating toward %.1f%%", slug, current)
        return synthetic.trend_toward(date_range, current, seed=self.trend_seed)

    async def resolve_market(self, slug: str) -> dict[str, Any]:
        """Find the market for ``slug``, preferring an exact slug match.

        :raises NotFoundError: If neither lookup returns a market.
        """
        try:
            market = await self.lookup_slug(slug)
        except DataSourceError as e:
            logger.info("%s: exact slug lookup failed (%s), trying text search", slug, e)
            market = None
        if market is None:
            market = await self.search_markets(slug.replace("-", " "))
        if market is None:
            raise NotFoundError(f"No market found for slug '{slug}'", self.name)
        return market

    async def lookup_slug(self, slug: str) -> dict[str, Any] | None:
        """Exact slug lookup; None when nothing matches."""
        payload = await self.client.get_json(
            f"{self.gamma_url}/markets", params={"slug": slug}, source=self.name
        )
        return self._first_market(payload)

    async def search_markets(self, text: str) -> dict[str, Any] | None:
        """Free-text search over open markets; None when nothing matches."""
        payload = await self.client.get_json(
            f"{self.gamma_url}/markets",
            params={"_limit": SEARCH_LIMIT, "closed": "false", "textSearch": text},
            source=self.name,
        )
        return self._first_market(payload)

    async def fetch_history(self, condition_id: str, policy: SamplingPolicy) -> list[DataPoint]:
        """Price history for a condition id, rescaled to percent."""
        payload = await self.client.get_json(
            f"{self.clob_url}/prices-history",
            params={
                "market": condition_id,
                "interval": policy.interval,
                "fidelity": policy.fidelity,
            },
            source=self.name,
        )
        return self.parse_history(payload)

    @classmethod
    def parse_history(cls, payload: Any) -> list[DataPoint]:
        """Decode ``{"history": [...]}`` or a bare list of ``{t, p}`` / ``[t, p]`` entries."""
        entries = payload.get("history") if isinstance(payload, dict) else payload
        if entries is None:
            return []
        if not isinstance(entries, list):
            raise MalformedResponseError("Price history is not a list", cls.name)

        points: list[DataPoint] = []
        for entry in entries:
            if isinstance(entry, dict):
                ts, price = entry.get("t"), entry.get("p")
            elif isinstance(entry, (list, tuple)) and len(entry) == 2:
                ts, price = entry
            else:
                raise MalformedResponseError(f"Unexpected history entry: {entry!r}", cls.name)

            seconds = parse_number(ts)
            probability = parse_number(price)
            if seconds is None or probability is None:
                continue
            points.append(
                DataPoint(
                    timestamp=datetime.fromtimestamp(seconds, tz=timezone.utc),
                    value=probability * 100,
                )
            )
        return points

    @staticmethod
    def _first_market(payload: Any) -> dict[str, Any] | None:
        if isinstance(payload, list) and payload and isinstance(payload[0], dict):
            return payload[0]
        return None
