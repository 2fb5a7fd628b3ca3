"""Source adapter contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from proxytrack.types import DataPoint, DateRange, SamplingPolicy

if TYPE_CHECKING:
    from proxytrack.data.http import HttpClient


class DataSource(ABC):
    """Abstract base class for numeric proxy sources.

    All source implementations must inherit from this class and implement the
    `fetch` method.

    :param client: HTTP client used for every request.
    """

    #: Name used in log lines, errors and cache keys.
    name: str = "source"

    def __init__(self, client: HttpClient) -> None:
        self.client = client

    @abstractmethod
    async def fetch(
        self,
        identifier: str,
        date_range: DateRange,
        policy: SamplingPolicy,
        *,
        transform: str | None = None,
    ) -> list[DataPoint]:
        """Fetch observations for one identifier.

        :param identifier: Ticker, series code or market slug.
        :param date_range: Resolved range for the requested timeframe.
        :param policy: Sampling policy for the requested timeframe.
        :param transform: Optional source-specific transform.
        :returns: DataPoints in ascending timestamp order.
        :raises DataSourceError: If fetching fails.
        """
        ...


def parse_number(raw: Any) -> float | None:
    """Parse an upstream value into a finite float, None when unusable."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return value


def in_range(points: list[DataPoint], date_range: DateRange) -> list[DataPoint]:
    """Keep points inside the range and sort them by timestamp."""
    kept = [p for p in points if date_range.contains(p.timestamp)]
    return sorted(kept, key=lambda p: p.timestamp)
