"""Core type definitions for the proxy pipeline.

All data models use Pydantic BaseModel for automatic validation, JSON
serialization, and better error messages. Records are frozen: they are built
per request and never mutated afterwards.
"""

from __future__ import annotations

from datetime import date as Date, datetime, timezone
from enum import Enum
from typing import Iterator, Union

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, field_validator, model_validator

# ---------------------------------------------------------------------------
# Base Configuration
# ---------------------------------------------------------------------------


class FrozenModel(BaseModel):
    """Base model with frozen (immutable) configuration."""

    model_config = ConfigDict(frozen=True)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Date/Time Types
# ---------------------------------------------------------------------------


class DateRange(FrozenModel):
    """Start and end of a time-bounded query, both timezone-aware UTC.

    :param start: Start of the range.
    :param end: End of the range, usually "now".
    """

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @model_validator(mode="after")
    def _ordered(self) -> DateRange:
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    @property
    def days(self) -> float:
        """Length of the range in (fractional) days."""
        return (self.end - self.start).total_seconds() / 86400

    def contains(self, moment: datetime) -> bool:
        """Whether ``moment`` falls inside the range.

        The end bound is treated as inclusive because it is "now" for every
        resolved range and the latest observation usually sits right on it.
        """
        return self.start <= moment <= self.end


class PriceTimeframe(str, Enum):
    """Timeframe tokens for equity, fund and economic series proxies."""

    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    SIX_MONTHS = "6M"
    YEAR_TO_DATE = "YTD"
    ONE_YEAR = "1Y"
    ALL = "ALL"


class MarketTimeframe(str, Enum):
    """Timeframe tokens for prediction-market proxies."""

    ONE_HOUR = "1H"
    SIX_HOURS = "6H"
    ONE_DAY = "1D"
    ONE_WEEK = "1W"
    ONE_MONTH = "1M"
    MAX = "MAX"


Timeframe = Union[PriceTimeframe, MarketTimeframe]


class SamplingPolicy(FrozenModel):
    """How densely a timeframe is sampled.

    :param interval: Sampling interval token (e.g. "1d", "1wk", "max").
    :param fidelity: Resolution in minutes, probability markets only.
    :param point_count: Target number of points for generated series.
    """

    interval: str
    fidelity: int | None = None
    point_count: int


# ---------------------------------------------------------------------------
# Series Types
# ---------------------------------------------------------------------------


class DataPoint(FrozenModel):
    """Single observation of a proxy.

    :param timestamp: Observation time, always timezone-aware UTC.
    :param value: Observed value, never NaN or infinite.
    """

    timestamp: datetime
    value: FiniteFloat

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class NormalizedRow(FrozenModel):
    """One calendar day of a primary series merged with its benchmarks.

    :param date: UTC calendar day.
    :param value: Primary series value on that day.
    :param pct_return: Percent return since the first day, None when undefined.
    :param benchmarks: Benchmark name to percent return, only for benchmarks
        that have a point on the same day.
    """

    date: Date
    value: float
    pct_return: float | None = None
    benchmarks: dict[str, float] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Proxy Types
# ---------------------------------------------------------------------------


class ProxyKind(str, Enum):
    """Kind of external quantity a proxy tracks."""

    EQUITY = "equity"
    FUND = "fund"
    ECONOMIC_SERIES = "economic-series"
    PROBABILITY_MARKET = "probability-market"
    NEWS = "news"


class Baseline(FrozenModel):
    """Reference value recorded when the prediction was made.

    :param value: Reference value, also the fallback generator's anchor.
    :param date: Date the reference was taken.
    :param label: Optional display label (e.g. "54%").
    """

    value: float
    date: Date
    label: str | None = None


class ProxyDescriptor(FrozenModel):
    """Immutable description of one trackable quantity.

    :param id: Identifier unique within the owning prediction.
    :param name: Display name.
    :param kind: Which source family serves this proxy.
    :param identifier: Ticker, series code, market slug or news query.
    :param transform: Economic series transform (e.g. "pc1"), if any.
    :param unit: Optional unit label.
    :param baseline: Reference value and date.
    :param title: Optional long title (market question, series name).
    :param url: Optional link to the upstream page.
    :param description: Optional free text.
    """

    id: str
    name: str
    kind: ProxyKind
    identifier: str = ""
    transform: str | None = None
    unit: str | None = None
    baseline: Baseline
    title: str | None = None
    url: str | None = None
    description: str | None = None


class ProxySeries(FrozenModel):
    """Result of a series request.

    :param descriptor_id: Id of the proxy the series belongs to.
    :param kind: Proxy kind.
    :param timeframe: Timeframe token the series was requested for.
    :param points: Primary series points, ascending by timestamp.
    :param is_synthetic: True when the points came from the fallback generator.
    :param rows: Calendar-day rows with percent returns and benchmarks.
    :param benchmarks: Names of benchmarks present in ``rows``.
    """

    descriptor_id: str
    kind: ProxyKind
    timeframe: str
    points: list[DataPoint]
    is_synthetic: bool = False
    rows: list[NormalizedRow] = Field(default_factory=list)
    benchmarks: list[str] = Field(default_factory=list)

    @property
    def request_key(self) -> tuple[str, str]:
        """Input parameters this result answers, for discarding stale results."""
        return (self.descriptor_id, self.timeframe)


class Headline(FrozenModel):
    """News headline for a news proxy.

    :param title: Headline text without the trailing source.
    :param link: Article URL.
    :param source: Publisher name, empty when unknown.
    :param published: Publication time, if parseable.
    """

    title: str
    link: str
    source: str = ""
    published: datetime | None = None


# ---------------------------------------------------------------------------
# Catalog Types
# ---------------------------------------------------------------------------


class Host(FrozenModel):
    """Person making predictions."""

    id: str
    name: str
    color: str | None = None


class Category(FrozenModel):
    """Group of predictions sharing a topic."""

    id: str
    title: str
    timestamp: str | None = None


class Prediction(FrozenModel):
    """A public prediction with its proxies."""

    id: str
    host_id: str
    category_id: str
    prediction: str
    rationale: str = ""
    proxies: list[ProxyDescriptor] = Field(default_factory=list)


class Catalog(FrozenModel):
    """Static dataset of hosts, categories and predictions."""

    hosts: list[Host] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    predictions: list[Prediction] = Field(default_factory=list)

    def proxies(self) -> Iterator[tuple[Prediction, ProxyDescriptor]]:
        """Iterate over every proxy together with its prediction."""
        for prediction in self.predictions:
            for proxy in prediction.proxies:
                yield prediction, proxy
