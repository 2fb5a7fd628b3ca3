"""Timeframe tokens to date ranges and sampling policies.

Everything here is a table lookup plus date arithmetic. ``now`` is injectable
so callers and tests can pin the clock.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pandas as pd

from proxytrack.exceptions import DataValidationError
from proxytrack.types import (DateRange, MarketTimeframe, PriceTimeframe,
                              ProxyKind, SamplingPolicy, Timeframe)

# Start of "since this proxy matters" for ALL / MAX
EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)

# Calendar offsets for price tokens that simply look back from now
_PRICE_OFFSETS = {
    PriceTimeframe.ONE_MONTH: pd.DateOffset(months=1),
    PriceTimeframe.THREE_MONTHS: pd.DateOffset(months=3),
    PriceTimeframe.SIX_MONTHS: pd.DateOffset(months=6),
    PriceTimeframe.ONE_YEAR: pd.DateOffset(years=1),
}

_MARKET_OFFSETS = {
    MarketTimeframe.ONE_HOUR: pd.DateOffset(hours=1),
    MarketTimeframe.SIX_HOURS: pd.DateOffset(hours=6),
    MarketTimeframe.ONE_DAY: pd.DateOffset(days=1),
    MarketTimeframe.ONE_WEEK: pd.DateOffset(weeks=1),
    MarketTimeframe.ONE_MONTH: pd.DateOffset(months=1),
}

# (interval, fidelity in minutes, generated point count)
_MARKET_POLICIES = {
    MarketTimeframe.ONE_HOUR: ("1d", 1, 60),
    MarketTimeframe.SIX_HOURS: ("1d", 5, 72),
    MarketTimeframe.ONE_DAY: ("1d", 15, 96),
    MarketTimeframe.ONE_WEEK: ("1w", 60, 168),
    MarketTimeframe.ONE_MONTH: ("1m", 360, 120),
    MarketTimeframe.MAX: ("max", 1440, 200),
}

# Yahoo chart API range vocabulary
_EQUITY_RANGES = {
    PriceTimeframe.ONE_MONTH: "1mo",
    PriceTimeframe.THREE_MONTHS: "3mo",
    PriceTimeframe.SIX_MONTHS: "6mo",
    PriceTimeframe.YEAR_TO_DATE: "ytd",
    PriceTimeframe.ONE_YEAR: "1y",
    PriceTimeframe.ALL: "max",
}

# Roughly this many generated points for long price ranges
_PRICE_DENSITY_TARGET = 50


def _now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def _shift_back(now: datetime, offset: pd.DateOffset) -> datetime:
    return (pd.Timestamp(now) - offset).to_pydatetime()


def resolve_range(token: Timeframe, now: datetime | None = None) -> DateRange:
    """Map a timeframe token to a concrete date range ending now.

    :param token: Price or market timeframe token.
    :param now: Reference time, defaults to the current UTC time.
    :returns: DateRange with ``start <= end``.
    """
    end = _now(now)

    if isinstance(token, PriceTimeframe):
        if token is PriceTimeframe.YEAR_TO_DATE:
            start = datetime(end.year, 1, 1, tzinfo=timezone.utc)
        elif token is PriceTimeframe.ALL:
            start = EPOCH
        else:
            start = _shift_back(end, _PRICE_OFFSETS[token])
    elif isinstance(token, MarketTimeframe):
        if token is MarketTimeframe.MAX:
            start = EPOCH
        else:
            start = _shift_back(end, _MARKET_OFFSETS[token])
    else:
        raise DataValidationError(f"Unknown timeframe token: {token!r}")

    # A clock behind the epoch would otherwise produce an inverted range
    return DateRange(start=min(start, end), end=end)


def resolve_sampling_policy(
    token: Timeframe, now: datetime | None = None
) -> SamplingPolicy:
    """Map a timeframe token to its sampling interval and point density.

    :param token: Price or market timeframe token.
    :param now: Reference time used for span-dependent price densities.
    :returns: SamplingPolicy for the token.
    """
    if isinstance(token, MarketTimeframe):
        interval, fidelity, count = _MARKET_POLICIES[token]
        return SamplingPolicy(interval=interval, fidelity=fidelity, point_count=count)

    if not isinstance(token, PriceTimeframe):
        raise DataValidationError(f"Unknown timeframe token: {token!r}")

    _, interval = equity_query_params(token)
    days = max(1, int(resolve_range(token, now).days))
    step = max(1, days // _PRICE_DENSITY_TARGET)
    return SamplingPolicy(interval=interval, point_count=days // step + 1)


def equity_query_params(token: PriceTimeframe) -> tuple[str, str]:
    """Translate a price token into the quote provider's range and interval.

    Multi-year and one-year ranges are sampled weekly to cap payload size.

    :param token: Price timeframe token.
    :returns: Tuple of (range, interval), e.g. ("ytd", "1d").
    """
    period = _EQUITY_RANGES[token]
    interval = "1wk" if period in ("1y", "max") else "1d"
    return period, interval


def parse_timeframe(kind: ProxyKind, value: str | Timeframe) -> Timeframe:
    """Coerce a token into the timeframe family served by ``kind``.

    :param kind: Proxy kind the token is meant for.
    :param value: Token string or enum member.
    :returns: PriceTimeframe or MarketTimeframe.
    :raises DataValidationError: If the token is not valid for the kind.
    """
    family: type[PriceTimeframe] | type[MarketTimeframe]
    if kind is ProxyKind.PROBABILITY_MARKET:
        family = MarketTimeframe
    else:
        family = PriceTimeframe

    raw = value.value if isinstance(value, (PriceTimeframe, MarketTimeframe)) else value
    try:
        return family(str(raw).strip().upper())
    except ValueError as e:
        valid = [t.value for t in family]
        raise DataValidationError(
            f"Invalid timeframe '{raw}' for {kind.value} proxies. Valid options: {valid}"
        ) from e


def format_date_for_api(moment: datetime) -> str:
    """Format a datetime as the YYYY-MM-DD string upstream APIs expect."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%d")


def evenly_spaced(date_range: DateRange, count: int) -> list[datetime]:
    """Return ``count`` timestamps spread evenly from start to end inclusive."""
    if count <= 1:
        return [date_range.end]
    step = (date_range.end - date_range.start) / (count - 1)
    return [date_range.start + step * i for i in range(count - 1)] + [date_range.end]


__all__ = [
    "EPOCH",
    "resolve_range",
    "resolve_sampling_policy",
    "equity_query_params",
    "parse_timeframe",
    "format_date_for_api",
    "evenly_spaced",
]

