"""Align a primary series with benchmarks on percentage-return scales.

Series are keyed by UTC calendar day. When a day holds several points the
last one wins. Returns are measured against each series' own first day.
"""

from __future__ import annotations

from typing import Iterable, Mapping

import pandas as pd

from proxytrack.types import (DataPoint, NormalizedRow, PriceTimeframe,
                              ProxyDescriptor, ProxyKind, Timeframe)

# Kinds that are compared against equity benchmarks
BENCHMARKED_KINDS = frozenset([ProxyKind.EQUITY, ProxyKind.FUND])


def daily_values(points: Iterable[DataPoint]) -> pd.Series:
    """Collapse points into one value per UTC day, ascending.

    :param points: Points in any order.
    :returns: Float series indexed by ``datetime.date``.
    """
    points = list(points)
    if not points:
        return pd.Series(dtype=float)

    frame = pd.DataFrame(
        {
            "timestamp": pd.to_datetime([p.timestamp for p in points], utc=True),
            "value": [p.value for p in points],
        }
    )
    frame = frame.sort_values("timestamp", kind="stable")
    frame["day"] = frame["timestamp"].dt.date
    return frame.groupby("day", sort=True)["value"].last()


def pct_returns(values: pd.Series) -> pd.Series | None:
    """Percent return of each day against the first day.

    :returns: Series aligned with ``values``, or None when the first value is
        zero (returns undefined) or the series is empty.
    """
    if values.empty:
        return None
    base = float(values.iloc[0])
    if base == 0:
        return None
    return (values - base) / base * 100


def merge(
    primary: Iterable[DataPoint],
    benchmarks: Mapping[str, Iterable[DataPoint]] | None = None,
) -> list[NormalizedRow]:
    """Merge-join a primary series with benchmark series by calendar day.

    Each row carries the primary value and its percent return. A benchmark's
    return is set on a row only when that benchmark has a point on the same
    day; nothing is interpolated or carried forward.

    :param primary: Primary series points, any order.
    :param benchmarks: Benchmark name to points, any order.
    :returns: One row per primary day, ascending.
    """
    values = daily_values(primary)
    if values.empty:
        return []

    frame = pd.DataFrame({"value": values})
    frame["pct_return"] = pct_returns(values)

    names: list[str] = []
    for name, points in (benchmarks or {}).items():
        returns = pct_returns(daily_values(points))
        if returns is None:
            continue
        frame[f"benchmark:{name}"] = returns.reindex(frame.index)
        names.append(name)

    rows: list[NormalizedRow] = []
    for day, record in frame.iterrows():
        pct = record["pct_return"]
        rows.append(
            NormalizedRow(
                date=day,
                value=float(record["value"]),
                pct_return=None if pd.isna(pct) else float(pct),
                benchmarks={
                    name: float(record[f"benchmark:{name}"])
                    for name in names
                    if not pd.isna(record[f"benchmark:{name}"])
                },
            )
        )
    return rows


def benchmarks_enabled(
    descriptor: ProxyDescriptor,
    timeframe: Timeframe,
    exclusions: Iterable[str] = (),
) -> bool:
    """Whether a proxy should be compared against benchmarks.

    Only equities and funds take part, never for the ALL timeframe, and never
    for excluded identifiers or futures contracts.
    """
    if descriptor.kind not in BENCHMARKED_KINDS:
        return False
    if timeframe is PriceTimeframe.ALL:
        return False
    ticker = descriptor.identifier.strip().upper()
    if ticker in {e.upper() for e in exclusions}:
        return False
    return "=F" not in ticker


__all__ = ["daily_values", "pct_returns", "merge", "benchmarks_enabled"]
