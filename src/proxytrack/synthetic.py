"""Synthetic series used when a live source cannot be used.

Generated series are plausible-looking, not factual. The shape is seeded by
the proxy identifier so the same proxy redraws the same curve, but nothing
relies on bit-exact reproduction.

Two styles exist:

- ``price``: mean-reverting random walk with a slight upward bias. Each step
  is floored at 80% of the previous value, so values never reach zero.
  Series anchored at zero or below (rates, percent changes) walk additively
  around the anchor instead and carry no floor.
- ``probability``: mean-reverting random walk in percentage points, clipped
  to ``[5, 95]``.
"""

from __future__ import annotations

import hashlib
from enum import Enum

import numpy as np

from proxytrack.timeframes import evenly_spaced
from proxytrack.types import DataPoint, DateRange, ProxyKind

PROBABILITY_FLOOR = 5.0
PROBABILITY_CEILING = 95.0

DEFAULT_PRICE = 100.0
DEFAULT_PROBABILITY = 50.0

# Pull back toward the starting level per step
REVERSION = 0.02

# Approximate recent levels for tickers tracked by the catalog
REFERENCE_PRICES: dict[str, float] = {
    "AMZN": 220.0,
    "SAP": 250.0,
    "ORCL": 170.0,
    "CRM": 340.0,
    "MSFT": 420.0,
    "TSLA": 410.0,
    "HOOD": 40.0,
    "NFLX": 870.0,
    "COIN": 260.0,
    "QQQ": 525.0,
    "REMX": 38.0,
    "HG=F": 4.25,
    "BZ=F": 76.0,
    "DX-Y.NYB": 108.0,
    "SPY": 590.0,
}

# Probabilities (percent) for tracked prediction-market slugs
REFERENCE_PROBABILITIES: dict[str, float] = {
    "will-the-democratic-party-control-the-house-after-the-2026-midterm-elections": 79.0,
    "will-jd-vance-win-the-2028-republican-presidential-nomination": 54.0,
    "will-jd-vance-win-the-2028-us-presidential-election": 29.0,
    "russia-x-ukraine-ceasefire-before-2027": 50.0,
    "will-china-invade-taiwan-before-2027": 5.0,
    "khamenei-out-as-supreme-leader-of-iran-by-march-31": 44.0,
    "will-the-iranian-regime-fall-by-january-31": 16.0,
    "spacex-space-exploration-technologies-corp-ipo-before-2027": 15.0,
    "stripe-ipo-before-2027": 25.0,
}


class SeriesStyle(str, Enum):
    """Value domain of a generated series."""

    PRICE = "price"
    PROBABILITY = "probability"


def style_for(kind: ProxyKind) -> SeriesStyle:
    """Generated series style for a proxy kind."""
    if kind is ProxyKind.PROBABILITY_MARKET:
        return SeriesStyle.PROBABILITY
    return SeriesStyle.PRICE


def seed_for(identifier: str) -> int:
    """Stable 32-bit seed derived from an identifier."""
    return int(hashlib.md5(identifier.encode()).hexdigest()[:8], 16)


def _clip_probability(value: float) -> float:
    return min(PROBABILITY_CEILING, max(PROBABILITY_FLOOR, value))


def _starting_value(identifier: str, style: SeriesStyle, anchor: float | None) -> float:
    if style is SeriesStyle.PROBABILITY:
        start = REFERENCE_PROBABILITIES.get(identifier)
        if start is None:
            start = anchor if anchor is not None else DEFAULT_PROBABILITY
        return _clip_probability(start)

    start = REFERENCE_PRICES.get(identifier.upper())
    if start is None:
        start = anchor if anchor is not None else DEFAULT_PRICE
    return start


def _walk(start: float, draws: np.ndarray, style: SeriesStyle) -> list[float]:
    values: list[float] = []
    value = start
    # Non-positive levels step by a share of their magnitude, at least 1
    spread = max(abs(start), 1.0) * 0.05
    for u in draws:
        drift = REVERSION * (start - value)
        if style is SeriesStyle.PROBABILITY:
            value = _clip_probability(value + drift + (u - 0.5) * 4)
        elif start > 0:
            step = value + drift + (u - 0.48) * start * 0.02
            value = max(value * 0.8, step)
        else:
            value = value + drift + (u - 0.5) * spread
        values.append(value)
    return values


def _rebase(values: list[float], anchor: float, style: SeriesStyle) -> list[float]:
    last = values[-1]
    if style is SeriesStyle.PROBABILITY:
        shift = _clip_probability(anchor) - last
        return [_clip_probability(v + shift) for v in values]
    if anchor <= 0 or last <= 0:
        shift = anchor - last
        return [v + shift for v in values]
    scale = anchor / last
    return [v * scale for v in values]


def generate(
    identifier: str,
    date_range: DateRange,
    point_count: int,
    *,
    style: SeriesStyle = SeriesStyle.PRICE,
    anchor: float | None = None,
    seed: int | None = None,
) -> list[DataPoint]:
    """Generate an evenly spaced synthetic series across ``date_range``.

    :param identifier: Ticker, series code or slug; selects the reference
        level and, without an explicit seed, the random stream.
    :param date_range: Range to cover; first point at start, last at end.
    :param point_count: Number of points to produce (at least 1).
    :param style: Price or probability value domain.
    :param anchor: Known reference value; the final point is re-based onto it.
    :param seed: Explicit random seed.
    :returns: DataPoints in ascending timestamp order.
    """
    count = max(1, point_count)
    rng = np.random.default_rng(seed if seed is not None else seed_for(identifier))
    start = _starting_value(identifier, style, anchor)
    values = _walk(start, rng.random(count), style)
    if anchor is not None:
        values = _rebase(values, anchor, style)

    return [
        DataPoint(timestamp=ts, value=round(v, 2))
        for ts, v in zip(evenly_spaced(date_range, count), values)
    ]


def trend_toward(
    date_range: DateRange,
    current: float,
    *,
    points: int = 30,
    seed: int | None = None,
) -> list[DataPoint]:
    """Interpolate a probability path that converges on ``current``.

    Starts within 10 points of ``current``, closes 10% of the remaining gap
    per step with up to 1.5 points of jitter, stays inside ``[5, 95]`` and
    ends exactly on ``current``.

    :param date_range: Range to cover.
    :param current: Current market probability, in percent.
    :param points: Number of steps after the starting point.
    :param seed: Optional random seed.
    :returns: ``points + 1`` DataPoints.
    """
    rng = np.random.default_rng(seed)
    count = max(1, points) + 1
    value = current + (rng.random() - 0.5) * 20
    jitter = rng.random(count)

    values: list[float] = []
    for u in jitter:
        value = _clip_probability(value + (current - value) * 0.1 + (u - 0.5) * 3)
        values.append(round(value, 2))
    values[-1] = current

    return [
        DataPoint(timestamp=ts, value=v)
        for ts, v in zip(evenly_spaced(date_range, count), values)
    ]


__all__ = [
    "SeriesStyle",
    "REFERENCE_PRICES",
    "REFERENCE_PROBABILITIES",
    "style_for",
    "seed_for",
    "generate",
    "trend_toward",
]
