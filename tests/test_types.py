"""Tests for core type definitions."""

import math
from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from proxytrack.types import (Baseline, Catalog, DataPoint, DateRange,
                              NormalizedRow, Prediction, ProxyDescriptor,
                              ProxyKind, ProxySeries)

# ---------------------------------------------------------------------------
# DateRange
# ---------------------------------------------------------------------------


def test_date_range_rejects_inverted_bounds() -> None:
    """start after end is invalid."""
    with pytest.raises(ValidationError, match="start must not be after end"):
        DateRange(
            start=datetime(2026, 2, 1, tzinfo=timezone.utc),
            end=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )


def test_date_range_normalizes_to_utc() -> None:
    """Naive datetimes are read as UTC, aware ones are converted."""
    plus_two = timezone(timedelta(hours=2))
    dr = DateRange(start=datetime(2026, 1, 1), end=datetime(2026, 1, 2, 2, 0, tzinfo=plus_two))

    assert dr.start.tzinfo == timezone.utc
    assert dr.end == datetime(2026, 1, 2, 0, 0, tzinfo=timezone.utc)
    assert dr.days == 1.0


def test_date_range_contains_both_bounds() -> None:
    """contains() is inclusive at both ends."""
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    end = datetime(2026, 1, 10, tzinfo=timezone.utc)
    dr = DateRange(start=start, end=end)

    assert dr.contains(start)
    assert dr.contains(end)
    assert not dr.contains(end + timedelta(seconds=1))
    assert not dr.contains(start - timedelta(seconds=1))


# ---------------------------------------------------------------------------
# Series records
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_data_point_rejects_non_finite_values(bad: float) -> None:
    """NaN and infinities never enter a series."""
    with pytest.raises(ValidationError):
        DataPoint(timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc), value=bad)


def test_data_point_serializes_iso_timestamp() -> None:
    """JSON dumps carry an ISO-8601 UTC timestamp."""
    point = DataPoint(timestamp=datetime(2026, 1, 1, 9, 30), value=1.5)
    dumped = point.model_dump(mode="json")

    assert dumped["timestamp"].startswith("2026-01-01T09:30:00")
    assert dumped["timestamp"].endswith("Z") or dumped["timestamp"].endswith("+00:00")
    assert dumped["value"] == 1.5


def test_records_are_frozen() -> None:
    """Records cannot be mutated after construction."""
    row = NormalizedRow(date=date(2026, 1, 1), value=1.0)
    with pytest.raises(ValidationError):
        row.value = 2.0  # type: ignore[misc]


def test_proxy_series_request_key() -> None:
    """request_key identifies the descriptor and timeframe of a result."""
    series = ProxySeries(descriptor_id="amzn", kind=ProxyKind.EQUITY, timeframe="YTD", points=[])

    assert series.request_key == ("amzn", "YTD")
    assert series.is_synthetic is False
    assert series.rows == []


def test_proxy_kind_accepts_wire_values() -> None:
    """Descriptors parse kinds from their string values."""
    proxy = ProxyDescriptor(
        id="gdp",
        name="GDP",
        kind="economic-series",
        identifier="GDP",
        baseline={"value": 5, "date": "2026-01-01", "label": "5%"},
    )

    assert proxy.kind is ProxyKind.ECONOMIC_SERIES
    assert proxy.baseline == Baseline(value=5.0, date=date(2026, 1, 1), label="5%")


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


def test_catalog_iterates_proxies_with_predictions() -> None:
    """proxies() yields every descriptor alongside its prediction."""
    baseline = Baseline(value=1.0, date=date(2026, 1, 1))
    first = Prediction(
        id="p1",
        host_id="h",
        category_id="c1",
        prediction="one",
        proxies=[
            ProxyDescriptor(id="a", name="A", kind=ProxyKind.EQUITY, identifier="A", baseline=baseline),
            ProxyDescriptor(id="b", name="B", kind=ProxyKind.FUND, identifier="B", baseline=baseline),
        ],
    )
    second = Prediction(id="p2", host_id="h", category_id="c2", prediction="two")
    catalog = Catalog(predictions=[first, second])

    assert [(p.id, d.id) for p, d in catalog.proxies()] == [("p1", "a"), ("p1", "b")]
