"""Tests for the equity price adapter."""

from datetime import datetime, timedelta, timezone

import pytest
from conftest import FakeClient

from proxytrack.data.equity import EquityPriceSource, range_token_for, timeframe_for
from proxytrack.exceptions import (DataValidationError, MalformedResponseError,
                                   NotFoundError)
from proxytrack.timeframes import (EPOCH, equity_query_params, resolve_range,
                                   resolve_sampling_policy)
from proxytrack.types import DateRange, PriceTimeframe, SamplingPolicy

CHART_URL = "https://chart.test/v8/finance/chart"


def _ts(day: int) -> int:
    return int(datetime(2026, 3, day, 21, 0, tzinfo=timezone.utc).timestamp())


def chart_payload(timestamps: list, closes: list) -> dict:
    return {
        "chart": {
            "result": [
                {
                    "meta": {"symbol": "AMZN"},
                    "timestamp": timestamps,
                    "indicators": {"quote": [{"close": closes}]},
                }
            ],
            "error": None,
        }
    }


class TestRangeToken:
    """Tests for range_token_for()."""

    def test_year_to_date(self) -> None:
        """A range starting Jan 1 of the end year maps to ytd."""
        dr = DateRange(
            start=datetime(2026, 1, 1, tzinfo=timezone.utc),
            end=datetime(2026, 8, 1, tzinfo=timezone.utc),
        )
        assert timeframe_for(dr) is PriceTimeframe.YEAR_TO_DATE
        assert range_token_for(dr) == "ytd"

    @pytest.mark.parametrize(
        "days, token",
        [(10, "1mo"), (31, "1mo"), (90, "3mo"), (181, "6mo"), (365, "1y"), (400, "max"), (800, "max")],
    )
    def test_smallest_covering_token(self, days: int, token: str) -> None:
        """The shortest provider range covering the span is used."""
        end = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
        dr = DateRange(start=end - timedelta(days=days), end=end)
        assert range_token_for(dr) == token

    @pytest.mark.parametrize("token", list(PriceTimeframe))
    def test_resolved_timeframes_round_trip(self, token: PriceTimeframe) -> None:
        """Each resolved price timeframe requests its own provider range."""
        now = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
        dr = resolve_range(token, now)

        assert range_token_for(dr) == equity_query_params(token)[0]

    def test_all_requests_max(self) -> None:
        """ALL starts at the epoch and asks the provider for its full history."""
        now = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
        dr = resolve_range(PriceTimeframe.ALL, now)

        assert dr.start == EPOCH
        assert range_token_for(dr) == "max"


class TestParsePayload:
    """Tests for EquityPriceSource.parse_payload()."""

    def test_chart_envelope(self) -> None:
        """Timestamps and closes are zipped into points."""
        points = EquityPriceSource.parse_payload(chart_payload([_ts(6), _ts(9)], [201.5, 203.25]), "AMZN")

        assert [p.value for p in points] == [201.5, 203.25]
        assert points[0].timestamp == datetime(2026, 3, 6, 21, 0, tzinfo=timezone.utc)

    def test_null_closes_are_dropped(self) -> None:
        """Holidays with null closes do not become zeros."""
        points = EquityPriceSource.parse_payload(
            chart_payload([_ts(6), _ts(9), _ts(10)], [201.5, None, 199.0]), "AMZN"
        )

        assert [p.value for p in points] == [201.5, 199.0]

    def test_flattened_rows(self) -> None:
        """The forwarding endpoint's flat list is accepted."""
        rows = [
            {"date": "2026-03-06T21:00:00.000Z", "value": 10.0},
            {"date": "2026-03-09T21:00:00+00:00", "value": None},
            {"date": "2026-03-10T21:00:00Z", "value": "11.5"},
        ]
        points = EquityPriceSource.parse_payload(rows, "AMZN")

        assert [p.value for p in points] == [10.0, 11.5]
        assert points[1].timestamp == datetime(2026, 3, 10, 21, 0, tzinfo=timezone.utc)

    def test_missing_close_array_is_malformed(self) -> None:
        """A result without quote closes is malformed."""
        payload = {"chart": {"result": [{"timestamp": [_ts(6)], "indicators": {}}]}}

        with pytest.raises(MalformedResponseError, match="missing timestamp or close"):
            EquityPriceSource.parse_payload(payload, "AMZN")

    def test_missing_envelope_is_malformed(self) -> None:
        """A payload without the chart envelope is malformed."""
        with pytest.raises(MalformedResponseError):
            EquityPriceSource.parse_payload({"quotes": []}, "AMZN")

    def test_chart_error_is_not_found(self) -> None:
        """An unknown ticker reported by the provider is NotFound."""
        payload = {
            "chart": {
                "result": None,
                "error": {"code": "Not Found", "description": "No data found, symbol may be delisted"},
            }
        }

        with pytest.raises(NotFoundError, match="symbol may be delisted"):
            EquityPriceSource.parse_payload(payload, "ZZZZ")


class TestFetch:
    """Tests for EquityPriceSource.fetch()."""

    @pytest.mark.asyncio
    async def test_fetch_filters_to_range_and_sorts(
        self, date_range: DateRange, daily_policy: SamplingPolicy
    ) -> None:
        """Points outside the range are dropped and the rest are sorted."""
        before = int(datetime(2026, 2, 1, tzinfo=timezone.utc).timestamp())
        client = FakeClient(
            {f"{CHART_URL}/AMZN": chart_payload([_ts(10), before, _ts(6)], [205.0, 150.0, 201.0])}
        )
        source = EquityPriceSource(client, CHART_URL)

        points = await source.fetch(" amzn ", date_range, daily_policy)

        assert [p.value for p in points] == [201.0, 205.0]
        url, params = client.calls[0]
        assert url == f"{CHART_URL}/AMZN"
        assert params == {"range": "1mo", "interval": "1d"}

    @pytest.mark.asyncio
    async def test_weekly_interval_is_forwarded(self, date_range: DateRange) -> None:
        """The policy's interval reaches the provider."""
        client = FakeClient({f"{CHART_URL}/SPY": chart_payload([], [])})
        source = EquityPriceSource(client, CHART_URL + "/")

        assert await source.fetch("SPY", date_range, SamplingPolicy(interval="1wk", point_count=5)) == []
        assert client.calls[0][1]["interval"] == "1wk"

    @pytest.mark.asyncio
    async def test_all_timeframe_requests_full_history(self, now: datetime) -> None:
        """ALL asks for the provider's full weekly history."""
        client = FakeClient({f"{CHART_URL}/SPY": chart_payload([_ts(6)], [590.0])})
        source = EquityPriceSource(client, CHART_URL)

        points = await source.fetch(
            "SPY",
            resolve_range(PriceTimeframe.ALL, now),
            resolve_sampling_policy(PriceTimeframe.ALL, now),
        )

        assert [p.value for p in points] == [590.0]
        assert client.calls[0][1] == {"range": "max", "interval": "1wk"}

    @pytest.mark.asyncio
    async def test_empty_ticker_is_rejected(
        self, date_range: DateRange, daily_policy: SamplingPolicy
    ) -> None:
        """An empty identifier is a caller error, not a source error."""
        source = EquityPriceSource(FakeClient(), CHART_URL)

        with pytest.raises(DataValidationError):
            await source.fetch("  ", date_range, daily_policy)
