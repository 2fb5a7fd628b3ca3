"""Economic indicator series from FRED.

Two wire formats are supported:

- ``json``: the authenticated observations API, ``{"observations": [{"date",
  "value"}, ...]}``. Requires an API key.
- ``csv``: the public graph CSV (``DATE,VALUE`` rows after a header). No key.

Both mark missing observations with the sentinel ``"."``.
"""

from __future__ import annotations

import csv
import io
import logging
from datetime import datetime, timezone
from typing import Any

from proxytrack.data.base import DataSource, in_range, parse_number
from proxytrack.exceptions import (DataValidationError, MalformedResponseError,
                                   UnauthorizedError)
from proxytrack.timeframes import format_date_for_api
from proxytrack.types import DataPoint, DateRange, SamplingPolicy

logger = logging.getLogger(__name__)

MISSING_VALUE = "."


def _parse_day(text: str) -> datetime | None:
    try:
        return datetime.strptime(text.strip(), "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def parse_observations(rows: list[tuple[str, str]]) -> list[DataPoint]:
    """Turn ``(date, value)`` string rows into DataPoints.

    Rows holding the missing-value sentinel, an unparseable value or an
    unparseable date are dropped.
    """
    points: list[DataPoint] = []
    for raw_date, raw_value in rows:
        if raw_value is None or raw_value.strip() == MISSING_VALUE:
            continue
        value = parse_number(raw_value)
        day = _parse_day(raw_date) if raw_date else None
        if value is None or day is None:
            continue
        points.append(DataPoint(timestamp=day, value=value))
    return points


class EconomicSeriesSource(DataSource):
    """Observations of an economic series keyed by its series code.

    :param client: HTTP client.
    :param observations_url: JSON observations endpoint.
    :param csv_url: Public CSV endpoint.
    :param api_key: Credential for the JSON endpoint.
    :param wire_format: "json" or "csv".
    """

    name = "economic-series"

    def __init__(
        self,
        client: Any,
        observations_url: str,
        csv_url: str,
        api_key: str | None = None,
        wire_format: str = "json",
    ) -> None:
        super().__init__(client)
        self.observations_url = observations_url
        self.csv_url = csv_url
        self.api_key = api_key
        self.wire_format = wire_format

    async def fetch(
        self,
        identifier: str,
        date_range: DateRange,
        policy: SamplingPolicy,
        *,
        transform: str | None = None,
    ) -> list[DataPoint]:
        """Fetch observations between the range bounds.

        :param transform: Units transform such as "pc1" (percent change from a
            year ago).
        :raises UnauthorizedError: If the JSON format is used without a key.
        :raises MalformedResponseError: If the payload has no observations.
        :raises DataSourceError: On non-success status or network failure.
        """
        series = identifier.strip().upper()
        if not series:
            raise DataValidationError("EconomicSeriesSource requires a series code")

        if self.wire_format == "csv":
            rows = await self._fetch_csv(series, date_range, transform)
        else:
            rows = await self._fetch_json(series, date_range, transform)

        # Observations are dated at midnight, so keep the whole first day
        day_range = date_range.model_copy(
            update={"start": date_range.start.replace(hour=0, minute=0, second=0, microsecond=0)}
        )
        points = in_range(parse_observations(rows), day_range)
        logger.debug("%s: %d of %d observations usable", series, len(points), len(rows))
        return points

    async def _fetch_json(
        self, series: str, date_range: DateRange, transform: str | None
    ) -> list[tuple[str, str]]:
        if not self.api_key:
            raise UnauthorizedError("No FRED API key configured", self.name)

        params = {
            "series_id": series,
            "api_key": self.api_key,
            "file_type": "json",
            "observation_start": format_date_for_api(date_range.start),
            "observation_end": format_date_for_api(date_range.end),
            "units": transform,
        }
        payload = await self.client.get_json(self.observations_url, params=params, source=self.name)

        observations = payload.get("observations") if isinstance(payload, dict) else None
        if not isinstance(observations, list):
            raise MalformedResponseError(f"No observations array for series {series}", self.name)

        rows: list[tuple[str, str]] = []
        for obs in observations:
            if not isinstance(obs, dict):
                raise MalformedResponseError(f"Unexpected observation for {series}: {obs!r}", self.name)
            rows.append((str(obs.get("date") or ""), str(obs.get("value", MISSING_VALUE))))
        return rows

    async def _fetch_csv(
        self, series: str, date_range: DateRange, transform: str | None
    ) -> list[tuple[str, str]]:
        params = {
            "id": series,
            "cosd": format_date_for_api(date_range.start),
            "coed": format_date_for_api(date_range.end),
            "transformation": transform,
        }
        text = await self.client.get_text(self.csv_url, params=params, source=self.name)
        return self.parse_csv(text, series)

    @classmethod
    def parse_csv(cls, text: str, series: str) -> list[tuple[str, str]]:
        """Split a two-column CSV body into ``(date, value)`` rows, skipping the header."""
        reader = csv.reader(io.StringIO(text.strip()))
        try:
            header = next(reader)
        except StopIteration as e:
            raise MalformedResponseError(f"Empty CSV body for series {series}", cls.name) from e
        if len(header) < 2:
            raise MalformedResponseError(f"Unexpected CSV header for {series}: {header}", cls.name)

        return [(row[0], row[1]) for row in reader if len(row) >= 2]
