"""Shared fixtures for the proxy pipeline tests."""

from datetime import date, datetime, timezone
from typing import Any

import pytest

from proxytrack.exceptions import NotFoundError
from proxytrack.types import (Baseline, DateRange, ProxyDescriptor, ProxyKind,
                              SamplingPolicy)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class FakeClient:
    """Stand-in for HttpClient that answers from a URL-keyed table.

    A response may be a payload, an exception instance to raise, or a
    callable taking the query params and returning either.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def _respond(self, url: str, params: Any, source: str | None) -> Any:
        self.calls.append((url, dict(params or {})))
        if url not in self.responses:
            raise NotFoundError(f"no fake response for {url}", source)
        response = self.responses[url]
        if callable(response):
            response = response(dict(params or {}))
        if isinstance(response, Exception):
            raise response
        return response

    async def get_json(self, url: str, params: Any = None, source: str | None = None) -> Any:
        return self._respond(url, params, source)

    async def get_text(self, url: str, params: Any = None, source: str | None = None) -> str:
        return self._respond(url, params, source)

    async def close(self) -> None:
        self.closed = True

    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


def make_descriptor(
    kind: ProxyKind,
    identifier: str,
    baseline: float = 100.0,
    proxy_id: str = "proxy",
    transform: str | None = None,
) -> ProxyDescriptor:
    return ProxyDescriptor(
        id=proxy_id,
        name=identifier or proxy_id,
        kind=kind,
        identifier=identifier,
        transform=transform,
        baseline=Baseline(value=baseline, date=date(2026, 1, 2)),
    )


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return NOW


@pytest.fixture
def date_range() -> DateRange:
    """Ten-day range ending at the reference time."""
    return DateRange(start=datetime(2026, 3, 5, 12, 0, tzinfo=timezone.utc), end=NOW)


@pytest.fixture
def daily_policy() -> SamplingPolicy:
    """Daily sampling policy."""
    return SamplingPolicy(interval="1d", point_count=11)
