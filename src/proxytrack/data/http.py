"""Async HTTP access shared by the source adapters.

Wraps one aiohttp session and translates transport failures into the
``DataSourceError`` taxonomy so adapters only deal with decoded payloads.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping

import aiohttp

from proxytrack.exceptions import (DataSourceError, MalformedResponseError,
                                   NotFoundError, UnauthorizedError,
                                   UnavailableError)

logger = logging.getLogger(__name__)


def error_for_status(status: int, url: str, source: str | None = None) -> DataSourceError | None:
    """Map an HTTP status to the matching source error, None on success.

    :param status: HTTP status code.
    :param url: Requested URL, used in the message.
    :param source: Source name attached to the error.
    :returns: Error instance to raise, or None for 2xx statuses.
    """
    if 200 <= status < 300:
        return None
    if status in (401, 403):
        return UnauthorizedError(f"{url} rejected credentials (HTTP {status})", source)
    if status == 404:
        return NotFoundError(f"{url} not found (HTTP {status})", source)
    if status == 429:
        return UnavailableError(f"{url} rate limited the request (HTTP 429)", source)
    return UnavailableError(f"{url} failed with HTTP {status}", source)


class HttpClient:
    """Thin wrapper around an aiohttp session.

    The session is created lazily on first use and must be released with
    :meth:`close` (or by using the client as an async context manager).

    :param timeout: Total timeout per request, in seconds.
    :param user_agent: User-Agent header sent with every request.
    :param session: Existing session to reuse; the client will not close it.
    """

    def __init__(
        self,
        timeout: float = 20.0,
        user_agent: str | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {"User-Agent": self.user_agent} if self.user_agent else None
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=headers,
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get_text(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        source: str | None = None,
    ) -> str:
        """GET ``url`` and return the response body as text.

        :raises DataSourceError: On non-success status or network failure.
        """
        session = self._get_session()
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}
        logger.debug("GET %s %s", url, {k: v for k, v in query.items() if k != "api_key"})
        try:
            async with session.get(url, params=query) as resp:
                error = error_for_status(resp.status, url, source)
                if error is not None:
                    raise error
                return await resp.text()
        except asyncio.TimeoutError as e:
            raise UnavailableError(f"{url} timed out after {self.timeout}s", source) from e
        except aiohttp.ClientError as e:
            raise UnavailableError(f"Request to {url} failed: {e}", source) from e

    async def get_json(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        source: str | None = None,
    ) -> Any:
        """GET ``url`` and decode the body as JSON.

        :raises MalformedResponseError: If the body is not valid JSON.
        :raises DataSourceError: On non-success status or network failure.
        """
        text = await self.get_text(url, params=params, source=source)
        try:
            return json.loads(text)
        except ValueError as e:
            raise MalformedResponseError(f"{url} returned invalid JSON: {e}", source) from e
