"""News headlines for news proxies from an RSS search feed.

News proxies have no numeric series; the service routes them here instead of
through the numeric pipeline.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from email.utils import parsedate_to_datetime
from typing import Any

from proxytrack.exceptions import DataValidationError, MalformedResponseError
from proxytrack.types import Headline

logger = logging.getLogger(__name__)


def split_source(full_title: str) -> tuple[str, str]:
    """Split a Google News style ``"Title - Source"`` into its parts."""
    cut = full_title.rfind(" - ")
    if cut > 0:
        return full_title[:cut], full_title[cut + 3:]
    return full_title, ""


def parse_feed(xml_text: str) -> list[Headline]:
    """Parse RSS ``<item>`` elements into headlines.

    Items without a title or link are skipped.

    :raises MalformedResponseError: If the body is not XML.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise MalformedResponseError(f"News feed is not valid XML: {e}", NewsSource.name) from e

    headlines: list[Headline] = []
    for item in root.iter("item"):
        title = (item.findtext("title") or "").strip()
        link = (item.findtext("link") or "").strip()
        if not title or not link:
            continue

        published = None
        pub_date = item.findtext("pubDate")
        if pub_date:
            try:
                published = parsedate_to_datetime(pub_date)
            except (TypeError, ValueError):
                published = None

        text, source = split_source(title)
        headlines.append(Headline(title=text, link=link, source=source, published=published))
    return headlines


class NewsSource:
    """Headlines matching a free-text query.

    :param client: HTTP client.
    :param news_url: RSS search endpoint.
    """

    name = "news"

    def __init__(self, client: Any, news_url: str) -> None:
        self.client = client
        self.news_url = news_url

    async def fetch_headlines(self, query: str, limit: int = 8) -> list[Headline]:
        """Fetch up to ``limit`` headlines for ``query``.

        :raises DataSourceError: On transport or payload failures.
        """
        query = query.strip()
        if not query:
            raise DataValidationError("NewsSource requires a query")

        text = await self.client.get_text(
            self.news_url,
            params={"q": query, "hl": "en-US", "gl": "US", "ceid": "US:en"},
            source=self.name,
        )
        headlines = parse_feed(text)
        logger.debug("news '%s': %d headlines", query, len(headlines))
        return headlines[:limit]
