"""Syndication (RSS/Atom) feed fetcher."""

import calendar
from datetime import datetime, timezone
from typing import List, Optional

import aiohttp
import feedparser
import structlog

from .interfaces import Announcement, FeedFetcher
from .normalizer import FieldMapping, normalize_item
from ..config.settings import settings

logger = structlog.get_logger()


class RssFetcher(FeedFetcher):
    """Fetch a syndication feed and map its entries to announcements."""

    feed_type = "rss"

    DEFAULT_FIELDS = {
        "title": "title",
        "date": "pubDate",
        "dateFallback": "isoDate",
        "description": "summary",
        "content": "content",
        "link": "link",
        "tags": "categories",
    }

    async def _fetch(self, session) -> List[Announcement]:
        text = await self._download(session)
        return self.parse(text)

    async def _download(self, session) -> str:
        timeout = aiohttp.ClientTimeout(total=settings.fetch_timeout_seconds)
        async with session.get(self.config.url, timeout=timeout) as response:
            response.raise_for_status()
            return await response.text()

    def parse(self, text: str) -> List[Announcement]:
        """Parse a feed document into at most ``limit`` announcements."""
        feed = feedparser.parse(text)
        if feed.bozo and not feed.entries:
            raise ValueError(f"Not a valid RSS/Atom feed: {feed.get('bozo_exception')}")

        mapping = FieldMapping(self.DEFAULT_FIELDS, self.config.fields)
        category = self.config.category or "general"
        return [
            normalize_item(self._entry_to_item(entry), mapping, self.source_key, category)
            for entry in feed.entries[: self.config.limit]
        ]

    def _entry_to_item(self, entry) -> dict:
        """Flatten a feedparser entry into a plain record with RSS-style keys."""
        item = dict(entry)

        content = None
        if entry.get("content"):
            content = entry.content[0].get("value")
        item["content"] = content if content is not None else entry.get("summary")

        item["pubDate"] = entry.get("published") or entry.get("updated")
        item["isoDate"] = self._iso_date(entry)
        item["categories"] = [tag.get("term") for tag in entry.get("tags", []) if tag.get("term")]
        return item

    @staticmethod
    def _iso_date(entry) -> Optional[str]:
        for attr in ("published_parsed", "updated_parsed"):
            parsed = entry.get(attr)
            if parsed:
                try:
                    return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc).isoformat()
                except (TypeError, ValueError, OverflowError):
                    continue
        return None
