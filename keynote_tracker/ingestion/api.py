"""Generic JSON API fetcher."""

from typing import Any, List

import aiohttp
import structlog

from .interfaces import Announcement, FeedFetcher
from .normalizer import FieldMapping, normalize_item, now_iso
from .transform import TransformError, apply_transform
from ..config.settings import settings

logger = structlog.get_logger()


class ApiFetcher(FeedFetcher):
    """Fetch items from an arbitrary JSON endpoint.

    The response (after the optional declarative transform) must be a list
    of records; anything else yields no announcements.
    """

    feed_type = "api"

    DEFAULT_FIELDS = {
        "title": "title",
        "date": "date",
        "description": "description",
        "content": "content",
        "contentFallback": "description",
        "link": "link",
        "category": "category",
        "tags": "tags",
    }

    async def _fetch(self, session) -> List[Announcement]:
        data = await self._download(session)
        return self.parse(data)

    async def _download(self, session) -> Any:
        headers = self.config.headers or {"User-Agent": settings.user_agent}
        timeout = aiohttp.ClientTimeout(total=self.config.timeout or settings.fetch_timeout_seconds)
        async with session.request(
            self.config.method, self.config.url, headers=headers, timeout=timeout
        ) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    def parse(self, data: Any) -> List[Announcement]:
        """Reshape a decoded response body and map it to announcements."""
        if self.config.transform is not None:
            try:
                data = apply_transform(self.config.transform, data)
            except TransformError as e:
                logger.warning(
                    "feed_transform_failed",
                    source=self.source_key,
                    url=self.config.url,
                    error=str(e),
                )
                return []

        if not isinstance(data, list):
            logger.warning(
                "feed_response_not_a_list",
                source=self.source_key,
                url=self.config.url,
                got=type(data).__name__,
            )
            return []

        mapping = FieldMapping(self.DEFAULT_FIELDS, self.config.fields)
        category = self.config.category or "general"
        announcements = []
        for item in data[: self.config.limit]:
            if not isinstance(item, dict):
                continue
            announcement = normalize_item(item, mapping, self.source_key, category)
            if not announcement.date:
                announcement.date = now_iso()
            announcements.append(announcement)
        return announcements
