"""Interface definitions for announcement ingestion."""

import time
from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from ..config.sources import FeedConfig

logger = structlog.get_logger()


@dataclass
class Announcement:
    """One normalized upstream item (release, post, update)."""
    source: str = ""
    title: str = "Untitled"
    date: Optional[str] = None  # ISO-8601, or the raw upstream string
    description: str = ""
    content: str = ""
    link: Optional[str] = None
    category: str = "general"
    tags: List[str] = field(default_factory=list)

    @property
    def identity_key(self) -> Optional[str]:
        """Deduplication key: link, or title when there is no link."""
        return self.link or self.title

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "source": self.source,
            "title": self.title,
            "date": self.date,
            "description": self.description,
            "content": self.content,
            "link": self.link,
            "category": self.category,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Announcement":
        """Build from a persisted record, tolerating missing keys."""
        tags = data.get("tags")
        return cls(
            source=data.get("source") or "",
            title=data.get("title") or "Untitled",
            date=data.get("date"),
            description=data.get("description") or "",
            content=data.get("content") or "",
            link=data.get("link"),
            category=data.get("category") or "general",
            tags=list(tags) if isinstance(tags, list) else [],
        )


class FeedFetcher:
    """Fetch one feed and normalize its items.

    ``fetch`` never raises: failures are logged and turned into the
    fetcher's fallback output (empty by default).
    """

    feed_type = ""

    def __init__(self, source_key: str, config: FeedConfig):
        self.source_key = source_key
        self.config = config

    async def fetch(self, session) -> List[Announcement]:
        """Fetch announcements from this feed."""
        start_time = time.time()
        try:
            announcements = await self._fetch(session)
        except Exception as e:
            logger.error(
                "feed_fetch_failed",
                source=self.source_key,
                feed=self.feed_type,
                target=self.config.label,
                error=str(e) or type(e).__name__,
                time_ms=int((time.time() - start_time) * 1000),
            )
            return self._on_failure(e)

        logger.info(
            "feed_fetched",
            source=self.source_key,
            feed=self.feed_type,
            target=self.config.label,
            items=len(announcements),
            time_ms=int((time.time() - start_time) * 1000),
        )
        return announcements

    async def _fetch(self, session) -> List[Announcement]:
        raise NotImplementedError

    def _on_failure(self, error: Exception) -> List[Announcement]:
        return []
