"""JSON file cache for announcements and per-source fetch metadata."""

import json
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Union

import structlog

from .merge import merge_announcements
from ..config.settings import settings
from ..ingestion.interfaces import Announcement
from ..ingestion.normalizer import now_iso, parse_date, utc_now

logger = structlog.get_logger()

CACHE_TTL = timedelta(hours=24)


def is_stale(
    last_fetch: Union[str, datetime, None],
    now: datetime = None,
    ttl: timedelta = CACHE_TTL,
) -> bool:
    """True when there was no fetch yet, or the last one is older than ``ttl``."""
    if not last_fetch:
        return True
    fetched_at = parse_date(last_fetch)
    if fetched_at is None:
        return True
    now = now or utc_now()
    return now - fetched_at > ttl


@dataclass
class SourceMeta:
    """Outcome of the last successful fetch of one source."""
    last_fetch: Optional[str] = None
    count: int = 0

    def to_dict(self) -> dict:
        return {"lastFetch": self.last_fetch, "count": self.count}

    @classmethod
    def from_dict(cls, data: dict) -> "SourceMeta":
        if not isinstance(data, dict):
            raise ValueError("source metadata must be an object")
        return cls(last_fetch=data.get("lastFetch"), count=int(data.get("count") or 0))


@dataclass
class CacheDocument:
    """The persisted aggregate: global fetch time, source metadata, announcements."""
    last_fetch: Optional[str] = None
    sources: Dict[str, SourceMeta] = field(default_factory=dict)
    announcements: List[Announcement] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "lastFetch": self.last_fetch,
            "sources": {key: meta.to_dict() for key, meta in self.sources.items()},
            "announcements": [a.to_dict() for a in self.announcements],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CacheDocument":
        """Build from decoded JSON; raises ValueError on a malformed document."""
        if not isinstance(data, dict):
            raise ValueError("cache document must be an object")

        sources = data.get("sources") or {}
        announcements = data.get("announcements") or []
        if not isinstance(sources, dict) or not isinstance(announcements, list):
            raise ValueError("cache document has malformed sources or announcements")

        return cls(
            last_fetch=data.get("lastFetch"),
            sources={key: SourceMeta.from_dict(meta) for key, meta in sources.items()},
            announcements=[Announcement.from_dict(a) for a in announcements if isinstance(a, dict)],
        )


class AnnouncementCache:
    """Single-writer JSON document store.

    Every update reads, modifies and rewrites the whole document. There is
    no locking, so only one process may refresh the cache at a time.
    """

    def __init__(self, path: Union[str, Path] = None, ttl_hours: float = None):
        self.path = Path(path) if path else Path(settings.cache_file)
        hours = ttl_hours if ttl_hours is not None else settings.cache_ttl_hours
        self.ttl = timedelta(hours=hours)

    def load(self) -> CacheDocument:
        """Read the document; a missing or corrupt file is replaced by an empty one."""
        if not self.path.exists():
            logger.info("cache_missing", path=str(self.path))
            return self._initialize()

        try:
            with open(self.path, encoding="utf-8") as f:
                return CacheDocument.from_dict(json.load(f))
        except (OSError, ValueError, TypeError) as e:
            logger.warning("cache_invalid", path=str(self.path), error=str(e))
            return self._initialize()

    def save(self, document: CacheDocument) -> bool:
        """Write the document (temp file, then rename). Returns False on failure."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document.to_dict(), f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.path)
            except Exception:
                if os.path.exists(temp_path):
                    os.unlink(temp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error("cache_save_failed", path=str(self.path), error=str(e))
            return False

        logger.debug("cache_saved", path=str(self.path), count=len(document.announcements))
        return True

    def update_source(self, source: str, announcements: List[Announcement]) -> List[Announcement]:
        """Replace one source's announcements and merge them into the cache.

        Returns the merged, newest-first collection that was persisted.
        """
        document = self.load()

        others = [a for a in document.announcements if a.source != source]
        merged = merge_announcements(others, announcements)

        now = now_iso()
        document.sources[source] = SourceMeta(last_fetch=now, count=len(announcements))
        document.announcements = merged
        document.last_fetch = now

        self.save(document)
        logger.info(
            "source_cache_updated",
            source=source,
            count=len(announcements),
            total=len(merged),
        )
        return merged

    def status(self) -> dict:
        """Summary of the cached document and its staleness."""
        document = self.load()
        return {
            "last_fetch": document.last_fetch,
            "is_stale": is_stale(document.last_fetch, ttl=self.ttl),
            "total_announcements": len(document.announcements),
            "sources": {key: meta.to_dict() for key, meta in document.sources.items()},
        }

    def needs_refresh(self) -> bool:
        return is_stale(self.load().last_fetch, ttl=self.ttl)

    def get_all(self) -> List[Announcement]:
        return self.load().announcements

    def get_by_source(self, source: str) -> List[Announcement]:
        return [a for a in self.load().announcements if a.source == source]

    def clear(self) -> CacheDocument:
        """Discard every cached announcement and all source metadata."""
        logger.info("cache_cleared", path=str(self.path))
        return self._initialize()

    def _initialize(self) -> CacheDocument:
        document = CacheDocument()
        self.save(document)
        return document
