"""Refresh orchestration: fetch every source in turn and update the cache."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

import aiohttp
import structlog

from ..config.settings import settings
from ..ingestion.interfaces import Announcement
from ..ingestion.source import SourceFetcher, SourceRegistry
from ..storage.cache import AnnouncementCache

logger = structlog.get_logger()

ProgressCallback = Callable[[dict], None]


@dataclass
class SourceResult:
    """Outcome of refreshing one source."""
    source: str
    success: bool
    count: int = 0
    announcements: List[Announcement] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "success": self.success,
            "count": self.count,
            "announcements": [a.to_dict() for a in self.announcements],
            "error": self.error,
        }


@dataclass
class BatchResult:
    """Outcome of refreshing every source."""
    successful: List[SourceResult] = field(default_factory=list)
    failed: List[SourceResult] = field(default_factory=list)

    @property
    def total_announcements(self) -> int:
        return sum(r.count for r in self.successful)


class RefreshPipeline:
    """Fetch sources sequentially, with a pause between them, into the cache."""

    def __init__(
        self,
        registry: SourceRegistry,
        cache: AnnouncementCache = None,
        delay_seconds: float = None,
    ):
        self.registry = registry
        self.cache = cache or AnnouncementCache()
        self.delay_seconds = (
            delay_seconds if delay_seconds is not None else settings.source_delay_seconds
        )

    def _open_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(headers={"User-Agent": settings.user_agent})

    async def refresh_source(self, key: str, session: aiohttp.ClientSession = None) -> SourceResult:
        """Fetch one source and write it through the cache.

        Raises KeyError for an unknown source; any other failure is reported
        in the returned result.
        """
        source = self.registry.get(key)
        if session is None:
            async with self._open_session() as own_session:
                return await self._refresh(source, own_session)
        return await self._refresh(source, session)

    async def _refresh(self, source: SourceFetcher, session) -> SourceResult:
        try:
            announcements = await source.fetch(session)
            self.cache.update_source(source.key, announcements)
        except Exception as e:
            logger.error("source_refresh_failed", source=source.key, error=str(e) or type(e).__name__)
            return SourceResult(source=source.key, success=False, error=str(e) or type(e).__name__)

        return SourceResult(
            source=source.key,
            success=True,
            count=len(announcements),
            announcements=announcements,
        )

    async def refresh_all(self, on_progress: ProgressCallback = None) -> BatchResult:
        """Refresh every source in declaration order.

        ``on_progress`` receives ``{current, total, source}`` as each source
        starts.
        """
        start = datetime.now()
        sources = list(self.registry)
        total = len(sources)
        batch = BatchResult()

        async with self._open_session() as session:
            for index, source in enumerate(sources):
                if on_progress:
                    on_progress({"current": index + 1, "total": total, "source": source.name})

                result = await self._refresh(source, session)
                if result.success:
                    batch.successful.append(result)
                else:
                    batch.failed.append(result)

                if index < total - 1 and self.delay_seconds > 0:
                    await asyncio.sleep(self.delay_seconds)

        logger.info(
            "refresh_complete",
            sources=total,
            successful=len(batch.successful),
            failed=len(batch.failed),
            announcements=batch.total_announcements,
            elapsed_seconds=round((datetime.now() - start).total_seconds(), 1),
        )
        return batch

    async def ensure_fresh(
        self,
        force: bool = False,
        on_progress: ProgressCallback = None,
    ) -> Optional[BatchResult]:
        """Refresh when forced, when the cache is stale, or when it is empty."""
        status = self.cache.status()
        if force or status["is_stale"] or status["total_announcements"] == 0:
            logger.info(
                "refresh_needed",
                forced=force,
                stale=status["is_stale"],
                cached=status["total_announcements"],
            )
            return await self.refresh_all(on_progress=on_progress)

        logger.debug("cache_fresh", last_fetch=status["last_fetch"])
        return None


async def run_refresh(
    config_path: str = None,
    force: bool = True,
    on_progress: ProgressCallback = None,
) -> Optional[BatchResult]:
    """Load sources and refresh the default cache.

    Args:
        config_path: Source configuration file (defaults to user/bundled config)
        force: Refresh even when the cache is still fresh
        on_progress: Called with ``{current, total, source}`` per source

    Returns:
        BatchResult, or None when the cache was fresh and not forced
    """
    pipeline = RefreshPipeline(SourceRegistry.load(config_path))
    return await pipeline.ensure_fresh(force=force, on_progress=on_progress)
