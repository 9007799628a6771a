"""Per-source composition of feed fetchers, and the source registry."""

from typing import Dict, Iterator, List, Optional

import structlog

from .interfaces import Announcement, FeedFetcher
from .rss import RssFetcher
from .github import GithubFetcher
from .api import ApiFetcher
from ..config.sources import FeedConfig, SourceConfig, load_sources

logger = structlog.get_logger()

FETCHER_TYPES = {
    "rss": RssFetcher,
    "github": GithubFetcher,
    "api": ApiFetcher,
}


def create_feed_fetcher(source_key: str, config: FeedConfig) -> FeedFetcher:
    """Build the fetcher matching a feed config's type."""
    fetcher_cls = FETCHER_TYPES.get(config.feed_type)
    if fetcher_cls is None:
        raise ValueError(f"Unknown feed type: {config.feed_type!r}")
    return fetcher_cls(source_key, config)


class SourceFetcher:
    """Fetch every feed of one source, in order, and concatenate the results."""

    def __init__(self, config: SourceConfig, fetchers: List[FeedFetcher] = None):
        self.config = config
        if fetchers is None:
            fetchers = [create_feed_fetcher(config.key, feed) for feed in config.feeds]
        self.fetchers = fetchers

    @property
    def key(self) -> str:
        return self.config.key

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def description(self) -> str:
        return self.config.description

    async def fetch(self, session) -> List[Announcement]:
        announcements = []
        for fetcher in self.fetchers:
            announcements.extend(await fetcher.fetch(session))
        logger.debug("source_fetched", source=self.key, feeds=len(self.fetchers), items=len(announcements))
        return announcements


class SourceRegistry:
    """Immutable set of configured sources, in declaration order.

    Build a new registry to pick up configuration changes.
    """

    def __init__(self, sources: List[SourceFetcher]):
        self._sources: Dict[str, SourceFetcher] = {s.key: s for s in sources}

    @classmethod
    def from_config(cls, configs: Dict[str, SourceConfig]) -> "SourceRegistry":
        return cls([SourceFetcher(config) for config in configs.values()])

    @classmethod
    def load(cls, config_path: str = None) -> "SourceRegistry":
        """Load and validate source configuration, then build the registry."""
        registry = cls.from_config(load_sources(config_path))
        logger.info("sources_loaded", sources=len(registry))
        return registry

    def get(self, key: str) -> SourceFetcher:
        try:
            return self._sources[key]
        except KeyError:
            raise KeyError(f"Unknown source: {key}") from None

    def find(self, key: str) -> Optional[SourceFetcher]:
        return self._sources.get(key)

    def keys(self) -> List[str]:
        return list(self._sources)

    def available(self) -> List[dict]:
        """Key, name and description of every source."""
        return [
            {"key": s.key, "name": s.name, "description": s.description}
            for s in self._sources.values()
        ]

    def __iter__(self) -> Iterator[SourceFetcher]:
        return iter(list(self._sources.values()))

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, key: str) -> bool:
        return key in self._sources
