"""Runtime settings and source configuration."""

from .settings import Settings, settings
from .sources import (
    FeedConfig, RssFeedConfig, GithubFeedConfig, ApiFeedConfig,
    SourceConfig, TagRule, load_sources, parse_sources,
)

__all__ = [
    "Settings", "settings",
    "FeedConfig", "RssFeedConfig", "GithubFeedConfig", "ApiFeedConfig",
    "SourceConfig", "TagRule", "load_sources", "parse_sources",
]
