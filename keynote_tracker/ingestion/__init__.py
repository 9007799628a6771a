"""Announcement ingestion - feed fetchers, normalization and sources."""

from .interfaces import Announcement, FeedFetcher
from .normalizer import FieldMapping, resolve_field, normalize_item, normalize_date, parse_date
from .transform import Transform, TransformError, apply_transform
from .rss import RssFetcher
from .github import GithubFetcher
from .api import ApiFetcher
from .source import SourceFetcher, SourceRegistry, create_feed_fetcher

__all__ = [
    "Announcement", "FeedFetcher",
    "FieldMapping", "resolve_field", "normalize_item", "normalize_date", "parse_date",
    "Transform", "TransformError", "apply_transform",
    "RssFetcher", "GithubFetcher", "ApiFetcher",
    "SourceFetcher", "SourceRegistry", "create_feed_fetcher",
]
