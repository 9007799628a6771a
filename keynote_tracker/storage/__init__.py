"""Announcement cache and merge engine."""

from .cache import AnnouncementCache, CacheDocument, SourceMeta, is_stale
from .merge import deduplicate, merge_announcements

__all__ = [
    "AnnouncementCache", "CacheDocument", "SourceMeta", "is_stale",
    "deduplicate", "merge_announcements",
]
