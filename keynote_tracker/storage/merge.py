"""Deduplication and ordering of announcement collections."""

from datetime import datetime, timezone
from typing import Iterable, List, Tuple

from ..ingestion.interfaces import Announcement
from ..ingestion.normalizer import parse_date

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def deduplicate(announcements: Iterable[Announcement]) -> List[Announcement]:
    """Keep the first announcement for each identity key (link, else title)."""
    seen = set()
    unique = []
    for announcement in announcements:
        key = announcement.identity_key
        if key not in seen:
            seen.add(key)
            unique.append(announcement)
    return unique


def _date_sort_key(announcement: Announcement) -> Tuple[bool, datetime]:
    # Unparseable dates sort after every parseable one
    parsed = parse_date(announcement.date)
    return (parsed is not None, parsed or _EPOCH)


def merge_announcements(
    existing: Iterable[Announcement],
    incoming: Iterable[Announcement],
) -> List[Announcement]:
    """Combine two collections, drop later duplicates, sort newest first.

    Inputs are not modified.
    """
    combined = list(existing) + list(incoming)
    return sorted(deduplicate(combined), key=_date_sort_key, reverse=True)
