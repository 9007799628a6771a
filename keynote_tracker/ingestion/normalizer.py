"""Field resolution and normalization of raw upstream records."""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

from .interfaces import Announcement

DESCRIPTION_LENGTH = 300

CANONICAL_FIELDS = ("title", "date", "description", "content", "link", "category", "tags")

# Sentinel for "key not present", distinct from a present None
MISSING = object()


def lookup(record: Any, path: str) -> Any:
    """Look up a key or dotted path in a record.

    A key that exists verbatim wins over its dotted reading, so names such
    as ``content:encoded`` or ``a.b`` keys work as-is. Integer segments index
    into lists. Returns ``MISSING`` when the path does not resolve.
    """
    if path in ("", "."):
        return record
    if isinstance(record, dict) and path in record:
        return record[path]

    current = record
    for part in path.split("."):
        if isinstance(current, dict):
            if part not in current:
                return MISSING
            current = current[part]
        elif isinstance(current, list):
            try:
                current = current[int(part)]
            except (ValueError, IndexError):
                return MISSING
        else:
            return MISSING
    return current


def resolve_field(record: Any, primary: Optional[str], fallback: Optional[str] = None) -> Any:
    """Primary field if present and not None, else the fallback field, else None."""
    if primary:
        value = lookup(record, primary)
        if value is not MISSING and value is not None:
            return value
    if fallback:
        value = lookup(record, fallback)
        if value is not MISSING:
            return value
    return None


class FieldMapping:
    """Per-feed mapping of canonical fields to upstream key paths.

    Entries are ``<field>`` and ``<field>Fallback``; overrides replace the
    feed type's defaults key by key.
    """

    def __init__(self, defaults: Dict[str, str], overrides: Dict[str, str] = None):
        self.paths = {**defaults, **(overrides or {})}

    def resolve(self, record: Any, name: str) -> Any:
        return resolve_field(record, self.paths.get(name), self.paths.get(f"{name}Fallback"))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    return utc_now().isoformat()


def parse_date(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 or RFC-822 dates; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                parsed = parsedate_to_datetime(text)
            except (TypeError, ValueError, IndexError):
                return None
            if parsed is None:
                return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_date(value: Any) -> Optional[str]:
    """ISO-8601 when the value parses, the raw string when it doesn't.

    Missing and blank values give None.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    parsed = parse_date(value)
    if parsed is not None:
        return parsed.isoformat()
    return str(value)


def excerpt(text: Any, length: int = DESCRIPTION_LENGTH) -> str:
    return text[:length] if isinstance(text, str) else ""


def coerce_tags(value: Any) -> List[str]:
    """Tags as a list of strings; anything that isn't a sequence becomes []."""
    if not isinstance(value, (list, tuple)):
        return []

    tags = []
    for tag in value:
        if isinstance(tag, dict):
            tag = tag.get("term") or tag.get("name")
        if tag is not None and tag != "":
            tags.append(str(tag))
    return tags


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def normalize_item(
    record: dict,
    mapping: FieldMapping,
    source: str,
    default_category: str = "general",
) -> Announcement:
    """Convert one raw record into an Announcement.

    Each canonical field goes mapping -> fallback -> literal default. A
    missing description is derived from the first characters of content.
    """
    title = mapping.resolve(record, "title")
    content = mapping.resolve(record, "content")
    description = mapping.resolve(record, "description")

    if not description and content:
        description = excerpt(content)

    link = mapping.resolve(record, "link")

    return Announcement(
        source=source,
        title=_text(title) or "Untitled",
        date=normalize_date(mapping.resolve(record, "date")),
        description=_text(description),
        content=_text(content),
        link=_text(link) or None,
        category=_text(mapping.resolve(record, "category")) or default_category,
        tags=coerce_tags(mapping.resolve(record, "tags")),
    )
