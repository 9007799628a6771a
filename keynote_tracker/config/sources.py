"""Source configuration types and YAML loader."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Union

import structlog
import yaml

from .settings import settings

logger = structlog.get_logger()

FEED_TYPES = ("rss", "github", "api")


@dataclass
class TagRule:
    """Derive tags from a boolean field of an upstream record."""
    field_name: str = "prerelease"
    when_true: List[str] = field(default_factory=lambda: ["prerelease"])
    when_false: List[str] = field(default_factory=lambda: ["release"])

    def tags_for(self, record: dict) -> List[str]:
        return list(self.when_true if record.get(self.field_name) else self.when_false)

    @classmethod
    def from_dict(cls, data: dict) -> "TagRule":
        rule = cls()
        if "field" in data:
            rule.field_name = str(data["field"])
        if "whenTrue" in data:
            rule.when_true = [str(t) for t in data["whenTrue"] or []]
        if "whenFalse" in data:
            rule.when_false = [str(t) for t in data["whenFalse"] or []]
        return rule


@dataclass
class FeedConfig:
    """Settings shared by every feed type."""
    feed_type: ClassVar[str] = ""

    limit: int = 20
    category: Optional[str] = None
    fields: Dict[str, str] = field(default_factory=dict)

    @property
    def label(self) -> str:
        """Human readable endpoint for log lines."""
        return ""


@dataclass
class RssFeedConfig(FeedConfig):
    """Syndication (RSS/Atom) feed."""
    feed_type: ClassVar[str] = "rss"

    url: str = ""

    @property
    def label(self) -> str:
        return self.url


@dataclass
class GithubFeedConfig(FeedConfig):
    """GitHub releases of a single repository (``owner/name``)."""
    feed_type: ClassVar[str] = "github"

    repo: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    tag_rule: TagRule = field(default_factory=TagRule)

    @property
    def label(self) -> str:
        return self.repo

    @property
    def releases_page(self) -> str:
        return f"https://github.com/{self.repo}/releases"


@dataclass
class ApiFeedConfig(FeedConfig):
    """Arbitrary JSON endpoint, optionally reshaped by a declarative transform."""
    feed_type: ClassVar[str] = "api"

    url: str = ""
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None
    transform: Union[str, Dict[str, Any], None] = None

    @property
    def label(self) -> str:
        return self.url


@dataclass
class SourceConfig:
    """A named origin composed of one or more feeds."""
    key: str
    name: str
    description: str
    feeds: List[FeedConfig] = field(default_factory=list)


def _validate_source(key: str, data: Any) -> None:
    if not isinstance(data, dict):
        raise ValueError(f"Source '{key}' must be a mapping")
    if not data.get("name"):
        raise ValueError(f"Source '{key}' is missing required field: name")
    if not data.get("description"):
        raise ValueError(f"Source '{key}' is missing required field: description")
    if not isinstance(data.get("feeds"), list):
        raise ValueError(f"Source '{key}' is missing required field: feeds (must be a list)")

    for index, feed in enumerate(data["feeds"]):
        where = f"Source '{key}' feed[{index}]"
        if not isinstance(feed, dict):
            raise ValueError(f"{where} must be a mapping")
        feed_type = feed.get("type")
        if not feed_type:
            raise ValueError(f"{where} is missing required field: type")
        if feed_type not in FEED_TYPES:
            raise ValueError(
                f"{where} has invalid type: {feed_type} (must be rss, github, or api)"
            )
        if feed_type in ("rss", "api") and not feed.get("url"):
            raise ValueError(f"{where} ({feed_type}) is missing required field: url")
        if feed_type == "github" and not feed.get("repo"):
            raise ValueError(f"{where} (github) is missing required field: repo")
        if "fields" in feed and not isinstance(feed["fields"], dict):
            raise ValueError(f"{where} field 'fields' must be a mapping")


def _build_feed(source_key: str, data: dict) -> FeedConfig:
    common = {
        "limit": int(data.get("limit") or settings.default_feed_limit),
        "category": data.get("category"),
        "fields": {k: str(v) for k, v in (data.get("fields") or {}).items()},
    }
    feed_type = data["type"]

    if feed_type == "rss":
        return RssFeedConfig(url=data["url"], **common)

    if feed_type == "github":
        if "tagLogic" in data and "tagRule" not in data:
            logger.warning(
                "tag_logic_ignored",
                source=source_key,
                repo=data["repo"],
                hint="use tagRule: {field, whenTrue, whenFalse}",
            )
        rule = data.get("tagRule")
        return GithubFeedConfig(
            repo=data["repo"],
            headers=dict(data.get("headers") or {}),
            tag_rule=TagRule.from_dict(rule) if isinstance(rule, dict) else TagRule(),
            **common,
        )

    timeout = data.get("timeout")
    return ApiFeedConfig(
        url=data["url"],
        method=str(data.get("method") or "GET").upper(),
        headers=dict(data.get("headers") or {}),
        timeout=float(timeout) if timeout is not None else None,
        transform=data.get("transform"),
        **common,
    )


def parse_sources(config: Any) -> Dict[str, SourceConfig]:
    """Validate a raw configuration mapping and build typed source configs.

    Sources keep the order they are declared in.
    """
    if not isinstance(config, dict):
        raise ValueError("Invalid config: must be a mapping")
    sources = config.get("sources")
    if not isinstance(sources, dict):
        raise ValueError("Invalid config: missing sources mapping")

    result = {}
    for key, data in sources.items():
        _validate_source(key, data)
        result[key] = SourceConfig(
            key=key,
            name=data["name"],
            description=data["description"],
            feeds=[_build_feed(key, feed) for feed in data["feeds"]],
        )
    return result


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ValueError(f"Failed to load config from {path}: {e}") from e


def load_sources(config_path: str = None) -> Dict[str, SourceConfig]:
    """Load source configurations from YAML.

    Without an explicit path the user file is tried first; if it is missing
    or invalid, the bundled default configuration is used instead.
    """
    if config_path is not None:
        return parse_sources(_read_yaml(Path(config_path)))

    user_path = Path(settings.sources_file)
    default_path = Path(settings.default_sources_file)

    if not user_path.exists():
        return parse_sources(_read_yaml(default_path))

    try:
        return parse_sources(_read_yaml(user_path))
    except ValueError as e:
        logger.warning("sources_config_invalid", path=str(user_path), error=str(e))
        try:
            sources = parse_sources(_read_yaml(default_path))
        except ValueError as fallback_error:
            raise ValueError(
                f"Failed to load config: {e}. Fallback also failed: {fallback_error}"
            ) from fallback_error
        logger.info("using_default_sources_config", path=str(default_path))
        return sources
