"""GitHub releases fetcher."""

from typing import List

import aiohttp
import structlog

from .interfaces import Announcement, FeedFetcher
from .normalizer import FieldMapping, coerce_tags, excerpt, normalize_date, now_iso
from ..config.settings import settings

logger = structlog.get_logger()


class GithubFetcher(FeedFetcher):
    """Fetch the most recent releases of one repository.

    When the API call fails the fetcher yields a single placeholder
    announcement pointing at the repository's releases page.
    """

    feed_type = "github"

    DEFAULT_FIELDS = {
        "title": "name",
        "titleFallback": "tag_name",
        "date": "published_at",
        "dateFallback": "created_at",
        "description": "body",
        "content": "body",
        "link": "html_url",
    }

    @property
    def releases_url(self) -> str:
        return f"{settings.github_api_url.rstrip('/')}/repos/{self.config.repo}/releases"

    async def _fetch(self, session) -> List[Announcement]:
        releases = await self._download(session)
        if not isinstance(releases, list):
            raise ValueError(f"Unexpected releases payload: {type(releases).__name__}")
        return [self.to_announcement(r) for r in releases[: self.config.limit] if isinstance(r, dict)]

    async def _download(self, session):
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": settings.user_agent,
            **self.config.headers,
        }
        timeout = aiohttp.ClientTimeout(total=settings.fetch_timeout_seconds)
        params = {"per_page": min(self.config.limit, 100)}
        async with session.get(self.releases_url, headers=headers, params=params, timeout=timeout) as response:
            response.raise_for_status()
            return await response.json()

    def to_announcement(self, release: dict) -> Announcement:
        mapping = FieldMapping(self.DEFAULT_FIELDS, self.config.fields)

        title = mapping.resolve(release, "title") or release.get("tag_name") or "Untitled"
        body = mapping.resolve(release, "description") or ""
        content = mapping.resolve(release, "content") or body
        link = mapping.resolve(release, "link")
        category = mapping.resolve(release, "category")

        if "tags" in mapping.paths:
            tags = coerce_tags(mapping.resolve(release, "tags"))
        else:
            tags = self.config.tag_rule.tags_for(release)

        return Announcement(
            source=self.source_key,
            title=str(title),
            date=normalize_date(mapping.resolve(release, "date")),
            description=excerpt(body) if body else "New release",
            content=content if isinstance(content, str) else str(content),
            link=str(link) if link else None,
            category=str(category) if category else self.config.category or "release",
            tags=tags,
        )

    def _on_failure(self, error: Exception) -> List[Announcement]:
        repo = self.config.repo
        page = self.config.releases_page
        logger.warning("github_placeholder_emitted", source=self.source_key, repo=repo)
        return [
            Announcement(
                source=self.source_key,
                title=f"{repo} - Check GitHub for updates",
                date=now_iso(),
                description=f"Visit GitHub for the latest releases from {repo}",
                content=f"Unable to fetch releases. Please check: {page}",
                link=page,
                category=self.config.category or "info",
                tags=["error"],
            )
        ]
