"""Pytest configuration and shared fixtures."""

import pytest

# Add project root to path
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))


SAMPLE_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Example Blog</title>
    <link>https://blog.example.com</link>
    <description>Product news</description>
    <item>
      <title>GPU Launch</title>
      <link>https://blog.example.com/gpu-launch</link>
      <pubDate>Tue, 02 Jan 2024 12:00:00 GMT</pubDate>
      <description>A new GPU is here.</description>
      <category>hardware</category>
      <category>gpu</category>
    </item>
    <item>
      <title>SDK Update</title>
      <link>https://blog.example.com/sdk-update</link>
      <pubDate>Mon, 01 Jan 2024 09:30:00 GMT</pubDate>
      <description>Version 2 of the SDK.</description>
      <content:encoded><![CDATA[<p>Version 2 of the SDK ships today.</p>]]></content:encoded>
    </item>
    <item>
      <title>Old News</title>
      <link>https://blog.example.com/old</link>
      <pubDate>Sun, 31 Dec 2023 08:00:00 GMT</pubDate>
      <description>Something older.</description>
    </item>
  </channel>
</rss>
"""


@pytest.fixture
def sample_rss():
    """Provide a small RSS 2.0 document."""
    return SAMPLE_RSS


@pytest.fixture
def make_announcement():
    """Factory for Announcements with sensible defaults."""
    from keynote_tracker.ingestion.interfaces import Announcement

    def _make(**overrides):
        data = {
            "source": "nvidia",
            "title": "GPU Launch",
            "date": "2024-01-02T12:00:00+00:00",
            "description": "A new GPU is here.",
            "content": "A new GPU is here.",
            "link": "https://blog.example.com/gpu-launch",
            "category": "blog",
            "tags": ["gpu"],
        }
        data.update(overrides)
        return Announcement(**data)

    return _make


@pytest.fixture
def cache(tmp_path):
    """Provide an AnnouncementCache backed by a temporary file."""
    from keynote_tracker.storage.cache import AnnouncementCache
    return AnnouncementCache(tmp_path / "data" / "announcements.json")


@pytest.fixture
def sample_sources_config():
    """Provide a raw sources configuration mapping."""
    return {
        "sources": {
            "nvidia": {
                "name": "NVIDIA",
                "description": "NVIDIA blog",
                "feeds": [
                    {"type": "rss", "url": "https://blogs.nvidia.com/feed/", "category": "blog"},
                ],
            },
            "python": {
                "name": "Python",
                "description": "CPython releases",
                "feeds": [
                    {"type": "github", "repo": "python/cpython", "limit": 5},
                    {
                        "type": "api",
                        "url": "https://api.example.com/posts",
                        "timeout": 5,
                        "transform": "data.posts",
                    },
                ],
            },
        }
    }
