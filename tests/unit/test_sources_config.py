"""Unit tests for source configuration loading."""

import pytest
import yaml

from keynote_tracker.config.settings import settings
from keynote_tracker.config.sources import (
    ApiFeedConfig, GithubFeedConfig, RssFeedConfig, TagRule, load_sources, parse_sources,
)
from keynote_tracker.ingestion.source import SourceRegistry


class TestParseSources:
    """Tests for parse_sources."""

    def test_builds_typed_configs(self, sample_sources_config):
        sources = parse_sources(sample_sources_config)

        assert list(sources) == ["nvidia", "python"]
        nvidia = sources["nvidia"]
        assert nvidia.name == "NVIDIA"
        assert isinstance(nvidia.feeds[0], RssFeedConfig)
        assert nvidia.feeds[0].limit == 20
        assert nvidia.feeds[0].category == "blog"

        github, api = sources["python"].feeds
        assert isinstance(github, GithubFeedConfig)
        assert github.limit == 5
        assert github.tag_rule == TagRule()
        assert isinstance(api, ApiFeedConfig)
        assert api.method == "GET"
        assert api.timeout == 5.0
        assert api.transform == "data.posts"

    def test_tag_rule(self):
        config = {"sources": {"s": {"name": "S", "description": "d", "feeds": [
            {"type": "github", "repo": "a/b",
             "tagRule": {"field": "draft", "whenTrue": ["draft"], "whenFalse": []}},
        ]}}}
        rule = parse_sources(config)["s"].feeds[0].tag_rule

        assert rule.tags_for({"draft": True}) == ["draft"]
        assert rule.tags_for({"draft": False}) == []

    def test_legacy_tag_logic_uses_default_rule(self):
        config = {"sources": {"s": {"name": "S", "description": "d", "feeds": [
            {"type": "github", "repo": "a/b", "tagLogic": "return prerelease ? 'x' : 'y'"},
        ]}}}
        rule = parse_sources(config)["s"].feeds[0].tag_rule

        assert rule.tags_for({"prerelease": True}) == ["prerelease"]

    @pytest.mark.parametrize("config, message", [
        ([], "must be a mapping"),
        ({}, "missing sources"),
        ({"sources": {"s": {"description": "d", "feeds": []}}}, "name"),
        ({"sources": {"s": {"name": "S", "feeds": []}}}, "description"),
        ({"sources": {"s": {"name": "S", "description": "d"}}}, "feeds"),
        ({"sources": {"s": {"name": "S", "description": "d", "feeds": [{}]}}}, "type"),
        ({"sources": {"s": {"name": "S", "description": "d", "feeds": [{"type": "ftp"}]}}}, "invalid type"),
        ({"sources": {"s": {"name": "S", "description": "d", "feeds": [{"type": "rss"}]}}}, "url"),
        ({"sources": {"s": {"name": "S", "description": "d", "feeds": [{"type": "api"}]}}}, "url"),
        ({"sources": {"s": {"name": "S", "description": "d", "feeds": [{"type": "github"}]}}}, "repo"),
    ])
    def test_validation_errors(self, config, message):
        with pytest.raises(ValueError, match=message):
            parse_sources(config)


class TestLoadSources:
    """Tests for load_sources."""

    def test_explicit_path(self, tmp_path, sample_sources_config):
        path = tmp_path / "sources.yaml"
        path.write_text(yaml.safe_dump(sample_sources_config))

        assert list(load_sources(str(path))) == ["nvidia", "python"]

    def test_bundled_default_is_valid(self):
        sources = load_sources(str(settings.default_sources_file))
        assert len(sources) > 0

    def test_invalid_user_file_falls_back_to_default(self, tmp_path, monkeypatch):
        user = tmp_path / "sources.yaml"
        user.write_text("sources: [not, a, mapping]")
        monkeypatch.setattr(settings, "sources_file", user)

        sources = load_sources()

        assert sources == load_sources(str(settings.default_sources_file))

    def test_both_invalid_raises(self, tmp_path, monkeypatch):
        user = tmp_path / "sources.yaml"
        user.write_text("sources: [unclosed")
        monkeypatch.setattr(settings, "sources_file", user)
        monkeypatch.setattr(settings, "default_sources_file", tmp_path / "missing.yaml")

        with pytest.raises(ValueError, match="Fallback also failed"):
            load_sources()


class TestSourceRegistry:
    """Tests for SourceRegistry."""

    def test_from_config(self, sample_sources_config):
        registry = SourceRegistry.from_config(parse_sources(sample_sources_config))

        assert len(registry) == 2
        assert registry.keys() == ["nvidia", "python"]
        assert "python" in registry
        assert len(registry.get("python").fetchers) == 2
        assert registry.available()[0] == {
            "key": "nvidia", "name": "NVIDIA", "description": "NVIDIA blog",
        }

    def test_unknown_source(self, sample_sources_config):
        registry = SourceRegistry.from_config(parse_sources(sample_sources_config))

        with pytest.raises(KeyError, match="Unknown source"):
            registry.get("nope")
        assert registry.find("nope") is None
