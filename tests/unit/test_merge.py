"""Unit tests for the merge engine."""

import pytest

from keynote_tracker.storage.merge import deduplicate, merge_announcements


class TestMergeAnnouncements:
    """Tests for merge_announcements."""

    def test_first_occurrence_wins(self, make_announcement):
        """Existing records win over incoming duplicates."""
        existing = [make_announcement(link="x", title="old")]
        incoming = [make_announcement(link="x", title="new")]

        merged = merge_announcements(existing, incoming)

        assert len(merged) == 1
        assert merged[0].title == "old"

    def test_link_is_identity(self, make_announcement):
        """Equal links collapse even when titles differ."""
        merged = merge_announcements(
            [make_announcement(link="https://a", title="One")],
            [make_announcement(link="https://a", title="Two")],
        )
        assert len(merged) == 1

    def test_title_is_identity_without_link(self, make_announcement):
        merged = merge_announcements(
            [make_announcement(link=None, title="Same"), make_announcement(link="", title="Same")],
            [make_announcement(link=None, title="Different")],
        )
        assert sorted(a.title for a in merged) == ["Different", "Same"]

    def test_identity_spans_sources(self, make_announcement):
        """Two sources emitting the same link collapse into one record."""
        merged = merge_announcements(
            [make_announcement(source="a", link="https://shared")],
            [make_announcement(source="b", link="https://shared")],
        )
        assert [a.source for a in merged] == ["a"]

    def test_sorted_newest_first(self, make_announcement):
        merged = merge_announcements(
            [
                make_announcement(link="1", date="2024-01-01T00:00:00+00:00"),
                make_announcement(link="2", date="Wed, 03 Jan 2024 00:00:00 GMT"),
            ],
            [make_announcement(link="3", date="2024-01-02T00:00:00Z")],
        )
        assert [a.link for a in merged] == ["2", "3", "1"]

    def test_unparseable_dates_sort_last(self, make_announcement):
        """Bad or missing dates must not crash the sort."""
        merged = merge_announcements(
            [make_announcement(link="bad", date="soon"), make_announcement(link="none", date=None)],
            [make_announcement(link="good", date="2024-01-02T00:00:00+00:00")],
        )
        assert merged[0].link == "good"
        assert {a.link for a in merged[1:]} == {"bad", "none"}

    def test_inputs_not_modified(self, make_announcement):
        existing = [make_announcement(link="1", date="2023-01-01T00:00:00+00:00")]
        incoming = [make_announcement(link="2"), make_announcement(link="1")]

        merge_announcements(existing, incoming)

        assert [a.link for a in existing] == ["1"]
        assert [a.link for a in incoming] == ["2", "1"]

    def test_idempotent(self, make_announcement):
        """Merging a merged result with nothing changes nothing."""
        a = [make_announcement(link=str(i), date=f"2024-01-0{i}T00:00:00+00:00") for i in (3, 1)]
        b = [make_announcement(link=str(i), date=f"2024-01-0{i}T00:00:00+00:00") for i in (2, 1)]

        once = merge_announcements(a, b)

        assert merge_announcements(once, []) == once
        dates = [x.date for x in once]
        assert dates == sorted(dates, reverse=True)


class TestDeduplicate:
    """Tests for deduplicate."""

    def test_keeps_order(self, make_announcement):
        items = [make_announcement(link=l) for l in ("b", "a", "b", "c")]
        assert [a.link for a in deduplicate(items)] == ["b", "a", "c"]
