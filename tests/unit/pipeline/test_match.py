"""Tests for feed_mirror.match module."""

from datetime import datetime, timezone

import pytest

from feed_mirror.config import MATCH_ALL, RunConfig
from feed_mirror.match import (
    edit_distance,
    filter_relevant,
    is_match_all,
    is_recent,
    matches_pattern,
    similarity,
)
from feed_mirror.models import FeedItem


@pytest.fixture
def run_config():
    return RunConfig(
        min_date=datetime(2025, 9, 1, tzinfo=timezone.utc),
        patterns=["discernimentos"],
    )


class TestEditDistance:
    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ("", "", 0),
            ("abc", "", 3),
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("same", "same", 0),
        ],
    )
    def test_distance(self, a, b, expected) -> None:
        assert edit_distance(a, b) == expected

    def test_cap_on_length_gap(self) -> None:
        assert edit_distance("a", "abcdefgh", max_distance=2) == 3

    def test_cap_does_not_change_small_distances(self) -> None:
        assert edit_distance("kitten", "sitting", max_distance=3) == 3
        assert edit_distance("kitten", "sitting", max_distance=5) == 3

    def test_cap_exceeded(self) -> None:
        assert edit_distance("abcdef", "uvwxyz", max_distance=2) == 3

    @pytest.mark.parametrize(
        "a,b",
        [
            ("kitten", "sitting"),
            ("ab", "ba"),
            ("discernimentos", "discernimento"),
            ("abcdefgh", "xbcdefgz"),
            ("a", "abcdefgh"),
            ("", "abc"),
        ],
    )
    @pytest.mark.parametrize("max_distance", [None, 0, 1, 2, 5])
    def test_symmetric(self, a, b, max_distance) -> None:
        assert edit_distance(a, b, max_distance) == edit_distance(b, a, max_distance)

    def test_capped_result_never_exceeds_cap_plus_one(self) -> None:
        assert edit_distance("abcdefgh", "xbcdefgz", max_distance=1) == 2


class TestSimilarity:
    def test_identical(self) -> None:
        assert similarity("Discernimentos", "discernimentos") == 1.0

    def test_both_empty(self) -> None:
        assert similarity("", "") == 1.0

    def test_partial(self) -> None:
        assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)


class TestMatchesPattern:
    def test_substring_match(self) -> None:
        assert matches_pattern("Resultado dos Discernimentos 2025", ["discernimentos"])

    def test_close_title_matches(self) -> None:
        assert matches_pattern("Discernimento", ["discernimentos"])

    def test_threshold_is_strict(self) -> None:
        # distance 3 over length 10 gives exactly 0.7
        assert not matches_pattern("abcdefgxyz", ["abcdefghij"])

    def test_unrelated_title(self) -> None:
        assert not matches_pattern("Agenda da semana", ["discernimentos"])

    def test_any_pattern(self) -> None:
        assert matches_pattern("Comunicado oficial", ["discernimentos", "comunicado"])

    def test_is_match_all(self) -> None:
        assert is_match_all([MATCH_ALL])
        assert not is_match_all([MATCH_ALL, "x"])
        assert not is_match_all([])


class TestIsRecent:
    def test_undated_passes(self, run_config) -> None:
        assert is_recent(FeedItem(title="t", link="https://x/y"), run_config)

    def test_boundary_is_inclusive(self, run_config) -> None:
        item = FeedItem(title="t", link="https://x/y", published_at="2025-09-01T00:00:00Z")
        assert is_recent(item, run_config)

    def test_older_item_dropped(self, run_config) -> None:
        item = FeedItem(title="t", link="https://x/y", published_at="Sun, 31 Aug 2025 23:59:59 GMT")
        assert not is_recent(item, run_config)

    def test_unparseable_date_dropped(self, run_config) -> None:
        item = FeedItem(title="t", link="https://x/y", published_at="someday")
        assert not is_recent(item, run_config)


class TestFilterRelevant:
    def test_filters_by_date_and_title(self, run_config) -> None:
        items = [
            FeedItem(title="Discernimentos 2025", link="https://x/1", published_at="2025-09-15T00:00:00Z"),
            FeedItem(title="Discernimentos 2024", link="https://x/2", published_at="2024-09-15T00:00:00Z"),
            FeedItem(title="Agenda", link="https://x/3", published_at="2025-09-15T00:00:00Z"),
            FeedItem(title="Discernimentos", link="not-a-url"),
        ]
        assert [item.link for item in filter_relevant(items, run_config)] == ["https://x/1"]

    def test_match_all_keeps_every_recent_item(self, run_config) -> None:
        run_config.patterns = [MATCH_ALL]
        items = [
            FeedItem(title="Agenda", link="https://x/3", published_at="2025-09-15T00:00:00Z"),
            FeedItem(title="Velho", link="https://x/4", published_at="2020-01-01T00:00:00Z"),
        ]
        assert [item.link for item in filter_relevant(items, run_config)] == ["https://x/3"]
