"""Relevance filtering: recency plus title similarity against search patterns."""

import logging
import math
from typing import Iterable

from feed_mirror.config import MATCH_ALL, RunConfig
from feed_mirror.models import FeedItem
from feed_mirror.utils.datetime import parse_feed_date
from feed_mirror.utils.urls import is_valid_url

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.7


def edit_distance(a: str, b: str, max_distance: int | None = None) -> int:
    """Levenshtein distance using two rolling rows.

    With `max_distance`, returns `max_distance + 1` as soon as the result is
    known to exceed it (length gap, or every cell of a row above the cap).
    """
    m, n = len(a), len(b)
    if max_distance is not None and abs(m - n) > max_distance:
        return max_distance + 1

    prev = list(range(n + 1))
    curr = [0] * (n + 1)

    for i in range(1, m + 1):
        curr[0] = i
        for j in range(1, n + 1):
            if a[i - 1] == b[j - 1]:
                curr[j] = prev[j - 1]
            else:
                curr[j] = 1 + min(prev[j], curr[j - 1], prev[j - 1])

        # row minimum never decreases in later rows
        if max_distance is not None and min(curr) > max_distance:
            return max_distance + 1

        prev, curr = curr, prev

    if max_distance is not None:
        return min(prev[n], max_distance + 1)
    return prev[n]


def similarity(a: str, b: str) -> float:
    """1 - distance / longest length, case-insensitive. Two empty strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1 - edit_distance(a.lower(), b.lower()) / longest


def _similar_enough(title: str, pattern: str) -> bool:
    longest = max(len(title), len(pattern))
    if longest == 0:
        return True
    # similarity > threshold  <=>  distance < (1 - threshold) * longest
    cap = math.ceil((1 - SIMILARITY_THRESHOLD) * longest)
    distance = edit_distance(title, pattern, max_distance=cap)
    return 1 - distance / longest > SIMILARITY_THRESHOLD


def matches_pattern(title: str, patterns: Iterable[str]) -> bool:
    """True if any pattern is a substring of the title or similar enough to it."""
    normalized_title = title.lower()
    for pattern in patterns:
        normalized_pattern = pattern.lower()
        if normalized_pattern in normalized_title:
            return True
        if _similar_enough(normalized_title, normalized_pattern):
            return True
    return False


def is_match_all(patterns: list[str]) -> bool:
    return len(patterns) == 1 and patterns[0] == MATCH_ALL


def is_recent(item: FeedItem, run_config: RunConfig) -> bool:
    """Undated items pass; dated items must parse and not precede min_date."""
    if not item.published_at:
        return True
    published = parse_feed_date(item.published_at)
    if published is None:
        logger.warning(f"Unparseable date {item.published_at!r} for {item.link}")
        return False
    return published >= run_config.min_date


def filter_relevant(items: Iterable[FeedItem], run_config: RunConfig) -> list[FeedItem]:
    match_all = is_match_all(run_config.patterns)
    relevant = []
    for item in items:
        if not is_valid_url(item.link):
            logger.warning(f"Ignoring invalid URL: {item.link}")
            continue
        if not is_recent(item, run_config):
            continue
        if match_all or matches_pattern(item.title, run_config.patterns):
            relevant.append(item)
    return relevant
