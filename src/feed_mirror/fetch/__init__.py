"""Feed and page retrieval."""

from feed_mirror.fetch.content import extract_text, fetch_full_html, sanitize_html
from feed_mirror.fetch.feeds import fetch_feed, fetch_feeds, merge_items, parse_feed
from feed_mirror.fetch.validate import ContentValidation, validate_content

__all__ = [
    "ContentValidation",
    "extract_text",
    "fetch_feed",
    "fetch_feeds",
    "fetch_full_html",
    "merge_items",
    "parse_feed",
    "sanitize_html",
    "validate_content",
]
