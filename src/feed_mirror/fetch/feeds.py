"""RSS / Atom feed fetching."""

import asyncio
import logging
import re
from typing import Iterable

import feedparser
import httpx

from feed_mirror.config import FetchConfig
from feed_mirror.errors import FeedFetchError, TransientNetworkError
from feed_mirror.models import FeedItem
from feed_mirror.utils.retry import retry_async
from feed_mirror.utils.urls import is_valid_url, sanitize_url

logger = logging.getLogger(__name__)

COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
ROOT_ELEMENT_RE = re.compile(r"<(?![?!])([\w:.-]+)")
FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"


async def fetch_feed(client: httpx.AsyncClient, feed_url: str, config: FetchConfig) -> list[FeedItem]:
    """Fetch and parse a single feed, retrying with backoff.

    Raises:
        FeedFetchError: If every attempt failed
    """

    async def _download() -> str:
        response = await client.get(
            feed_url,
            timeout=config.feed_timeout,
            headers={"User-Agent": config.user_agent, "Accept": FEED_ACCEPT},
            follow_redirects=True,
        )
        if not response.is_success:
            raise TransientNetworkError(
                f"Failed to fetch feed: {response.status_code} {response.reason_phrase}"
            )
        if not response.text.strip():
            raise TransientNetworkError("Empty feed response")
        return response.text

    try:
        text = await retry_async(
            _download,
            attempts=config.attempts,
            base_delay=config.retry_base_delay,
            retryable=lambda e: isinstance(e, (TransientNetworkError, httpx.TransportError)),
            description=f"feed {feed_url}",
        )
    except Exception as e:
        raise FeedFetchError(
            f"Failed to fetch feed {feed_url} after {config.attempts} attempts: {e}"
        ) from e

    items = parse_feed(text, feed_url)
    if not items:
        logger.warning(f"No items found in feed {feed_url}")
    return items


def is_atom(text: str, version: str = "") -> bool:
    if version.startswith("atom"):
        return True
    match = ROOT_ELEMENT_RE.search(COMMENT_RE.sub("", text))
    return match is not None and match.group(1).split(":")[-1] == "feed"


def parse_feed(text: str, feed_url: str = "") -> list[FeedItem]:
    """Parse feed XML into FeedItems, dropping unusable entries."""
    parsed = feedparser.parse(text)
    atom = is_atom(text, getattr(parsed, "version", "") or "")

    items = []
    for entry in parsed.entries:
        try:
            item = _parse_entry(entry, atom)
        except Exception as e:
            logger.warning(f"Failed to parse entry in {feed_url}: {e}")
            continue
        if item is not None:
            items.append(item)

    return items


def _parse_entry(entry, atom: bool) -> FeedItem | None:
    """Parse a single feed entry into a FeedItem."""
    title = (entry.get("title") or "").strip()
    raw_link = entry.get("link") or entry.get("id") or ""

    if not title:
        logger.warning(f"Dropping entry without title: {raw_link!r}")
        return None

    link = sanitize_url(raw_link)
    if link is None:
        logger.warning(f"Dropping entry with invalid link: {raw_link!r} ({title})")
        return None

    if atom:
        published = entry.get("published") or entry.get("updated") or ""
    else:
        published = entry.get("published") or entry.get("updated") or entry.get("date") or ""

    summary = entry.get("summary") or ""
    if not summary and entry.get("content"):
        summary = entry["content"][0].get("value", "")

    return FeedItem(
        title=title,
        link=link,
        published_at=published.strip(),
        summary=summary.strip(),
    )


async def fetch_feeds(
    client: httpx.AsyncClient, feed_urls: Iterable[str], config: FetchConfig
) -> tuple[list[FeedItem], int]:
    """Fetch all feeds concurrently.

    Returns:
        Tuple of (items from every successful feed, number of failed feeds)
    """
    valid_urls = []
    for feed_url in feed_urls:
        if not is_valid_url(feed_url):
            logger.warning(f"Ignoring invalid feed URL: {feed_url}")
            continue
        valid_urls.append(feed_url)

    results = await asyncio.gather(
        *(fetch_feed(client, url, config) for url in valid_urls),
        return_exceptions=True,
    )

    items = []
    failed = 0
    for feed_url, result in zip(valid_urls, results):
        if isinstance(result, BaseException):
            logger.error(f"Failed to process feed {feed_url}: {result}")
            failed += 1
            continue
        logger.info(f"Found {len(result)} items in {feed_url}")
        items.extend(result)

    return items, failed


def merge_items(items: Iterable[FeedItem]) -> list[FeedItem]:
    """Deduplicate items by link. The last occurrence wins, first position is kept."""
    by_link: dict[str, FeedItem] = {}
    for item in items:
        by_link[item.link] = item
    return list(by_link.values())
