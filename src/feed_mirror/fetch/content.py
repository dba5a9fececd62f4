"""Full-page retrieval and HTML sanitization."""

import logging

import httpx
from lxml import etree
from lxml import html as lxml_html

from feed_mirror.config import FetchConfig
from feed_mirror.errors import ContentTooLargeError, ExternalAPIError, InvalidUrlError, TransientNetworkError
from feed_mirror.utils.retry import retry_async
from feed_mirror.utils.urls import is_valid_url

logger = logging.getLogger(__name__)

STRIPPED_TAGS = ("script", "style", "iframe")
URL_ATTRIBUTES = ("href", "src", "action", "formaction", "poster")
UTF8_PARSER = lxml_html.HTMLParser(encoding="utf-8")


async def fetch_full_html(client: httpx.AsyncClient, url: str, config: FetchConfig) -> str:
    """Fetch a page and return its sanitized HTML.

    Raises:
        ContentTooLargeError: If the decoded page exceeds the size ceiling
        ExternalAPIError: On a non-retryable HTTP status
        InvalidUrlError: If `url` is not an absolute http(s) URL
        TransientNetworkError / httpx.TransportError: When retries are exhausted
    """
    if not is_valid_url(url):
        raise InvalidUrlError(f"Invalid URL: {url!r}")

    async def _download() -> str:
        response = await client.get(
            url,
            timeout=config.content_timeout,
            headers={"User-Agent": config.user_agent},
            follow_redirects=True,
        )
        if response.status_code >= 500:
            raise TransientNetworkError(
                f"Failed to fetch HTML: {response.status_code} {response.reason_phrase}"
            )
        if not response.is_success:
            raise ExternalAPIError(
                f"Failed to fetch HTML: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
            )

        text = response.text
        size = len(text.encode("utf-8"))
        if size > config.max_content_bytes:
            raise ContentTooLargeError(
                f"HTML too large: {size / 1024 / 1024:.2f}MB "
                f"(max: {config.max_content_bytes / 1024 / 1024:.0f}MB)"
            )
        return text

    raw = await retry_async(
        _download,
        attempts=config.attempts,
        base_delay=config.retry_base_delay,
        description=f"content {url}",
    )
    return sanitize_html(raw, url)


def sanitize_html(html: str, base_url: str | None = None) -> str:
    """Remove active content and make every link absolute."""
    if not html or not html.strip():
        return ""

    doc = parse_document(html)
    if doc is None:
        logger.warning(f"Could not parse HTML from {base_url}")
        return ""

    for el in doc.xpath("|".join(f"//{tag}" for tag in STRIPPED_TAGS)):
        el.drop_tree()

    if base_url:
        doc.make_links_absolute(base_url, resolve_base_href=True, handle_failures="ignore")

    for el in doc.iter():
        if not isinstance(el.tag, str):
            continue
        for attr in list(el.attrib):
            name = attr.lower()
            if name.startswith("on"):
                del el.attrib[attr]
            elif name in URL_ATTRIBUTES and el.attrib[attr].strip().lower().startswith("javascript:"):
                el.attrib[attr] = "#" if name == "href" else ""

    return lxml_html.tostring(doc, encoding="unicode", method="html", doctype="<!DOCTYPE html>")


def parse_document(html: str):
    """Parse HTML into an lxml tree, or None if there is nothing to parse."""
    if not html or not html.strip():
        return None
    try:
        return lxml_html.document_fromstring(html)
    except ValueError:
        # str input with an XML encoding declaration
        pass
    except etree.ParserError:
        return None
    try:
        return lxml_html.document_fromstring(html.encode("utf-8"), parser=UTF8_PARSER)
    except (etree.ParserError, ValueError):
        return None


def extract_text(html: str) -> str:
    """Plain text of the page with whitespace collapsed."""
    doc = parse_document(html)
    if doc is None:
        return ""
    for el in doc.xpath("//script|//style|//noscript"):
        el.drop_tree()
    return " ".join(doc.text_content().split())


def extract_title(html: str) -> str | None:
    """Page title from <title>, falling back to the first <h1>."""
    doc = parse_document(html)
    if doc is None:
        return None
    for expr in ("//title", "//h1"):
        for el in doc.xpath(expr):
            text = " ".join(el.text_content().split())
            if text:
                return text
    return None
