"""URL and address validation."""

import re
from urllib.parse import urlparse

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def sanitize_url(url: str | None) -> str | None:
    """Return the URL stripped when it is an absolute http(s) URL, else None."""
    if not url:
        return None
    url = url.strip()
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return url


def is_valid_url(url: str | None) -> bool:
    return sanitize_url(url) is not None


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_RE.match(email.strip()) is not None
