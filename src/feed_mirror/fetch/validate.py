"""Quality screening for manually registered URLs.

Rules are evaluated in order until one accepts; a page matching none is
rejected with a reason.
"""

import logging
import re
from dataclasses import dataclass

from feed_mirror.fetch.content import extract_text, parse_document

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 50

DOMAIN_KEYWORDS = (
    "comunicado",
    "discernimento",
    "comunidade",
    "shalom",
    "fundador",
    "vocação",
    "missão",
    "oração",
    "igreja",
)

STRUCTURAL_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6", "p", "article", "section", "main", "ul", "ol")

ERROR_MARKERS = re.compile(
    r"\b(404|403|500|not found|page not found|error|erro|forbidden|access denied"
    r"|não encontrad[ao]|pagina nao encontrada|página não encontrada)\b",
    re.IGNORECASE,
)


@dataclass
class ContentValidation:
    valid: bool
    reason: str | None = None


def has_structure(html: str) -> bool:
    doc = parse_document(html)
    if doc is None:
        return False
    return bool(doc.xpath("|".join(f"//{tag}" for tag in STRUCTURAL_TAGS)))


def has_error_marker(html: str) -> bool:
    """Error wording inside <title> or the primary heading."""
    doc = parse_document(html)
    if doc is None:
        return False
    for el in doc.xpath("//title|//h1"):
        if ERROR_MARKERS.search(el.text_content()):
            return True
    return False


def validate_content(html: str, text: str | None = None) -> ContentValidation:
    """Classify a page as substantive content or an error/placeholder page."""
    if text is None:
        text = extract_text(html)
    length = len(text)

    if length < MIN_TEXT_LENGTH:
        return ContentValidation(False, f"Content too short ({length} chars, minimum {MIN_TEXT_LENGTH})")

    lowered = text.lower()
    if any(keyword in lowered for keyword in DOMAIN_KEYWORDS):
        return ContentValidation(True)

    structured = has_structure(html)
    if length >= 200 and structured:
        return ContentValidation(True)
    if length >= 500:
        return ContentValidation(True)
    if length >= 150 and not has_error_marker(html):
        return ContentValidation(True)
    if structured and length >= 100:
        return ContentValidation(True)

    reason = f"Content does not look substantive ({length} chars"
    reason += ", no structural elements)" if not structured else ")"
    logger.debug(f"Rejected content: {reason}")
    return ContentValidation(False, reason)
