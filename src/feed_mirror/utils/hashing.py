"""Hashing utilities."""

import hashlib

ITEM_ID_LENGTH = 32


def generate_item_id(link: str) -> str:
    """Generate a stable, deterministic item ID from a feed item link."""
    return hashlib.sha256(link.encode("utf-8")).hexdigest()[:ITEM_ID_LENGTH]


def content_hash(text: str) -> str:
    """Hash of normalized plain text, used to detect changed pages."""
    normalized = " ".join(text.split())
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()
