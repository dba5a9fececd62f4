"""Push marker for polling clients.

Only the most recent notification is kept; each write overwrites the last.
"""

import logging
import time

from feed_mirror.models import MirroredItem
from feed_mirror.store.items import ItemRepository

logger = logging.getLogger(__name__)


def build_event(item: MirroredItem, public_url: str, now_ms: int | None = None) -> dict:
    return {
        "id": item.id,
        "title": item.title,
        "url": public_url,
        "timestamp": now_ms if now_ms is not None else int(time.time() * 1000),
    }


async def write_push_marker(items: ItemRepository, item: MirroredItem, public_url: str) -> dict:
    event = build_event(item, public_url)
    await items.put_notification(event)
    logger.info(f"Push notification prepared for {item.id} ({item.title})")
    return event
