"""MirroredItem persistence on top of the key-value store."""

import json
import logging
import re
from typing import AsyncIterator

from feed_mirror.models import MirroredItem
from feed_mirror.store.kv import KVStore
from feed_mirror.utils.hashing import ITEM_ID_LENGTH
from feed_mirror.utils.serialization import dump_dataclass, load_dataclass

logger = logging.getLogger(__name__)

LAST_NOTIFICATION_KEY = "last_notification"
ITEM_KEY_RE = re.compile(rf"^[0-9a-f]{{{ITEM_ID_LENGTH}}}$")


class ItemRepository:
    """Reads and writes MirroredItems keyed by their id."""

    def __init__(self, store: KVStore):
        self.store = store

    async def get(self, item_id: str) -> MirroredItem | None:
        """Load an item. Unreadable records are logged and treated as absent."""
        raw = await self.store.get(item_id)
        if raw is None:
            return None
        try:
            return load_dataclass(MirroredItem, raw)
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to parse stored item {item_id}: {e}")
            return None

    async def save(self, item: MirroredItem) -> None:
        await self.store.put(item.id, dump_dataclass(item))

    async def iter_items(self) -> AsyncIterator[MirroredItem]:
        """Iterate every stored MirroredItem, skipping bookkeeping keys."""
        cursor = None
        while True:
            page = await self.store.list(cursor=cursor)
            for key in page.keys:
                if not ITEM_KEY_RE.match(key):
                    continue
                item = await self.get(key)
                if item is not None:
                    yield item
            if page.complete:
                break
            cursor = page.cursor

    async def put_notification(self, event: dict) -> None:
        await self.store.put(LAST_NOTIFICATION_KEY, json.dumps(event, ensure_ascii=False))

    async def last_notification(self) -> dict | None:
        raw = await self.store.get(LAST_NOTIFICATION_KEY)
        return None if raw is None else json.loads(raw)
