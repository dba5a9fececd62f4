"""Identity assignment and new/duplicate/reprocess decisions."""

import logging
import uuid as uuid_lib
from dataclasses import dataclass
from enum import Enum

from feed_mirror.models import FeedItem, MirroredItem
from feed_mirror.store.items import ItemRepository
from feed_mirror.utils.hashing import generate_item_id

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    NEW = "new"
    DUPLICATE = "duplicate"
    REPROCESS = "reprocess"


@dataclass
class Identity:
    id: str
    uuid: str
    decision: Decision
    existing: MirroredItem | None = None


def new_uuid() -> str:
    return str(uuid_lib.uuid4())


def decide(item: FeedItem, existing: MirroredItem | None) -> Decision:
    """Decide what to do with a feed item given its stored record (if any)."""
    if existing is None:
        return Decision.NEW
    if not existing.revision or not existing.uuid:
        return Decision.REPROCESS
    if existing.source_url == item.link or existing.title == item.title:
        return Decision.DUPLICATE
    return Decision.REPROCESS


async def identify(item: FeedItem, items: ItemRepository) -> Identity:
    """Derive the item's id and look it up in the store."""
    item_id = generate_item_id(item.link)
    existing = await items.get(item_id)
    decision = decide(item, existing)

    if existing is not None and existing.uuid:
        item_uuid = existing.uuid
    else:
        item_uuid = new_uuid()

    logger.debug(f"Identified {item_id} as {decision.value} ({item.title})")
    return Identity(id=item_id, uuid=item_uuid, decision=decision, existing=existing)
