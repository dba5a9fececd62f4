"""Tests for feed_mirror.dedup module."""

import asyncio

from feed_mirror.dedup import Decision, decide, identify
from feed_mirror.models import FeedItem, MirroredItem
from feed_mirror.store.items import ItemRepository
from feed_mirror.store.kv import MemoryKVStore
from feed_mirror.utils.hashing import generate_item_id

LINK = "https://x/y"


def _stored(**overrides) -> MirroredItem:
    values = dict(
        id=generate_item_id(LINK),
        uuid="11111111-2222-3333-4444-555555555555",
        title="Discernimentos",
        source_url=LINK,
        published_at="2025-09-15T00:00:00+00:00",
        body_html="<p>x</p>",
        revision="abc123",
    )
    values.update(overrides)
    return MirroredItem(**values)


class TestDecide:
    def test_new_when_absent(self) -> None:
        assert decide(FeedItem(title="t", link=LINK), None) == Decision.NEW

    def test_duplicate_when_published_and_same_link(self) -> None:
        assert decide(FeedItem(title="Other", link=LINK), _stored()) == Decision.DUPLICATE

    def test_duplicate_when_same_title(self) -> None:
        item = FeedItem(title="Discernimentos", link=LINK)
        assert decide(item, _stored(source_url="https://x/old")) == Decision.DUPLICATE

    def test_reprocess_when_never_published(self) -> None:
        assert decide(FeedItem(title="t", link=LINK), _stored(revision=None)) == Decision.REPROCESS

    def test_reprocess_when_uuid_missing(self) -> None:
        assert decide(FeedItem(title="t", link=LINK), _stored(uuid="")) == Decision.REPROCESS

    def test_reprocess_when_record_differs(self) -> None:
        item = FeedItem(title="Novo", link=LINK)
        assert decide(item, _stored(source_url="https://x/old")) == Decision.REPROCESS


class TestIdentify:
    def test_new_item_gets_fresh_uuid(self) -> None:
        items = ItemRepository(MemoryKVStore())
        identity = asyncio.run(identify(FeedItem(title="t", link=LINK), items))

        assert identity.id == generate_item_id(LINK)
        assert identity.decision == Decision.NEW
        assert len(identity.uuid) == 36
        assert identity.existing is None

    def test_reuses_existing_uuid(self) -> None:
        items = ItemRepository(MemoryKVStore())
        stored = _stored(revision=None)

        async def run():
            await items.save(stored)
            return await identify(FeedItem(title="t", link=LINK), items)

        identity = asyncio.run(run())
        assert identity.decision == Decision.REPROCESS
        assert identity.uuid == stored.uuid
        assert identity.existing == stored
