"""Collaborators shared by one pipeline invocation."""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx

from feed_mirror.config import Config
from feed_mirror.notify.dispatcher import NotificationDispatcher
from feed_mirror.publish.github import GitHubPublisher
from feed_mirror.store.items import ItemRepository
from feed_mirror.store.kv import KVStore, get_store


@dataclass
class PipelineContext:
    config: Config
    client: httpx.AsyncClient
    items: ItemRepository
    publisher: GitHubPublisher
    notifier: NotificationDispatcher


def build_context(config: Config, client: httpx.AsyncClient, store: KVStore) -> PipelineContext:
    items = ItemRepository(store)
    return PipelineContext(
        config=config,
        client=client,
        items=items,
        publisher=GitHubPublisher(client, config.github, config.fetch),
        notifier=NotificationDispatcher(client, items, config.email, config.fetch),
    )


@asynccontextmanager
async def open_context(config: Config, store: KVStore | None = None) -> AsyncIterator[PipelineContext]:
    """Open an HTTP client and store for one invocation; drains notifications on exit."""
    async with httpx.AsyncClient() as client:
        ctx = build_context(config, client, store or get_store(config.store))
        try:
            yield ctx
        finally:
            await ctx.notifier.drain()
