"""Best-effort notifications after a durable publish."""

import asyncio
import logging

import httpx

from feed_mirror.config import EmailConfig, FetchConfig
from feed_mirror.models import MirroredItem
from feed_mirror.notify.email import EmailProvider, build_message, build_provider, send_email
from feed_mirror.notify.push import write_push_marker
from feed_mirror.store.items import ItemRepository

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Spawns notification work as background tasks.

    Failures are logged and swallowed. `drain()` waits for every pending task.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        items: ItemRepository,
        email_config: EmailConfig,
        fetch_config: FetchConfig,
        provider: EmailProvider | None = None,
    ):
        self.client = client
        self.items = items
        self.email_config = email_config
        self.fetch_config = fetch_config
        self._provider = provider
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, item: MirroredItem) -> asyncio.Task:
        public_url = item.mirror_url or item.store_url or item.source_url
        task = asyncio.create_task(self.notify(item, public_url), name=f"notify-{item.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def notify(self, item: MirroredItem, public_url: str) -> None:
        await self.send_email(item, public_url)
        await self.send_push(item, public_url)

    async def send_email(self, item: MirroredItem, public_url: str) -> None:
        try:
            message = build_message(item, public_url, self.email_config)
            if message is None:
                return
            if self._provider is None:
                self._provider = build_provider(self.email_config)
            await send_email(self.client, self._provider, message, self.email_config, self.fetch_config)
        except Exception:
            logger.exception(
                f"Failed to send notification email for {item.id} "
                f"(provider={self.email_config.provider}, title={item.title!r})"
            )

    async def send_push(self, item: MirroredItem, public_url: str) -> None:
        try:
            await write_push_marker(self.items, item, public_url)
        except Exception:
            logger.exception(f"Failed to prepare push notification for {item.id}")
