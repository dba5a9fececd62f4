from feed_mirror.store.items import LAST_NOTIFICATION_KEY, ItemRepository
from feed_mirror.store.kv import KVStore, ListResult, MemoryKVStore, PostgresKVStore, get_store

__all__ = [
    "ItemRepository",
    "KVStore",
    "LAST_NOTIFICATION_KEY",
    "ListResult",
    "MemoryKVStore",
    "PostgresKVStore",
    "get_store",
]
