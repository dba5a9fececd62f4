"""Key-value store backends.

Two backends are available: an in-process dictionary ("memory", used by
tests and local runs) and a Postgres table ("postgres").
"""

import asyncio
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable

import psycopg2
from psycopg2.extras import RealDictCursor

from feed_mirror.config import StoreConfig
from feed_mirror.errors import StoreUnavailableError

DEFAULT_LIST_LIMIT = 1000


@dataclass
class ListResult:
    keys: list[str] = field(default_factory=list)
    cursor: str | None = None
    complete: bool = True


class KVStore:
    """Interface shared by the store backends."""

    async def get(self, key: str) -> str | None:
        raise NotImplementedError

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        raise NotImplementedError

    async def list(
        self, prefix: str | None = None, cursor: str | None = None, limit: int = DEFAULT_LIST_LIMIT
    ) -> ListResult:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryKVStore(KVStore):
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._data: dict[str, tuple[str, float | None]] = {}
        self._clock = clock

    def _live(self, key: str) -> bool:
        entry = self._data.get(key)
        if entry is None:
            return False
        expires = entry[1]
        if expires is not None and expires <= self._clock():
            del self._data[key]
            return False
        return True

    async def get(self, key: str) -> str | None:
        if not self._live(key):
            return None
        return self._data[key][0]

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        expires = self._clock() + ttl if ttl is not None else None
        self._data[key] = (value, expires)

    async def list(
        self, prefix: str | None = None, cursor: str | None = None, limit: int = DEFAULT_LIST_LIMIT
    ) -> ListResult:
        keys = sorted(k for k in list(self._data) if self._live(k) and k.startswith(prefix or ""))
        if cursor is not None:
            keys = [k for k in keys if k > cursor]
        page = keys[:limit]
        complete = len(keys) <= limit
        return ListResult(keys=page, cursor=None if complete else page[-1], complete=complete)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class PostgresKVStore(KVStore):
    """Postgres-backed store. Blocking driver calls run in a worker thread.

    The table is created on first use, so constructing the store never
    touches the database.
    """

    def __init__(self, database_url: str | None = None, table: str = "kv_store"):
        self.database_url = database_url or os.environ.get("DATABASE_URL")
        if not table.isidentifier():
            raise ValueError(f"Invalid table name: {table}")
        self.table = table
        self._table_ready = False

    def get_connection(self):
        if not self.database_url:
            raise StoreUnavailableError("DATABASE_URL is not set")
        return psycopg2.connect(self.database_url)

    @contextmanager
    def get_cursor(self):
        """Context manager for database cursor with automatic commit/rollback."""
        if not self._table_ready:
            self.ensure_table()
        conn = self.get_connection()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def ensure_table(self) -> None:
        conn = self.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(f"""
                    CREATE TABLE IF NOT EXISTS {self.table} (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        expires_at TIMESTAMP WITH TIME ZONE
                    )
                """)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        self._table_ready = True

    def _get(self, key: str) -> str | None:
        with self.get_cursor() as cur:
            cur.execute(
                f"SELECT value FROM {self.table} WHERE key = %s AND (expires_at IS NULL OR expires_at > NOW())",
                (key,),
            )
            row = cur.fetchone()
            return None if row is None else row["value"]

    def _put(self, key: str, value: str, ttl: int | None) -> None:
        with self.get_cursor() as cur:
            cur.execute(f"""
                INSERT INTO {self.table} (key, value, expires_at)
                VALUES (%s, %s, CASE WHEN %s::int IS NULL THEN NULL ELSE NOW() + make_interval(secs => %s::int) END)
                ON CONFLICT (key)
                DO UPDATE SET value = EXCLUDED.value, expires_at = EXCLUDED.expires_at
            """, (key, value, ttl, ttl))

    def _list(self, prefix: str | None, cursor: str | None, limit: int) -> ListResult:
        with self.get_cursor() as cur:
            cur.execute(f"""
                SELECT key FROM {self.table}
                WHERE key LIKE %s AND key > %s
                  AND (expires_at IS NULL OR expires_at > NOW())
                ORDER BY key
                LIMIT %s
            """, (_like_prefix(prefix), cursor or "", limit + 1))
            keys = [row["key"] for row in cur.fetchall()]
        complete = len(keys) <= limit
        page = keys[:limit]
        return ListResult(keys=page, cursor=None if complete else page[-1], complete=complete)

    def _delete(self, key: str) -> None:
        with self.get_cursor() as cur:
            cur.execute(f"DELETE FROM {self.table} WHERE key = %s", (key,))

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get, key)

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        await asyncio.to_thread(self._put, key, value, ttl)

    async def list(
        self, prefix: str | None = None, cursor: str | None = None, limit: int = DEFAULT_LIST_LIMIT
    ) -> ListResult:
        return await asyncio.to_thread(self._list, prefix, cursor, limit)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)


def _like_prefix(prefix: str | None) -> str:
    if not prefix:
        return "%"
    escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"{escaped}%"


def get_store(config: StoreConfig) -> KVStore:
    """Build the configured store backend."""
    if config.backend == "memory":
        return MemoryKVStore()
    if config.backend == "postgres":
        return PostgresKVStore(config.database_url, config.table)
    raise ValueError(f"Unknown store backend: {config.backend}")
