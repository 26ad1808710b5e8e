import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import aiosqlite

from common.config.settings import DatabaseConfig
from common.errors import DatabaseError
from dal.tracing import trace_query_operation
from dal.util.placeholders import translate_placeholders

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


def _resolve_path(config: DatabaseConfig) -> str:
    if config.path:
        return config.path
    url = config.url or ""
    for prefix in ("sqlite:///", "sqlite://", "sqlite:"):
        if url.startswith(prefix):
            return url[len(prefix) :] or MEMORY_PATH
    return url or MEMORY_PATH


class SqliteDatabase:
    """SQLite database handle over aiosqlite.

    File databases open one connection per borrow. An in-memory database only
    exists while its connection is open, so it keeps a single shared connection.
    """

    dialect = "sqlite"

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._path = _resolve_path(config)
        self._shared: Optional[aiosqlite.Connection] = None
        self._shared_lock = asyncio.Lock()

    @property
    def path(self) -> str:
        return self._path

    @property
    def default_schema(self) -> Optional[str]:
        return None

    async def _connect(self) -> aiosqlite.Connection:
        try:
            conn = await aiosqlite.connect(
                self._path, timeout=self._config.timeout_seconds, isolation_level=None
            )
        except sqlite3.Error as exc:
            raise DatabaseError(
                f"Failed to open SQLite database '{self._path}': {exc}",
                dialect=self.dialect,
                operation="connect",
            ) from exc
        conn.row_factory = sqlite3.Row
        await conn.execute("PRAGMA foreign_keys = ON")
        return conn

    async def init(self) -> None:
        if self._path == MEMORY_PATH and self._shared is None:
            self._shared = await self._connect()
        logger.info("SQLite database ready: %s", self._path)

    async def close(self) -> None:
        if self._shared is not None:
            await self._shared.close()
            self._shared = None

    @asynccontextmanager
    async def get_connection(self):
        """Yield a connection wrapper for the duration of the block."""
        if self._path == MEMORY_PATH:
            if self._shared is None:
                raise DatabaseError(
                    "SQLite in-memory database not initialized. Call init() first.",
                    dialect=self.dialect,
                    operation="acquire",
                )
            async with self._shared_lock:
                yield _SqliteConnection(self._shared)
            return

        conn = await self._connect()
        try:
            yield _SqliteConnection(conn)
        finally:
            await conn.close()


class _SqliteConnection:
    """Adapter providing asyncpg-like helpers over aiosqlite."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def execute(self, sql: str, *params: Any) -> str:
        sql, bound_params = translate_placeholders(sql, list(params), "?", "sqlite")

        async def _run():
            cursor = await self._conn.execute(sql, bound_params or ())
            return _format_execute_status(sql, cursor.rowcount)

        return await trace_query_operation("sqlite", "execute", sql, _run())

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        sql, bound_params = translate_placeholders(sql, list(params), "?", "sqlite")

        async def _run():
            cursor = await self._conn.execute(sql, bound_params or ())
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

        return await trace_query_operation("sqlite", "fetch", sql, _run())

    async def fetchrow(self, sql: str, *params: Any) -> Optional[Dict[str, Any]]:
        rows = await self.fetch(sql, *params)
        return rows[0] if rows else None

    async def fetchval(self, sql: str, *params: Any) -> Any:
        row = await self.fetchrow(sql, *params)
        if row is None:
            return None
        return next(iter(row.values()))


def _format_execute_status(sql: str, rowcount: int) -> str:
    verb = sql.strip().split(maxsplit=1)
    if not verb:
        return "OK"
    op = verb[0].upper()
    if op in {"INSERT", "UPDATE", "DELETE"} and rowcount >= 0:
        return f"{op} {rowcount}"
    return "OK"
