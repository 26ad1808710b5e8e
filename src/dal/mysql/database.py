import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional
from urllib.parse import unquote, urlparse

import aiomysql
import pymysql

from common.config.settings import DatabaseConfig
from common.errors import DatabaseError
from dal.tracing import trace_query_operation
from dal.util.placeholders import translate_placeholders

logger = logging.getLogger(__name__)


def _connect_kwargs(config: DatabaseConfig) -> Dict[str, Any]:
    if config.url:
        parsed = urlparse(config.url)
        return {
            "host": parsed.hostname or "localhost",
            "port": parsed.port or 3306,
            "user": unquote(parsed.username or ""),
            "password": unquote(parsed.password or ""),
            "db": parsed.path.lstrip("/") or None,
        }
    return {
        "host": config.host,
        "port": config.port or 3306,
        "user": config.user,
        "password": config.password or "",
        "db": config.name,
    }


class MysqlDatabase:
    """MySQL database handle backed by an aiomysql pool."""

    dialect = "mysql"

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._pool: Optional[aiomysql.Pool] = None

    @property
    def default_schema(self) -> Optional[str]:
        return self._config.schema_name

    async def init(self) -> None:
        """Create the connection pool (autocommit; transactions are explicit)."""
        if self._pool is not None:
            return
        kwargs = _connect_kwargs(self._config)
        try:
            self._pool = await aiomysql.create_pool(
                maxsize=max(self._config.pool_size, 1),
                connect_timeout=self._config.timeout_seconds,
                autocommit=True,
                cursorclass=aiomysql.DictCursor,
                **kwargs,
            )
        except (OSError, pymysql.MySQLError) as exc:
            raise DatabaseError(
                f"Failed to connect to MySQL: {exc}", dialect=self.dialect, operation="connect"
            ) from exc
        logger.info("MySQL pool established: %s/%s", kwargs["host"], kwargs["db"])

    async def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            await self._pool.wait_closed()
            self._pool = None

    @asynccontextmanager
    async def get_connection(self):
        """Borrow one pooled connection for the duration of the block."""
        if self._pool is None:
            raise DatabaseError(
                "MySQL pool not initialized. Call init() first.",
                dialect=self.dialect,
                operation="acquire",
            )
        async with self._pool.acquire() as conn:
            yield _MysqlConnection(conn)


class _MysqlConnection:
    """Adapter providing asyncpg-like helpers over aiomysql."""

    def __init__(self, conn: aiomysql.Connection) -> None:
        self._conn = conn

    async def execute(self, sql: str, *params: Any) -> str:
        sql, bound_params = translate_placeholders(sql, list(params), "%s", "mysql")

        async def _run():
            async with self._conn.cursor() as cursor:
                await cursor.execute(sql, bound_params)
                return _format_execute_status(sql, cursor.rowcount)

        return await trace_query_operation("mysql", "execute", sql, _run())

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        sql, bound_params = translate_placeholders(sql, list(params), "%s", "mysql")

        async def _run():
            async with self._conn.cursor() as cursor:
                await cursor.execute(sql, bound_params)
                rows = await cursor.fetchall()
                return [{key.lower(): value for key, value in row.items()} for row in rows]

        return await trace_query_operation("mysql", "fetch", sql, _run())

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
