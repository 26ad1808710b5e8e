import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import asyncpg

from common.config.settings import DatabaseConfig
from common.errors import DatabaseError
from dal.tracing import trace_query_operation

logger = logging.getLogger(__name__)


class PostgresDatabase:
    """PostgreSQL database handle backed by an asyncpg pool."""

    dialect = "postgres"

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._pool: Optional[asyncpg.Pool] = None

    @property
    def default_schema(self) -> str:
        return self._config.schema_name or "public"

    def _dsn(self) -> str:
        config = self._config
        if config.url:
            return config.url
        user = config.user or "postgres"
        password = f":{config.password}" if config.password else ""
        return f"postgresql://{user}{password}@{config.host}:{config.port}/{config.name or user}"

    async def init(self) -> None:
        """Create the connection pool."""
        if self._pool is not None:
            return
        try:
            self._pool = await asyncpg.create_pool(
                self._dsn(),
                min_size=1,
                max_size=max(self._config.pool_size, 1),
                command_timeout=self._config.timeout_seconds,
                server_settings={"application_name": "schema_sync"},
            )
        except (OSError, asyncpg.PostgresError) as exc:
            raise DatabaseError(
                f"Failed to connect to PostgreSQL: {exc}", dialect=self.dialect, operation="connect"
            ) from exc
        logger.info("PostgreSQL pool established: %s/%s", self._config.host, self._config.name)

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def get_connection(self):
        """Borrow one pooled connection for the duration of the block."""
        if self._pool is None:
            raise DatabaseError(
                "PostgreSQL pool not initialized. Call init() first.",
                dialect=self.dialect,
                operation="acquire",
            )
        async with self._pool.acquire() as conn:
            yield _PostgresConnection(conn)


class _PostgresConnection:
    """Traced proxy over an asyncpg connection."""

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    async def execute(self, sql: str, *params: Any) -> str:
        return await trace_query_operation(
            "postgres", "execute", sql, self._conn.execute(sql, *params)
        )

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        async def _run():
            rows = await self._conn.fetch(sql, *params)
            return [dict(row) for row in rows]

        return await trace_query_operation("postgres", "fetch", sql, _run())

    async def fetchrow(self, sql: str, *params: Any) -> Optional[Dict[str, Any]]:
        rows = await self.fetch(sql, *params)
        return rows[0] if rows else None

    async def fetchval(self, sql: str, *params: Any) -> Any:
        row = await self.fetchrow(sql, *params)
        if row is None:
            return None
        return next(iter(row.values()))
