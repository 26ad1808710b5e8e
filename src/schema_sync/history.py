import logging
from typing import List, Optional

from common.errors import DatabaseError
from common.interfaces import Connection, Database, DdlRenderer
from schema.model import AppliedMigration, MigrationUnit

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_TABLE = "schema_migrations"


class HistoryStore:
    """Flat ledger of applied migration units kept inside the target database."""

    def __init__(
        self,
        database: Database,
        renderer: DdlRenderer,
        table_name: str = DEFAULT_HISTORY_TABLE,
    ) -> None:
        self._database = database
        self._renderer = renderer
        self.table_name = table_name

    async def ensure_table(self, conn: Optional[Connection] = None) -> None:
        """Create the history table if it does not exist."""
        if conn is None:
            async with self._database.get_connection() as borrowed:
                await self.ensure_table(borrowed)
            return
        try:
            for statement in self._renderer.history_table_sql(self.table_name):
                await conn.execute(statement)
        except Exception as exc:
            raise DatabaseError(
                f"Failed to create migration history table '{self.table_name}': {exc}",
                dialect=self._renderer.dialect,
                operation="ensure_history_table",
                table=self.table_name,
            ) from exc
        logger.debug("Migration history table %s ready", self.table_name)

    async def record(
        self,
        conn: Connection,
        unit: MigrationUnit,
        checksum: Optional[str],
        execution_time_ms: Optional[int],
    ) -> None:
        """Insert one history row on the caller's connection (inside its transaction)."""
        await conn.execute(
            self._renderer.insert_history_sql(self.table_name),
            unit.migration_id,
            unit.name,
            checksum,
            execution_time_ms,
        )

    async def list_applied(self) -> List[AppliedMigration]:
        """Return recorded migrations in id order."""
        try:
            async with self._database.get_connection() as conn:
                rows = await conn.fetch(self._renderer.select_history_sql(self.table_name))
        except Exception as exc:
            raise DatabaseError(
                f"Failed to read migration history from '{self.table_name}': {exc}",
                dialect=self._renderer.dialect,
                operation="list_history",
                table=self.table_name,
            ) from exc
        return [AppliedMigration.model_validate(dict(row)) for row in rows]
