"""Apply migration units with per-unit transactions and history tracking.

Run states move ``START -> ENSURE_HISTORY_TABLE -> (APPLY -> RECORD_HISTORY)*
-> DONE``. A failing unit is rolled back and the run ends in ``FAILED``; units
committed before it stay applied and recorded.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from common.config.settings import MigrationsConfig
from common.errors import MigrationError
from common.interfaces import Connection, Database, DdlRenderer
from common.observability import run_id_var, sync_metrics
from common.utils.hashing import sha256_hex
from schema.model import MigrationRun, MigrationState, MigrationUnit
from schema_sync.history import HistoryStore

logger = logging.getLogger(__name__)

MIGRATION_ID_FORMAT = "%Y%m%d%H%M%S"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def assign_migration_ids(units: Sequence[MigrationUnit], timestamp: datetime) -> None:
    """Stamp ``<YYYYMMDDHHMMSS>_<seq>`` ids onto units, sequence starting at 1."""
    stamp = timestamp.strftime(MIGRATION_ID_FORMAT)
    for seq, unit in enumerate(units, start=1):
        unit.migration_id = f"{stamp}_{seq:04d}"


class MigrationExecutor:
    """Writes migration files and applies units against a database."""

    def __init__(
        self,
        database: Database,
        renderer: DdlRenderer,
        config: Optional[MigrationsConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        history: Optional[HistoryStore] = None,
    ) -> None:
        self._database = database
        self._renderer = renderer
        self._config = config or MigrationsConfig()
        self._clock = clock or _utc_now
        self.history = history or HistoryStore(database, renderer, self._config.history_table)
        self.last_run: Optional[MigrationRun] = None

    async def apply(self, units: Sequence[MigrationUnit]) -> MigrationRun:
        """Write and (unless dry-run) apply units in order.

        Raises:
            MigrationError: If a unit fails; its transaction is rolled back first.
        """
        run = MigrationRun(
            run_id=uuid.uuid4().hex,
            dry_run=self._config.dry_run,
            units=list(units),
        )
        self.last_run = run
        token = run_id_var.set(run.run_id)
        try:
            assign_migration_ids(run.units, self._clock())
            self._write_files(run.units)

            if run.dry_run:
                run.state = MigrationState.DONE
                logger.info("Dry run: %d migration units written, none applied", len(run.units))
                return run

            run.state = MigrationState.ENSURE_HISTORY_TABLE
            await self.history.ensure_table()

            for unit in run.units:
                run.state = MigrationState.APPLY
                await self._apply_unit(run, unit)
                run.applied.append(unit.migration_id)

            run.state = MigrationState.DONE
            logger.info("Applied %d migration units", len(run.applied))
            return run
        except Exception as exc:
            run.state = MigrationState.FAILED
            run.error = str(exc)
            raise
        finally:
            run_id_var.reset(token)

    def _write_files(self, units: List[MigrationUnit]) -> None:
        directory = Path(self._config.directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            for unit in units:
                path = directory / unit.name
                path.write_text(unit.sql, encoding="utf-8")
                unit.file_path = str(path)
        except OSError as exc:
            raise MigrationError(
                f"Failed to write migration files to '{directory}': {exc}",
                dialect=self._renderer.dialect,
            ) from exc

    async def _apply_unit(self, run: MigrationRun, unit: MigrationUnit) -> None:
        transactional = self._config.transaction_per_migration
        statement = None
        started = time.perf_counter()
        async with self._database.get_connection() as conn:
            try:
                if transactional:
                    await conn.execute("BEGIN")
                for statement in unit.statements:
                    await conn.execute(statement)
                statement = None
                execution_time_ms = int((time.perf_counter() - started) * 1000)

                run.state = MigrationState.RECORD_HISTORY
                await self.history.record(conn, unit, sha256_hex(unit.sql), execution_time_ms)
                if transactional:
                    await conn.execute("COMMIT")
            except Exception as exc:
                if transactional:
                    await self._rollback(conn, unit)
                self._record_metrics("failed", time.perf_counter() - started)
                logger.error("Migration %s failed: %s", unit.name, exc)
                raise MigrationError(
                    f"Migration {unit.name} failed: {exc}",
                    dialect=self._renderer.dialect,
                    migration_id=unit.migration_id,
                    statement=statement,
                ) from exc

        self._record_metrics("applied", time.perf_counter() - started)
        logger.info("Applied migration %s (%d statements)", unit.name, len(unit.statements))

    async def _rollback(self, conn: Connection, unit: MigrationUnit) -> None:
        try:
            await conn.execute("ROLLBACK")
        except Exception as exc:
            logger.warning("Rollback of migration %s failed: %s", unit.name, exc)

    def _record_metrics(self, status: str, elapsed: float) -> None:
        sync_metrics.record_migration_unit(self._renderer.dialect, status, elapsed * 1000)
