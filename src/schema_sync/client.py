"""High-level orchestration of one schema sync run.

The client owns the dialect choice: it builds the analyzer and DDL renderer for
the configured driver once, and every later step works through them.

Example:
    >>> client = await SchemaSyncClient.create(SchemaSyncConfig.from_env())
    >>> client.register_models([User, Post])
    >>> run = await client.sync_database()
    >>> await client.close()
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional

from common.config.settings import SchemaSyncConfig
from common.interfaces import Database
from dal.factory import create_database, create_ddl_renderer, create_schema_analyzer
from schema.descriptor import ModelDescriptor
from schema.model import DatabaseSchema, MigrationRun, MigrationUnit, SchemaDiff
from schema_sync.diff import diff_schemas
from schema_sync.executor import MigrationExecutor
from schema_sync.generator import MigrationGenerator
from schema_sync.registry import ModelRegistry

logger = logging.getLogger(__name__)


class SchemaSyncClient:
    """Analyze, diff, generate and apply for one database."""

    def __init__(
        self,
        config: SchemaSyncConfig,
        database: Database,
        registry: Optional[ModelRegistry] = None,
    ) -> None:
        self.config = config
        self.database = database
        self.dialect = database.dialect
        self.schema_name = config.database.schema_name or getattr(
            database, "default_schema", None
        )
        self.analyzer = create_schema_analyzer(self.dialect, database, self.schema_name)
        self.renderer = create_ddl_renderer(self.dialect, config.database.schema_name)
        self.registry = registry or ModelRegistry(
            config, max_identifier_length=self.renderer.max_identifier_length
        )
        self.generator = MigrationGenerator(self.renderer)
        self.executor = MigrationExecutor(database, self.renderer, config.migrations)

    @classmethod
    async def create(cls, config: SchemaSyncConfig) -> "SchemaSyncClient":
        """Build and initialize the database for ``config.database.driver``.

        Raises:
            ConfigurationError: If the driver is not supported.
            DatabaseError: If the database cannot be reached.
        """
        database = create_database(config.database)
        await database.init()
        return cls(config, database)

    @property
    def ignored_tables(self) -> List[str]:
        return [self.config.migrations.history_table, *self.config.ignore_tables]

    def register_models(self, models: Iterable[Any]) -> None:
        """Register descriptors, pydantic model classes or descriptor mappings."""
        for model in models:
            if isinstance(model, ModelDescriptor):
                self.registry.register(model)
            elif isinstance(model, Mapping):
                self.registry.register_dict(model)
            else:
                self.registry.register_model(model)

    async def analyze_database_schema(self) -> DatabaseSchema:
        return await self.analyzer.analyze_schema(self.schema_name)

    def build_target_schema(self) -> DatabaseSchema:
        return self.registry.to_database_schema()

    async def generate_schema_diff(self) -> SchemaDiff:
        """Diff the live schema against the registered models.

        Types on both sides are compared in the dialect's native spelling so a
        freshly applied schema diffs empty on the next run.
        """
        target = self.build_target_schema()
        current = await self.analyze_database_schema()
        return diff_schemas(
            current,
            target,
            self.config.schema,
            ignore_tables=self.ignored_tables,
            normalize_type=self.renderer.native_type,
        )

    def generate_migrations(self, diff: SchemaDiff) -> List[MigrationUnit]:
        return self.generator.generate_units(diff)

    async def apply_migrations(self, units: List[MigrationUnit]) -> MigrationRun:
        return await self.executor.apply(units)

    async def sync_database(self) -> Optional[MigrationRun]:
        """Run analyze, diff, generate and apply.

        Returns:
            The migration run, or None when the database is already in sync.
        """
        diff = await self.generate_schema_diff()
        if diff.is_empty():
            logger.info("Database schema is in sync; nothing to migrate")
            return None
        units = self.generate_migrations(diff)
        return await self.apply_migrations(units)

    async def close(self) -> None:
        await self.database.close()
