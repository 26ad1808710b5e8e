"""Dialect factory: one database handle, analyzer and DDL renderer per dialect.

The dialect is selected once from configuration; everything downstream works
against the shared interfaces without branching on the dialect again.

Canonical Provider IDs:
    - "postgres": asyncpg-backed implementations
    - "mysql": aiomysql-backed implementations
    - "sqlite": aiosqlite-backed implementations

Example:
    >>> from dal.factory import create_database, create_ddl_renderer
    >>> renderer = create_ddl_renderer("pg")  # PostgresDdlRenderer
"""

import logging
from typing import Optional

from common.config.settings import SUPPORTED_DRIVERS, DatabaseConfig
from common.errors import ConfigurationError
from common.interfaces import Database, DdlRenderer, SchemaAnalyzer
from dal.util.env import normalize_provider

logger = logging.getLogger(__name__)


def resolve_dialect(value: Optional[str]) -> str:
    """Normalize a driver/dialect name.

    Raises:
        ConfigurationError: If the dialect is not supported.
    """
    dialect = normalize_provider(value or "")
    if dialect not in SUPPORTED_DRIVERS:
        allowed = ", ".join(sorted(SUPPORTED_DRIVERS))
        raise ConfigurationError(
            f"Unsupported database driver '{value}'. Allowed values: {allowed}"
        )
    return dialect


def create_database(config: DatabaseConfig) -> Database:
    """Build an uninitialized database handle for ``config.driver``."""
    dialect = resolve_dialect(config.driver)
    config.validate()
    logger.info("Initializing database handle with provider: %s", dialect)

    if dialect == "postgres":
        from dal.postgres.database import PostgresDatabase

        return PostgresDatabase(config)
    if dialect == "mysql":
        from dal.mysql.database import MysqlDatabase

        return MysqlDatabase(config)

    from dal.sqlite.database import SqliteDatabase

    return SqliteDatabase(config)


def create_schema_analyzer(
    dialect: str, database: Database, schema_name: Optional[str] = None
) -> SchemaAnalyzer:
    """Build the schema analyzer for a dialect over an existing database handle."""
    dialect = resolve_dialect(dialect)
    if dialect == "postgres":
        from dal.postgres.schema_analyzer import PostgresSchemaAnalyzer

        return PostgresSchemaAnalyzer(database, default_schema=schema_name or "public")
    if dialect == "mysql":
        from dal.mysql.schema_analyzer import MysqlSchemaAnalyzer

        return MysqlSchemaAnalyzer(database, default_schema=schema_name)

    from dal.sqlite.schema_analyzer import SqliteSchemaAnalyzer

    return SqliteSchemaAnalyzer(database)


def create_ddl_renderer(dialect: str, schema_name: Optional[str] = None) -> DdlRenderer:
    """Build the DDL renderer for a dialect."""
    dialect = resolve_dialect(dialect)
    if dialect == "postgres":
        from dal.postgres.ddl import PostgresDdlRenderer

        return PostgresDdlRenderer(schema_name)
    if dialect == "mysql":
        from dal.mysql.ddl import MysqlDdlRenderer

        return MysqlDdlRenderer(schema_name)

    from dal.sqlite.ddl import SqliteDdlRenderer

    return SqliteDdlRenderer()
