"""Canonical, dialect-neutral schema model."""

from .column import Column
from .constraints import ForeignKey, Index, PrimaryKey
from .database_schema import DatabaseSchema
from .diff import ColumnChange, SchemaDiff
from .migration import AppliedMigration, MigrationRun, MigrationState, MigrationUnit
from .table import Table
from .view import View

__all__ = [
    "AppliedMigration",
    "Column",
    "ColumnChange",
    "DatabaseSchema",
    "ForeignKey",
    "Index",
    "MigrationRun",
    "MigrationState",
    "MigrationUnit",
    "PrimaryKey",
    "SchemaDiff",
    "Table",
    "View",
]
