"""Schema synchronization: target schema building, diffing, migration generation and execution."""

from schema_sync.client import SchemaSyncClient
from schema_sync.diff import column_needs_alteration, diff_schemas
from schema_sync.executor import MigrationExecutor
from schema_sync.generator import MigrationGenerator
from schema_sync.history import HistoryStore
from schema_sync.registry import ModelRegistry
from schema_sync.type_mapper import TypeMapper

__all__ = [
    "HistoryStore",
    "MigrationExecutor",
    "MigrationGenerator",
    "ModelRegistry",
    "SchemaSyncClient",
    "TypeMapper",
    "column_needs_alteration",
    "diff_schemas",
]
