"""SQLite-backed DAL components."""

from .database import SqliteDatabase
from .ddl import SqliteDdlRenderer
from .schema_analyzer import SqliteSchemaAnalyzer

__all__ = ["SqliteDatabase", "SqliteDdlRenderer", "SqliteSchemaAnalyzer"]
