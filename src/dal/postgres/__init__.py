"""PostgreSQL-backed DAL components."""

from .database import PostgresDatabase
from .ddl import PostgresDdlRenderer
from .schema_analyzer import PostgresSchemaAnalyzer

__all__ = ["PostgresDatabase", "PostgresDdlRenderer", "PostgresSchemaAnalyzer"]
