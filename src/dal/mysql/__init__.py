"""MySQL-backed DAL components."""

from .database import MysqlDatabase
from .ddl import MysqlDdlRenderer
from .schema_analyzer import MysqlSchemaAnalyzer

__all__ = ["MysqlDatabase", "MysqlDdlRenderer", "MysqlSchemaAnalyzer"]
