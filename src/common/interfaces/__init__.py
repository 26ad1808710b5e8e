"""Interfaces shared between the schema sync core and the dialect adapters."""

from .database import Connection, Database
from .ddl_renderer import DdlRenderer
from .schema_analyzer import SchemaAnalyzer

__all__ = ["Connection", "Database", "DdlRenderer", "SchemaAnalyzer"]
