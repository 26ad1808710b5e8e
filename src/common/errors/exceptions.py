"""Exception hierarchy raised by schema sync components.

Every error carries a canonical ``ErrorCode`` plus optional structured context
(dialect, table, operation, ...). Driver exceptions are never leaked raw: callers
wrap them with ``raise SomeError(...) from exc`` so the cause stays chained.
"""

from typing import Any, Dict, Optional

from common.errors.error_codes import ErrorCode


class SchemaSyncError(Exception):
    """Base class for all schema sync failures."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = {k: v for k, v in context.items() if v is not None}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"

    def to_dict(self) -> Dict[str, Any]:
        """Return a serializable representation for logs and callers."""
        return {"code": self.code.value, "message": self.message, **self.context}


class ConfigurationError(SchemaSyncError):
    """Invalid or unsupported configuration (e.g. unknown database driver)."""

    code = ErrorCode.CONFIGURATION_ERROR


class DatabaseError(SchemaSyncError):
    """Connectivity or query failure against the live database."""

    code = ErrorCode.DB_QUERY_ERROR

    def __init__(
        self,
        message: str,
        *,
        dialect: Optional[str] = None,
        operation: Optional[str] = None,
        **context: Any,
    ) -> None:
        super().__init__(message, dialect=dialect, operation=operation, **context)
        self.dialect = dialect
        self.operation = operation


class SchemaAnalysisError(DatabaseError):
    """Catalog introspection failed."""

    code = ErrorCode.SCHEMA_ANALYSIS_ERROR

    def __init__(
        self,
        message: str,
        *,
        dialect: Optional[str] = None,
        table: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> None:
        super().__init__(message, dialect=dialect, operation=operation, table=table)
        self.table = table


class MigrationError(SchemaSyncError):
    """Migration generation or application failed."""

    code = ErrorCode.MIGRATION_GENERATION_ERROR

    def __init__(
        self,
        message: str,
        *,
        dialect: Optional[str] = None,
        table: Optional[str] = None,
        migration_id: Optional[str] = None,
        statement: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            dialect=dialect,
            table=table,
            migration_id=migration_id,
        )
        self.dialect = dialect
        self.table = table
        self.migration_id = migration_id
        self.statement = statement
        if migration_id is not None:
            self.code = ErrorCode.MIGRATION_APPLY_ERROR


class TypeMappingError(SchemaSyncError):
    """A source type has no column type mapping."""

    code = ErrorCode.TYPE_MAPPING_ERROR

    def __init__(self, source_type: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"No column type mapping for source type '{source_type}'")
        self.source_type = source_type


class ValidationError(SchemaSyncError):
    """A schema model violates a structural invariant."""

    code = ErrorCode.VALIDATION_ERROR


class ModelSyntaxError(SchemaSyncError):
    """Malformed external model descriptor input."""

    code = ErrorCode.MODEL_SYNTAX_ERROR


class ModelRegistrationError(SchemaSyncError):
    """A model could not be registered (e.g. duplicate table name)."""

    code = ErrorCode.MODEL_REGISTRATION_ERROR
