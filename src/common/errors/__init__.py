"""Common error taxonomy helpers."""

from common.errors.error_codes import ErrorCode, error_code_group
from common.errors.exceptions import (
    ConfigurationError,
    DatabaseError,
    MigrationError,
    ModelRegistrationError,
    ModelSyntaxError,
    SchemaAnalysisError,
    SchemaSyncError,
    TypeMappingError,
    ValidationError,
)

__all__ = [
    "ConfigurationError",
    "DatabaseError",
    "ErrorCode",
    "MigrationError",
    "ModelRegistrationError",
    "ModelSyntaxError",
    "SchemaAnalysisError",
    "SchemaSyncError",
    "TypeMappingError",
    "ValidationError",
    "error_code_group",
]
