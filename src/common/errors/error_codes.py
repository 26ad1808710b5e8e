"""Canonical error-code taxonomy for schema sync flows."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Bounded canonical error codes for logs, metrics and callers."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    DB_CONNECTION_ERROR = "DB_CONNECTION_ERROR"
    DB_QUERY_ERROR = "DB_QUERY_ERROR"
    SCHEMA_ANALYSIS_ERROR = "SCHEMA_ANALYSIS_ERROR"
    MIGRATION_GENERATION_ERROR = "MIGRATION_GENERATION_ERROR"
    MIGRATION_APPLY_ERROR = "MIGRATION_APPLY_ERROR"
    TYPE_MAPPING_ERROR = "TYPE_MAPPING_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MODEL_SYNTAX_ERROR = "MODEL_SYNTAX_ERROR"
    MODEL_REGISTRATION_ERROR = "MODEL_REGISTRATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_CODE_GROUPS: dict[ErrorCode, str] = {
    ErrorCode.CONFIGURATION_ERROR: "CONFIG",
    ErrorCode.DB_CONNECTION_ERROR: "DB",
    ErrorCode.DB_QUERY_ERROR: "DB",
    ErrorCode.SCHEMA_ANALYSIS_ERROR: "DB",
    ErrorCode.MIGRATION_GENERATION_ERROR: "MIGRATION",
    ErrorCode.MIGRATION_APPLY_ERROR: "MIGRATION",
    ErrorCode.TYPE_MAPPING_ERROR: "MODEL",
    ErrorCode.VALIDATION_ERROR: "VALIDATION",
    ErrorCode.MODEL_SYNTAX_ERROR: "MODEL",
    ErrorCode.MODEL_REGISTRATION_ERROR: "MODEL",
    ErrorCode.INTERNAL_ERROR: "INTERNAL",
}


def error_code_group(code: ErrorCode | str | None) -> str:
    """Return the low-cardinality group for an error code."""
    if code is None:
        return "INTERNAL"
    try:
        normalized = code if isinstance(code, ErrorCode) else ErrorCode(str(code).strip().upper())
    except ValueError:
        return "INTERNAL"
    return _CODE_GROUPS.get(normalized, "INTERNAL")
