"""Source type to canonical column type resolution."""

import logging
import re
from typing import Dict, Optional

from common.config.settings import TypeMappingConfig
from common.errors import TypeMappingError

logger = logging.getLogger(__name__)

DEFAULT_TYPE_MAP: Dict[str, str] = {
    # portable primitive names
    "String": "VARCHAR(255)",
    "&str": "VARCHAR(255)",
    "i8": "SMALLINT",
    "i16": "SMALLINT",
    "i32": "INTEGER",
    "i64": "BIGINT",
    "u8": "INTEGER",
    "u16": "INTEGER",
    "u32": "INTEGER",
    "u64": "BIGINT",
    "f32": "REAL",
    "f64": "DOUBLE PRECISION",
    "bool": "BOOLEAN",
    "Vec<u8>": "BYTEA",
    "Uuid": "UUID",
    "Decimal": "NUMERIC(20,6)",
    "Json": "JSONB",
    # python names
    "int": "INTEGER",
    "float": "DOUBLE PRECISION",
    "str": "VARCHAR(255)",
    "bytes": "BYTEA",
    "datetime": "TIMESTAMP WITH TIME ZONE",
    "date": "DATE",
    "time": "TIME",
    "UUID": "UUID",
    "dict": "JSONB",
    "list": "JSONB",
}

# checked in order; NaiveDateTime must win over DateTime and NaiveDate
_FAMILY_RULES = (
    ("NaiveDateTime", "TIMESTAMP"),
    ("NaiveDate", "DATE"),
    ("DateTime", "TIMESTAMP WITH TIME ZONE"),
    ("Decimal", "NUMERIC(20,6)"),
    ("Json", "JSONB"),
    ("Value", "JSONB"),
)

_OPTION_PATTERNS = (
    re.compile(r"^Option\s*<\s*(.+)\s*>$"),
    re.compile(r"^(?:typing\.)?Optional\s*\[\s*(.+)\s*\]$"),
    re.compile(r"^(.+?)\s*\|\s*None$"),
    re.compile(r"^None\s*\|\s*(.+)$"),
    re.compile(r"^(?:typing\.)?Union\s*\[\s*(.+?)\s*,\s*None\s*\]$"),
)


def unwrap_optional(source_type: str) -> str:
    """Strip Optional wrappers (``Option<T>``, ``Optional[T]``, ``T | None``)."""
    text = source_type.strip()
    while True:
        for pattern in _OPTION_PATTERNS:
            match = pattern.match(text)
            if match:
                text = match.group(1).strip()
                break
        else:
            return text


def is_optional(source_type: str) -> bool:
    return unwrap_optional(source_type) != source_type.strip()


class TypeMapper:
    """Resolve source type names to canonical column types.

    Resolution order: custom mappings, overrides, built-in defaults, then
    well-known generic families matched by substring.
    """

    def __init__(self, config: Optional[TypeMappingConfig] = None, strict: bool = True) -> None:
        config = config or TypeMappingConfig()
        self._custom = config.custom_mapping()
        self._overrides = dict(config.overrides)
        self._strict = strict

    def map_type(self, source_type: str) -> str:
        """Map a source type name to a canonical column type.

        Raises:
            TypeMappingError: If no rule matches and the mapper is strict.
        """
        raw = source_type.strip()
        for candidate in (raw, unwrap_optional(raw)):
            resolved = self._lookup(candidate)
            if resolved is not None:
                return resolved

        if self._strict:
            raise TypeMappingError(source_type)
        logger.warning("No type mapping for '%s'; falling back to TEXT", source_type)
        return "TEXT"

    def _lookup(self, name: str) -> Optional[str]:
        if name in self._custom:
            return self._custom[name]
        if name in self._overrides:
            return self._overrides[name]
        if name in DEFAULT_TYPE_MAP:
            return DEFAULT_TYPE_MAP[name]
        for needle, db_type in _FAMILY_RULES:
            if needle in name:
                return db_type
        return None
