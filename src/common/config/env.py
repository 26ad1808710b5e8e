"""Typed environment variable parsing helpers.

All schema-sync settings share the ``SCHEMA_SYNC_`` prefix. Helpers accept either
the bare setting name (``DB_DRIVER``) together with ``prefix`` or a fully
qualified variable name.
"""

import os
from typing import List, Optional

ENV_PREFIX = "SCHEMA_SYNC_"


def env_name(name: str, prefix: str = ENV_PREFIX) -> str:
    """Return the fully qualified environment variable name for a setting."""
    if not prefix or name.startswith(prefix):
        return name
    return f"{prefix}{name}"


def get_env_str(name: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """Get an environment variable as a string."""
    value = os.getenv(name)
    if value is None:
        if required:
            raise KeyError(f"Environment variable '{name}' is required but not set.")
        return default
    return value


def get_env_int(name: str, default: Optional[int] = None, required: bool = False) -> Optional[int]:
    """Get an environment variable as an integer."""
    value = os.getenv(name)
    if value is None:
        if required:
            raise KeyError(f"Environment variable '{name}' is required but not set.")
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{name}' must be an integer, got '{value}'.")


def get_env_bool(
    name: str, default: Optional[bool] = None, required: bool = False
) -> Optional[bool]:
    """Get an environment variable as a boolean.

    Truthy: true, 1, yes, on
    Falsey: false, 0, no, off, (empty string)
    """
    value = os.getenv(name)
    if value is None:
        if required:
            raise KeyError(f"Environment variable '{name}' is required but not set.")
        return default

    val_lower = value.strip().lower()
    if val_lower in ("true", "1", "yes", "on"):
        return True
    if val_lower in ("false", "0", "no", "off", ""):
        return False

    raise ValueError(f"Environment variable '{name}' must be a boolean, got '{value}'.")


def get_env_list(
    name: str, default: Optional[List[str]] = None, required: bool = False, separator: str = ","
) -> Optional[List[str]]:
    """Get an environment variable as a list of strings."""
    value = os.getenv(name)
    if value is None:
        if required:
            raise KeyError(f"Environment variable '{name}' is required but not set.")
        return default

    return [s.strip() for s in value.split(separator) if s.strip()]


def get_env_mapping(
    name: str, default: Optional[dict] = None, separator: str = ",", assignment: str = "="
) -> Optional[dict]:
    """Get an environment variable of ``key=value`` pairs as a dict.

    ``SCHEMA_SYNC_TYPE_OVERRIDES="i64=BIGINT,Money=NUMERIC(12,2)"`` would be ambiguous
    with a comma separator, so callers that need commas inside values pick another
    separator (``;``).
    """
    items = get_env_list(name, separator=separator)
    if items is None:
        return default

    mapping = {}
    for item in items:
        key, sep, value = item.partition(assignment)
        if not sep or not key.strip():
            raise ValueError(
                f"Environment variable '{name}' must contain '{assignment}'-separated pairs, "
                f"got '{item}'."
            )
        mapping[key.strip()] = value.strip()
    return mapping
