"""Provider normalization and environment variable helpers.

Canonical provider IDs (internal, lowercase): "postgres", "mysql", "sqlite".

User-facing aliases (case-insensitive):
- PostgreSQL: "postgresql", "postgres", "pg"
- MySQL: "mysql", "mariadb"
- SQLite: "sqlite", "sqlite3"

Example:
    >>> normalize_provider("PostgreSQL")
    'postgres'
    >>> normalize_provider("MariaDB")
    'mysql'
"""

from typing import Set

PROVIDER_ALIASES: dict[str, str] = {
    # PostgreSQL aliases
    "postgresql": "postgres",
    "postgres": "postgres",
    "pg": "postgres",
    # SQLite aliases
    "sqlite": "sqlite",
    "sqlite3": "sqlite",
    # MySQL aliases
    "mysql": "mysql",
    "mariadb": "mysql",
}


def normalize_provider(value: str) -> str:
    """Normalize a provider value to its canonical form.

    Strips whitespace, lowercases and maps known aliases. Unknown values pass
    through unchanged; validation happens where the provider is selected.
    """
    cleaned = value.strip().lower()
    return PROVIDER_ALIASES.get(cleaned, cleaned)


def get_provider_env(var_name: str, default: str, allowed: Set[str]) -> str:
    """Read, normalize and validate a provider environment variable.

    Raises:
        ValueError: If the normalized value is not in the allowed set.
    """
    from common.config.env import get_env_str

    raw_value = get_env_str(var_name)
    if raw_value is None:
        return default

    normalized = normalize_provider(raw_value)
    if normalized not in allowed:
        allowed_list = ", ".join(sorted(allowed))
        raise ValueError(
            f"Invalid provider for {var_name}: '{raw_value}'. Allowed values: {allowed_list}"
        )
    return normalized
