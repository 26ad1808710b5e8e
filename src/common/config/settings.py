"""Typed configuration for schema sync runs.

Each section is a frozen dataclass with ``from_env()`` (variables prefixed with
``SCHEMA_SYNC_``) and ``from_dict()`` (the mapping produced by an external
configuration loader). Unknown keys in ``from_dict`` input are ignored.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Tuple

from common.config.env import (
    env_name,
    get_env_bool,
    get_env_int,
    get_env_list,
    get_env_mapping,
    get_env_str,
)
from common.errors import ConfigurationError
from dal.util.env import normalize_provider

SUPPORTED_DRIVERS = frozenset({"postgres", "mysql", "sqlite"})

NAMING_STYLES = frozenset(
    {"snake_case", "camel_case", "pascal_case", "kebab_case", "screaming_snake_case"}
)

DEFAULT_PORTS = {"postgres": 5432, "mysql": 3306}


def _known_fields(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in data.items() if key in names}


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings for the database being synchronized."""

    driver: str = "postgres"
    url: Optional[str] = None
    host: str = "localhost"
    port: Optional[int] = None
    name: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    path: Optional[str] = None
    schema_name: Optional[str] = None
    pool_size: int = 5
    timeout_seconds: int = 30

    def __post_init__(self) -> None:
        object.__setattr__(self, "driver", normalize_provider(self.driver or ""))
        if self.port is None and self.driver in DEFAULT_PORTS:
            object.__setattr__(self, "port", DEFAULT_PORTS[self.driver])

    def validate(self) -> None:
        """Raise ConfigurationError when the driver or its required settings are missing."""
        if self.driver not in SUPPORTED_DRIVERS:
            allowed = ", ".join(sorted(SUPPORTED_DRIVERS))
            raise ConfigurationError(
                f"Unsupported database driver '{self.driver}'. Allowed values: {allowed}"
            )
        if self.driver == "sqlite" and not (self.path or self.url):
            raise ConfigurationError("SQLite driver requires a database path.")
        if self.driver == "mysql" and not self.url:
            missing = [key for key in ("name", "user") if not getattr(self, key)]
            if missing:
                raise ConfigurationError(
                    f"MySQL driver missing required config: {', '.join(missing)}."
                )

    @classmethod
    def from_env(cls, prefix: str = "SCHEMA_SYNC_") -> "DatabaseConfig":
        """Load database settings from environment variables."""
        return cls(
            driver=get_env_str(env_name("DB_DRIVER", prefix), "postgres"),
            url=get_env_str(env_name("DB_URL", prefix)),
            host=get_env_str(env_name("DB_HOST", prefix), "localhost"),
            port=get_env_int(env_name("DB_PORT", prefix)),
            name=get_env_str(env_name("DB_NAME", prefix)),
            user=get_env_str(env_name("DB_USER", prefix)),
            password=get_env_str(env_name("DB_PASS", prefix)),
            path=get_env_str(env_name("DB_PATH", prefix)),
            schema_name=get_env_str(env_name("DB_SCHEMA", prefix)),
            pool_size=get_env_int(env_name("DB_POOL_SIZE", prefix), 5),
            timeout_seconds=get_env_int(env_name("DB_TIMEOUT_SECS", prefix), 30),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DatabaseConfig":
        """Build database settings from a loader mapping (``schema`` aliases ``schema_name``)."""
        values = dict(data)
        if "schema" in values and "schema_name" not in values:
            values["schema_name"] = values.pop("schema")
        return cls(**_known_fields(cls, values))


@dataclass(frozen=True)
class MigrationsConfig:
    """Migration execution policy."""

    directory: str = "migrations"
    dry_run: bool = False
    transaction_per_migration: bool = True
    history_table: str = "schema_migrations"

    @classmethod
    def from_env(cls, prefix: str = "SCHEMA_SYNC_") -> "MigrationsConfig":
        return cls(
            directory=get_env_str(env_name("MIGRATIONS_DIR", prefix), "migrations"),
            dry_run=get_env_bool(env_name("DRY_RUN", prefix), False),
            transaction_per_migration=get_env_bool(
                env_name("TRANSACTION_PER_MIGRATION", prefix), True
            ),
            history_table=get_env_str(env_name("HISTORY_TABLE", prefix), "schema_migrations"),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MigrationsConfig":
        return cls(**_known_fields(cls, data))


@dataclass(frozen=True)
class SchemaPolicy:
    """Safety gates and target-schema shaping flags."""

    allow_column_removal: bool = False
    allow_table_removal: bool = False
    add_created_at_column: bool = False
    add_updated_at_column: bool = False
    index_foreign_keys: bool = True
    default_nullable: bool = False
    strict_mode: bool = True

    @classmethod
    def from_env(cls, prefix: str = "SCHEMA_SYNC_") -> "SchemaPolicy":
        return cls(
            allow_column_removal=get_env_bool(env_name("ALLOW_COLUMN_REMOVAL", prefix), False),
            allow_table_removal=get_env_bool(env_name("ALLOW_TABLE_REMOVAL", prefix), False),
            add_created_at_column=get_env_bool(env_name("ADD_CREATED_AT_COLUMN", prefix), False),
            add_updated_at_column=get_env_bool(env_name("ADD_UPDATED_AT_COLUMN", prefix), False),
            index_foreign_keys=get_env_bool(env_name("INDEX_FOREIGN_KEYS", prefix), True),
            default_nullable=get_env_bool(env_name("DEFAULT_NULLABLE", prefix), False),
            strict_mode=get_env_bool(env_name("STRICT_MODE", prefix), True),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SchemaPolicy":
        return cls(**_known_fields(cls, data))


@dataclass(frozen=True)
class NamingConfig:
    """Naming conventions applied when building the target schema."""

    table_style: str = "snake_case"
    column_style: str = "snake_case"
    index_pattern: str = "ix_{table}_{columns}"
    constraint_pattern: str = "fk_{table}_{column}"
    pluralize_tables: bool = True
    ignore_case_conflicts: bool = False

    def __post_init__(self) -> None:
        for attr in ("table_style", "column_style"):
            style = getattr(self, attr)
            if style not in NAMING_STYLES:
                allowed = ", ".join(sorted(NAMING_STYLES))
                raise ConfigurationError(
                    f"Invalid naming style for {attr}: '{style}'. Allowed values: {allowed}"
                )

    @classmethod
    def from_env(cls, prefix: str = "SCHEMA_SYNC_") -> "NamingConfig":
        return cls(
            table_style=get_env_str(env_name("TABLE_STYLE", prefix), "snake_case"),
            column_style=get_env_str(env_name("COLUMN_STYLE", prefix), "snake_case"),
            index_pattern=get_env_str(env_name("INDEX_PATTERN", prefix), "ix_{table}_{columns}"),
            constraint_pattern=get_env_str(
                env_name("CONSTRAINT_PATTERN", prefix), "fk_{table}_{column}"
            ),
            pluralize_tables=get_env_bool(env_name("PLURALIZE_TABLES", prefix), True),
            ignore_case_conflicts=get_env_bool(env_name("IGNORE_CASE_CONFLICTS", prefix), False),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NamingConfig":
        return cls(**_known_fields(cls, data))


@dataclass(frozen=True)
class TypeMappingConfig:
    """Source type to column type mappings consulted before the built-in defaults.

    ``custom`` wins over ``overrides``; both are exact-match on the source type name.
    """

    custom: Tuple[Tuple[str, str], ...] = ()
    overrides: Dict[str, str] = field(default_factory=dict)

    def custom_mapping(self) -> Dict[str, str]:
        """Return the custom mappings as a dict (later entries win)."""
        return dict(self.custom)

    @classmethod
    def from_env(cls, prefix: str = "SCHEMA_SYNC_") -> "TypeMappingConfig":
        """Load mappings from ``;``-separated ``source=db_type`` pairs."""
        custom = get_env_mapping(env_name("TYPE_MAPPING_CUSTOM", prefix), {}, separator=";")
        overrides = get_env_mapping(env_name("TYPE_OVERRIDES", prefix), {}, separator=";")
        return cls(custom=tuple(custom.items()), overrides=dict(overrides))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TypeMappingConfig":
        """Build mappings from ``custom`` (list of ``{source_type, db_type}``) and ``override``."""
        custom_entries = []
        for entry in data.get("custom") or []:
            if isinstance(entry, Mapping):
                source = entry.get("source_type")
                db_type = entry.get("db_type")
            else:
                source, db_type = entry
            if not source or not db_type:
                raise ConfigurationError(f"Invalid custom type mapping entry: {entry!r}")
            custom_entries.append((str(source), str(db_type)))
        overrides = data.get("overrides") or data.get("override") or {}
        return cls(custom=tuple(custom_entries), overrides=dict(overrides))


@dataclass(frozen=True)
class SchemaSyncConfig:
    """Complete configuration consumed by a schema sync run."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    migrations: MigrationsConfig = field(default_factory=MigrationsConfig)
    schema: SchemaPolicy = field(default_factory=SchemaPolicy)
    naming: NamingConfig = field(default_factory=NamingConfig)
    type_mapping: TypeMappingConfig = field(default_factory=TypeMappingConfig)
    ignore_tables: Tuple[str, ...] = ()

    @classmethod
    def from_env(cls, prefix: str = "SCHEMA_SYNC_") -> "SchemaSyncConfig":
        """Load every section from environment variables."""
        return cls(
            database=DatabaseConfig.from_env(prefix),
            migrations=MigrationsConfig.from_env(prefix),
            schema=SchemaPolicy.from_env(prefix),
            naming=NamingConfig.from_env(prefix),
            type_mapping=TypeMappingConfig.from_env(prefix),
            ignore_tables=tuple(get_env_list(env_name("IGNORE_TABLES", prefix), [])),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SchemaSyncConfig":
        """Build a config from a nested mapping keyed by section name."""
        try:
            return cls(
                database=DatabaseConfig.from_dict(data.get("database") or {}),
                migrations=MigrationsConfig.from_dict(data.get("migrations") or {}),
                schema=SchemaPolicy.from_dict(data.get("schema") or {}),
                naming=NamingConfig.from_dict(data.get("naming") or {}),
                type_mapping=TypeMappingConfig.from_dict(data.get("type_mapping") or {}),
                ignore_tables=tuple(data.get("ignore_tables") or ()),
            )
        except TypeError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc
