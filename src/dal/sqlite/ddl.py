"""SQLite DDL rendering, including the table-rebuild capability errors."""

import re
from typing import List

from dal.ddl import BaseDdlRenderer, defaults_differ, types_differ
from dal.sqlite.types import translate_sqlite_type
from schema.model import Column, ColumnChange, ForeignKey, Index, Table

# literals accepted as a column default by ALTER TABLE ... ADD COLUMN
_CONSTANT_DEFAULT = re.compile(
    r"^(?:NULL|TRUE|FALSE|[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?"
    r"|'(?:[^']|'')*'|[xX]'[0-9a-fA-F]*')$",
    re.IGNORECASE,
)


def is_constant_default(default: str) -> bool:
    """Return True when ``default`` is a literal SQLite can backfill existing rows with."""
    return bool(_CONSTANT_DEFAULT.match(default.strip()))


class SqliteDdlRenderer(BaseDdlRenderer):
    """SQLite DDL: storage-class types, inline keys, no comments.

    SQLite cannot drop or alter columns or change foreign keys of an existing
    table in place; those operations raise MigrationError instead of emitting SQL.
    """

    dialect = "sqlite"
    quote_char = '"'
    max_identifier_length = 63

    def translate_type(self, data_type: str) -> str:
        """Translate a canonical type to its SQLite storage class."""
        return translate_sqlite_type(data_type)

    def column_definition(self, column: Column, inline_primary_key: bool = False) -> str:
        """Render a column, optionally carrying an inline primary key."""
        data_type = self.translate_type(column.data_type)
        parts = [self.quote(column.name), data_type]
        if inline_primary_key:
            parts.append("PRIMARY KEY")
            if "int" in data_type.lower():
                parts.append("AUTOINCREMENT")
        if column.is_generated and column.generation_expression:
            parts.append(f"GENERATED ALWAYS AS ({column.generation_expression}) STORED")
        if not column.nullable:
            parts.append("NOT NULL")
        if column.default is not None and not column.is_generated:
            parts.append(f"DEFAULT {column.default}")
        return " ".join(parts)

    def create_table(self, table: Table) -> List[str]:
        """Create the table with inline keys and foreign keys, then its indexes."""
        pk_columns = table.primary_key.columns if table.primary_key else []
        inline_pk = pk_columns[0] if len(pk_columns) == 1 else None

        definitions = [
            self.column_definition(column, inline_primary_key=column.name == inline_pk)
            for column in table.columns
        ]
        if len(pk_columns) > 1:
            definitions.append(f"PRIMARY KEY ({self.quote_columns(pk_columns)})")
        for fk in table.foreign_keys:
            definitions.append(self.foreign_key_clause(fk))

        body = ",\n    ".join(definitions)
        statements = [f"CREATE TABLE IF NOT EXISTS {self.quote_table(table.name)} (\n    {body}\n)"]
        for index in table.indexes:
            statements.extend(self.create_index(table.name, index))
        return statements

    def add_column(self, table_name: str, column: Column) -> List[str]:
        """Render ``ADD COLUMN``; SQLite only accepts constant defaults here."""
        if not column.nullable and column.default is None:
            raise self.capability_error(
                f"SQLite cannot add NOT NULL column '{column.name}' without a default value "
                f"to existing table '{table_name}'. Consider rebuilding the entire table.",
                table_name,
            )
        if column.default is not None and not is_constant_default(column.default):
            raise self.capability_error(
                f"SQLite cannot add column '{column.name}' with non-constant default "
                f"{column.default} to existing table '{table_name}'. "
                "You need to recreate the table with the new column.",
                table_name,
            )
        return super().add_column(table_name, column)

    def drop_column(self, table_name: str, column_name: str) -> List[str]:
        """Reject: SQLite cannot drop columns in place."""
        raise self.capability_error(
            "SQLite does not support dropping columns directly. "
            "You need to recreate the table without those columns.",
            table_name,
        )

    def alter_column(self, table_name: str, change: ColumnChange) -> List[str]:
        """Reject real changes; SQLite cannot alter columns in place."""
        before, after = change.from_column, change.to_column
        if not (
            types_differ(self, change)
            or before.nullable != after.nullable
            or defaults_differ(change)
        ):
            # uniqueness is carried by the index diff; comments do not exist here
            return []
        raise self.capability_error(
            "SQLite does not support altering columns directly. "
            "You need to recreate the table with the new column definitions.",
            table_name,
        )

    def create_index(self, table_name: str, index: Index) -> List[str]:
        """Create an index with IF NOT EXISTS."""
        unique = "UNIQUE " if index.is_unique else ""
        return [
            f"CREATE {unique}INDEX IF NOT EXISTS {self.quote(self.truncate(index.name))} "
            f"ON {self.quote_table(table_name)} ({self.quote_columns(index.columns)})"
        ]

    def drop_index(self, table_name: str, index_name: str) -> List[str]:
        """Drop an index; SQLite index names are database-scoped."""
        return [f"DROP INDEX IF EXISTS {self.quote(self.truncate(index_name))}"]

    def add_foreign_key(self, table_name: str, fk: ForeignKey) -> List[str]:
        """Reject: SQLite cannot add foreign keys to an existing table."""
        raise self.capability_error(
            "SQLite does not support adding foreign keys to existing tables. "
            "You need to recreate the table with the foreign key constraints.",
            table_name,
        )

    def drop_foreign_key(self, table_name: str, fk_name: str) -> List[str]:
        """Reject: SQLite cannot drop foreign keys from an existing table."""
        raise self.capability_error(
            "SQLite does not support dropping foreign keys from existing tables. "
            "You need to recreate the table without the foreign key constraints.",
            table_name,
        )

    def history_table_sql(self, table_name: str) -> List[str]:
        """Return the DDL for the migration history table."""
        return [
            f"CREATE TABLE IF NOT EXISTS {self.quote_table(table_name)} (\n"
            "    id INTEGER PRIMARY KEY AUTOINCREMENT,\n"
            "    migration_id TEXT NOT NULL,\n"
            "    name TEXT NOT NULL,\n"
            "    applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,\n"
            "    checksum TEXT,\n"
            "    execution_time_ms INTEGER\n"
            ")"
        ]
