"""Shared DDL rendering for the per-dialect renderers.

Renderers turn canonical schema values into complete SQL statements. Every
operation returns a list of statements because some dialects need follow-up
statements (comments, separate indexes) for one logical change.
"""

import logging
from typing import List, Optional

from common.errors import MigrationError
from common.utils.naming import truncate_identifier
from common.utils.sql_text import normalize_default, normalize_type_name, quote_literal
from schema.model import Column, ColumnChange, ForeignKey, Index, Table

logger = logging.getLogger(__name__)

HISTORY_COLUMNS = ("id", "migration_id", "name", "applied_at", "checksum", "execution_time_ms")


class BaseDdlRenderer:
    """Dialect-neutral pieces of DDL rendering.

    Subclasses set ``dialect``, ``quote_char`` and ``max_identifier_length`` and
    implement type translation plus the statements whose shape differs per dialect.
    """

    dialect: str = ""
    quote_char: str = '"'
    max_identifier_length: int = 63

    def __init__(self, schema_name: Optional[str] = None) -> None:
        self.schema_name = schema_name

    # -- identifiers -------------------------------------------------------

    def quote(self, identifier: str) -> str:
        """Quote an identifier, doubling embedded quote characters."""
        q = self.quote_char
        return f"{q}{identifier.replace(q, q + q)}{q}"

    def quote_table(self, table_name: str) -> str:
        """Quote a table name, qualified by the renderer's schema when set."""
        if self.schema_name:
            return f"{self.quote(self.schema_name)}.{self.quote(table_name)}"
        return self.quote(table_name)

    def quote_columns(self, columns: List[str]) -> str:
        """Quote and comma-join column names."""
        return ", ".join(self.quote(column) for column in columns)

    def truncate(self, identifier: str) -> str:
        """Fit an index or constraint name into the dialect's identifier limit."""
        return truncate_identifier(identifier, self.max_identifier_length)

    # -- types -------------------------------------------------------------

    def translate_type(self, data_type: str) -> str:
        """Translate a canonical type to the dialect's DDL spelling."""
        raise NotImplementedError

    def native_type(self, data_type: str) -> str:
        """Return the normalized type the dialect's analyzer reports for ``data_type``."""
        return normalize_type_name(self.translate_type(data_type))

    # -- columns -----------------------------------------------------------

    def column_definition(self, column: Column) -> str:
        """Render one column definition for CREATE TABLE or ADD COLUMN."""
        parts = [self.quote(column.name), self.translate_type(column.data_type)]
        if column.is_generated and column.generation_expression:
            parts.append(f"GENERATED ALWAYS AS ({column.generation_expression}) STORED")
        parts.append("NULL" if column.nullable else "NOT NULL")
        if column.default is not None and not column.is_generated:
            parts.append(f"DEFAULT {column.default}")
        return " ".join(parts)

    def create_table(self, table: Table) -> List[str]:
        """Return the statements that create ``table`` with its keys and indexes."""
        raise NotImplementedError

    def drop_table(self, table_name: str) -> List[str]:
        """Return the statements that drop a table if it exists."""
        return [f"DROP TABLE IF EXISTS {self.quote_table(table_name)}"]

    def add_column(self, table_name: str, column: Column) -> List[str]:
        """Return the statements that add ``column`` to an existing table."""
        return [
            f"ALTER TABLE {self.quote_table(table_name)} "
            f"ADD COLUMN {self.column_definition(column)}"
        ]

    def drop_column(self, table_name: str, column_name: str) -> List[str]:
        """Return the statements that drop one column."""
        return [f"ALTER TABLE {self.quote_table(table_name)} DROP COLUMN {self.quote(column_name)}"]

    def alter_column(self, table_name: str, change: ColumnChange) -> List[str]:
        """Return the statements that move a column from its old to its new definition."""
        raise NotImplementedError

    # -- indexes and foreign keys -----------------------------------------

    def create_index(self, table_name: str, index: Index) -> List[str]:
        """Return the statements that create ``index``."""
        unique = "UNIQUE " if index.is_unique else ""
        return [
            f"CREATE {unique}INDEX IF NOT EXISTS {self.quote(self.truncate(index.name))} "
            f"ON {self.quote_table(table_name)} ({self.quote_columns(index.columns)})"
        ]

    def drop_index(self, table_name: str, index_name: str) -> List[str]:
        """Return the statements that drop an index by name."""
        raise NotImplementedError

    def foreign_key_clause(self, fk: ForeignKey, default_action: Optional[str] = None) -> str:
        """Render a CONSTRAINT ... FOREIGN KEY ... REFERENCES clause."""
        clause = (
            f"CONSTRAINT {self.quote(self.truncate(fk.name))} "
            f"FOREIGN KEY ({self.quote_columns(fk.columns)}) "
            f"REFERENCES {self.quote_table(fk.ref_table)} ({self.quote_columns(fk.ref_columns)})"
        )
        on_delete = fk.on_delete or default_action
        on_update = fk.on_update or default_action
        if on_delete:
            clause += f" ON DELETE {on_delete.upper()}"
        if on_update:
            clause += f" ON UPDATE {on_update.upper()}"
        return clause

    def add_foreign_key(self, table_name: str, fk: ForeignKey) -> List[str]:
        """Return the statements that add ``fk`` to an existing table."""
        raise NotImplementedError

    def drop_foreign_key(self, table_name: str, fk_name: str) -> List[str]:
        """Return the statements that drop a foreign key by name."""
        raise NotImplementedError

    # -- history table -----------------------------------------------------

    def history_table_sql(self, table_name: str) -> List[str]:
        """Return the DDL for the migration history table."""
        raise NotImplementedError

    def insert_history_sql(self, table_name: str) -> str:
        """Parameterized insert of one history row (``$1..$4``)."""
        columns = self.quote_columns(["migration_id", "name", "checksum", "execution_time_ms"])
        return (
            f"INSERT INTO {self.quote_table(table_name)} ({columns}) VALUES ($1, $2, $3, $4)"
        )

    def select_history_sql(self, table_name: str) -> str:
        """Return the query listing history rows in id order."""
        return (
            f"SELECT {self.quote_columns(list(HISTORY_COLUMNS))} "
            f"FROM {self.quote_table(table_name)} ORDER BY {self.quote('id')}"
        )

    # -- helpers -----------------------------------------------------------

    def literal(self, value: str) -> str:
        """Render ``value`` as a quoted SQL string literal."""
        return quote_literal(value)

    def capability_error(self, message: str, table_name: Optional[str] = None) -> MigrationError:
        """Build (and log) the MigrationError for an unsupported operation."""
        logger.warning("%s cannot render DDL for %s: %s", self.dialect, table_name, message)
        return MigrationError(message, dialect=self.dialect, table=table_name)


def types_differ(renderer: BaseDdlRenderer, change: ColumnChange) -> bool:
    return renderer.native_type(change.from_column.data_type) != renderer.native_type(
        change.to_column.data_type
    )


def defaults_differ(change: ColumnChange) -> bool:
    return normalize_default(change.from_column.default) != normalize_default(
        change.to_column.default
    )
