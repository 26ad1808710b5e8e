"""PostgreSQL DDL rendering for schema sync migrations."""

from typing import List

from dal.ddl import BaseDdlRenderer, defaults_differ, types_differ
from dal.postgres.types import canonical_postgres_type
from schema.model import Column, ColumnChange, ForeignKey, Index, Table


class PostgresDdlRenderer(BaseDdlRenderer):
    """PostgreSQL DDL: double-quoted identifiers, native types, COMMENT ON follow-ups."""

    dialect = "postgres"
    quote_char = '"'
    max_identifier_length = 63

    def translate_type(self, data_type: str) -> str:
        """Pass types through; PostgreSQL accepts the canonical spelling."""
        return data_type.strip()

    def native_type(self, data_type: str) -> str:
        """Return the type as ``information_schema`` reports it."""
        return canonical_postgres_type(data_type)

    def create_table(self, table: Table) -> List[str]:
        """Create the table with an inline primary key, then comments, indexes and foreign keys."""
        definitions = [self.column_definition(column) for column in table.columns]
        if table.primary_key is not None:
            constraint = ""
            if table.primary_key.name:
                constraint = f"CONSTRAINT {self.quote(self.truncate(table.primary_key.name))} "
            definitions.append(
                f"{constraint}PRIMARY KEY ({self.quote_columns(table.primary_key.columns)})"
            )

        body = ",\n    ".join(definitions)
        statements = [f"CREATE TABLE IF NOT EXISTS {self.quote_table(table.name)} (\n    {body}\n)"]

        if table.comment:
            statements.append(
                f"COMMENT ON TABLE {self.quote_table(table.name)} IS {self.literal(table.comment)}"
            )
        for column in table.columns:
            if column.comment:
                statements.append(self._column_comment(table.name, column.name, column.comment))
        for index in table.indexes:
            statements.extend(self.create_index(table.name, index))
        for fk in table.foreign_keys:
            statements.extend(self.add_foreign_key(table.name, fk))
        return statements

    def add_column(self, table_name: str, column: Column) -> List[str]:
        """Add the column, followed by its COMMENT ON COLUMN when set."""
        statements = super().add_column(table_name, column)
        if column.comment:
            statements.append(self._column_comment(table_name, column.name, column.comment))
        return statements

    def alter_column(self, table_name: str, change: ColumnChange) -> List[str]:
        """Emit one ALTER COLUMN per changed aspect: type, nullability, default, comment."""
        table = self.quote_table(table_name)
        column = self.quote(change.column_name)
        target = change.to_column
        prefix = f"ALTER TABLE {table} ALTER COLUMN {column}"
        statements = []

        if types_differ(self, change):
            data_type = self.translate_type(target.data_type)
            statements.append(f"{prefix} TYPE {data_type} USING {column}::{data_type}")
        if change.from_column.nullable != target.nullable:
            statements.append(f"{prefix} {'DROP' if target.nullable else 'SET'} NOT NULL")
        if defaults_differ(change):
            if target.default is None:
                statements.append(f"{prefix} DROP DEFAULT")
            else:
                statements.append(f"{prefix} SET DEFAULT {target.default}")
        if change.from_column.comment != target.comment:
            statements.append(self._column_comment(table_name, change.column_name, target.comment))
        return statements

    def create_index(self, table_name: str, index: Index) -> List[str]:
        """Create an index with IF NOT EXISTS and its access method."""
        unique = "UNIQUE " if index.is_unique else ""
        method = f" USING {index.method}" if index.method else ""
        return [
            f"CREATE {unique}INDEX IF NOT EXISTS {self.quote(self.truncate(index.name))} "
            f"ON {self.quote_table(table_name)}{method} ({self.quote_columns(index.columns)})"
        ]

    def drop_index(self, table_name: str, index_name: str) -> List[str]:
        """Drop an index; PostgreSQL index names are schema-scoped."""
        name = self.quote(self.truncate(index_name))
        if self.schema_name:
            name = f"{self.quote(self.schema_name)}.{name}"
        return [f"DROP INDEX IF EXISTS {name}"]

    def add_foreign_key(self, table_name: str, fk: ForeignKey) -> List[str]:
        """Add a foreign key constraint with ALTER TABLE ... ADD CONSTRAINT."""
        return [
            f"ALTER TABLE {self.quote_table(table_name)} "
            f"ADD {self.foreign_key_clause(fk, default_action='NO ACTION')}"
        ]

    def drop_foreign_key(self, table_name: str, fk_name: str) -> List[str]:
        """Drop a foreign key constraint if it exists."""
        return [
            f"ALTER TABLE {self.quote_table(table_name)} "
            f"DROP CONSTRAINT IF EXISTS {self.quote(self.truncate(fk_name))}"
        ]

    def history_table_sql(self, table_name: str) -> List[str]:
        """Return the DDL for the migration history table."""
        return [
            f"CREATE TABLE IF NOT EXISTS {self.quote_table(table_name)} (\n"
            "    id SERIAL PRIMARY KEY,\n"
            "    migration_id VARCHAR(255) NOT NULL,\n"
            "    name VARCHAR(255) NOT NULL,\n"
            "    applied_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,\n"
            "    checksum VARCHAR(64),\n"
            "    execution_time_ms INTEGER\n"
            ")"
        ]

    def _column_comment(self, table_name: str, column_name: str, comment) -> str:
        value = self.literal(comment) if comment else "NULL"
        return (
            f"COMMENT ON COLUMN {self.quote_table(table_name)}.{self.quote(column_name)} "
            f"IS {value}"
        )
