"""MySQL DDL rendering for schema sync migrations."""

from typing import List

from dal.ddl import BaseDdlRenderer, defaults_differ, types_differ
from dal.mysql.types import canonical_mysql_type, translate_mysql_type
from schema.model import Column, ColumnChange, ForeignKey, Index, Table

TABLE_OPTIONS = "ENGINE=InnoDB DEFAULT CHARACTER SET=utf8mb4 COLLATE=utf8mb4_unicode_ci"


class MysqlDdlRenderer(BaseDdlRenderer):
    """MySQL DDL: backticks, inline unique keys and foreign keys, COMMENT options."""

    dialect = "mysql"
    quote_char = "`"
    max_identifier_length = 64

    def translate_type(self, data_type: str) -> str:
        """Translate a canonical type to its MySQL spelling."""
        return translate_mysql_type(data_type)

    def native_type(self, data_type: str) -> str:
        """Return the type as information_schema.columns.column_type reports it."""
        return canonical_mysql_type(data_type)

    def column_definition(self, column: Column) -> str:
        """Render a column with its COMMENT option."""
        definition = super().column_definition(column)
        if column.comment:
            definition += f" COMMENT {self.literal(column.comment)}"
        return definition

    def create_table(self, table: Table) -> List[str]:
        """Create the table with inline keys, foreign keys and table options."""
        definitions = [self.column_definition(column) for column in table.columns]
        if table.primary_key is not None:
            definitions.append(f"PRIMARY KEY ({self.quote_columns(table.primary_key.columns)})")
        for index in table.indexes:
            if index.is_unique:
                definitions.append(
                    f"UNIQUE KEY {self.quote(self.truncate(index.name))} "
                    f"({self.quote_columns(index.columns)})"
                )
        for fk in table.foreign_keys:
            definitions.append(self.foreign_key_clause(fk, default_action="RESTRICT"))

        options = TABLE_OPTIONS
        if table.comment:
            options += f" COMMENT={self.literal(table.comment)}"
        body = ",\n    ".join(definitions)
        statements = [
            f"CREATE TABLE IF NOT EXISTS {self.quote_table(table.name)} (\n    {body}\n) {options}"
        ]
        for index in table.indexes:
            if not index.is_unique:
                statements.extend(self.create_index(table.name, index))
        return statements

    def alter_column(self, table_name: str, change: ColumnChange) -> List[str]:
        """Redefine the column with MODIFY COLUMN."""
        before, after = change.from_column, change.to_column
        if not (
            types_differ(self, change)
            or before.nullable != after.nullable
            or defaults_differ(change)
            or before.comment != after.comment
        ):
            return []
        return [
            f"ALTER TABLE {self.quote_table(table_name)} "
            f"MODIFY COLUMN {self.column_definition(after)}"
        ]

    def create_index(self, table_name: str, index: Index) -> List[str]:
        """Create an index; MySQL has no IF NOT EXISTS for indexes."""
        unique = "UNIQUE " if index.is_unique else ""
        method = f" USING {index.method.upper()}" if index.method else ""
        return [
            f"CREATE {unique}INDEX {self.quote(self.truncate(index.name))}{method} "
            f"ON {self.quote_table(table_name)} ({self.quote_columns(index.columns)})"
        ]

    def drop_index(self, table_name: str, index_name: str) -> List[str]:
        """Drop an index; MySQL index names are table-scoped."""
        return [
            f"DROP INDEX {self.quote(self.truncate(index_name))} ON {self.quote_table(table_name)}"
        ]

    def add_foreign_key(self, table_name: str, fk: ForeignKey) -> List[str]:
        """Add a foreign key constraint to an existing table."""
        return [
            f"ALTER TABLE {self.quote_table(table_name)} "
            f"ADD {self.foreign_key_clause(fk, default_action='RESTRICT')}"
        ]

    def drop_foreign_key(self, table_name: str, fk_name: str) -> List[str]:
        """Drop a foreign key with DROP FOREIGN KEY."""
        return [
            f"ALTER TABLE {self.quote_table(table_name)} "
            f"DROP FOREIGN KEY {self.quote(self.truncate(fk_name))}"
        ]

    def history_table_sql(self, table_name: str) -> List[str]:
        """Return the DDL for the migration history table."""
        return [
            f"CREATE TABLE IF NOT EXISTS {self.quote_table(table_name)} (\n"
            "    id INT AUTO_INCREMENT PRIMARY KEY,\n"
            "    migration_id VARCHAR(255) NOT NULL,\n"
            "    name VARCHAR(255) NOT NULL,\n"
            "    applied_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,\n"
            "    checksum VARCHAR(64) NULL,\n"
            "    execution_time_ms INT NULL\n"
            f") {TABLE_OPTIONS}"
        ]
