from typing import List, Protocol, runtime_checkable

from schema.model import Column, ColumnChange, ForeignKey, Index, Table


@runtime_checkable
class DdlRenderer(Protocol):
    """Protocol for dialect-specific DDL rendering.

    Operations return complete statements in execution order. Operations the
    dialect cannot perform raise MigrationError rather than emitting invalid SQL.
    """

    dialect: str
    max_identifier_length: int

    def quote(self, identifier: str) -> str: ...

    def translate_type(self, data_type: str) -> str: ...

    def native_type(self, data_type: str) -> str: ...

    def create_table(self, table: Table) -> List[str]: ...

    def drop_table(self, table_name: str) -> List[str]: ...

    def add_column(self, table_name: str, column: Column) -> List[str]: ...

    def drop_column(self, table_name: str, column_name: str) -> List[str]: ...

    def alter_column(self, table_name: str, change: ColumnChange) -> List[str]: ...

    def create_index(self, table_name: str, index: Index) -> List[str]: ...

    def drop_index(self, table_name: str, index_name: str) -> List[str]: ...

    def add_foreign_key(self, table_name: str, fk: ForeignKey) -> List[str]: ...

    def drop_foreign_key(self, table_name: str, fk_name: str) -> List[str]: ...

    def history_table_sql(self, table_name: str) -> List[str]: ...

    def insert_history_sql(self, table_name: str) -> str: ...

    def select_history_sql(self, table_name: str) -> str: ...
