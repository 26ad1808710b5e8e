"""MySQL schema introspection via information_schema."""

import logging
import re
from typing import Any, Dict, List, Optional

from common.errors import SchemaAnalysisError
from common.interfaces.schema_analyzer import SchemaAnalyzer
from common.utils.sql_text import quote_literal
from dal.mysql.types import canonical_mysql_type
from dal.util.catalog import flag_unique_columns, group_foreign_keys, group_indexes
from schema.model import Column, DatabaseSchema, PrimaryKey, Table, View

logger = logging.getLogger(__name__)

# ``{schema}`` is either DATABASE() or the $1 placeholder
TABLES_QUERY = """
    SELECT table_name AS table_name, table_comment AS table_comment
    FROM information_schema.tables
    WHERE table_schema = {schema}
    AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

COLUMNS_QUERY = """
    SELECT
        column_name AS column_name,
        data_type AS data_type,
        column_type AS column_type,
        is_nullable AS is_nullable,
        column_default AS column_default,
        character_maximum_length AS character_maximum_length,
        extra AS extra,
        generation_expression AS generation_expression,
        column_comment AS column_comment
    FROM information_schema.columns
    WHERE table_schema = {schema}
    AND table_name = {table}
    ORDER BY ordinal_position
"""

PRIMARY_KEY_QUERY = """
    SELECT column_name AS column_name
    FROM information_schema.key_column_usage
    WHERE table_schema = {schema}
    AND table_name = {table}
    AND constraint_name = 'PRIMARY'
    ORDER BY ordinal_position
"""

INDEXES_QUERY = """
    SELECT
        index_name AS index_name,
        column_name AS column_name,
        non_unique AS non_unique,
        index_type AS method
    FROM information_schema.statistics
    WHERE table_schema = {schema}
    AND table_name = {table}
    AND index_name <> 'PRIMARY'
    ORDER BY index_name, seq_in_index
"""

FOREIGN_KEYS_QUERY = """
    SELECT
        kcu.constraint_name AS constraint_name,
        kcu.column_name AS column_name,
        kcu.referenced_table_name AS ref_table,
        kcu.referenced_column_name AS ref_column,
        rc.delete_rule AS delete_rule,
        rc.update_rule AS update_rule
    FROM information_schema.key_column_usage kcu
    JOIN information_schema.referential_constraints rc
        ON rc.constraint_schema = kcu.constraint_schema
        AND rc.constraint_name = kcu.constraint_name
        AND rc.table_name = kcu.table_name
    WHERE kcu.table_schema = {schema}
    AND kcu.table_name = {table}
    AND kcu.referenced_table_name IS NOT NULL
    ORDER BY kcu.constraint_name, kcu.ordinal_position
"""

VIEWS_QUERY = """
    SELECT table_name AS view_name, view_definition AS view_definition
    FROM information_schema.views
    WHERE table_schema = {schema}
    ORDER BY table_name
"""

VIEW_COLUMNS_QUERY = """
    SELECT column_name AS column_name
    FROM information_schema.columns
    WHERE table_schema = {schema}
    AND table_name = {table}
    ORDER BY ordinal_position
"""

_NUMERIC_LITERAL = re.compile(r"^-?\d+(\.\d+)?$")
_STRING_TYPES = ("char", "varchar", "text", "tinytext", "mediumtext", "longtext", "enum", "set")


class MysqlSchemaAnalyzer(SchemaAnalyzer):
    """MySQL implementation of SchemaAnalyzer using information_schema.

    Analysis is scoped to DATABASE() unless a schema name is given.
    """

    dialect = "mysql"

    def __init__(self, database, default_schema: Optional[str] = None) -> None:
        self._database = database
        self._default_schema = default_schema

    def _scope(self, schema_name: Optional[str], sql: str, with_table: bool) -> tuple[str, list]:
        schema_name = schema_name or self._default_schema
        if schema_name:
            schema_sql, params = "$1", [schema_name]
            table_sql = "$2"
        else:
            schema_sql, params = "DATABASE()", []
            table_sql = "$1"
        return sql.format(schema=schema_sql, table=table_sql if with_table else ""), params

    async def analyze_schema(self, schema_name: Optional[str] = None) -> DatabaseSchema:
        """Return tables and views of a schema as one DatabaseSchema."""
        schema = DatabaseSchema(schema_name=schema_name or self._default_schema)
        for table in (await self.analyze_tables(schema_name)).values():
            schema.add_table(table)
        for view in (await self.analyze_views(schema_name)).values():
            schema.add_view(view)
        logger.info(
            "Analyzed mysql schema %s: %d tables, %d views",
            schema.schema_name or "DATABASE()",
            len(schema.tables),
            len(schema.views),
        )
        return schema

    async def analyze_tables(self, schema_name: Optional[str] = None) -> Dict[str, Table]:
        """Return every base table of a schema keyed by name."""
        tables: Dict[str, Table] = {}
        sql, params = self._scope(schema_name, TABLES_QUERY, with_table=False)
        async with self._database.get_connection() as conn:
            for row in await self._fetch(conn, "list_tables", sql, *params):
                table = await self._analyze_table(conn, schema_name, row["table_name"])
                table.comment = row.get("table_comment") or None
                tables[table.name] = table
        return tables

    async def analyze_views(self, schema_name: Optional[str] = None) -> Dict[str, View]:
        """Return every view of a schema keyed by name."""
        views: Dict[str, View] = {}
        sql, params = self._scope(schema_name, VIEWS_QUERY, with_table=False)
        async with self._database.get_connection() as conn:
            for row in await self._fetch(conn, "list_views", sql, *params):
                name = row["view_name"]
                columns_sql, columns_params = self._scope(
                    schema_name, VIEW_COLUMNS_QUERY, with_table=True
                )
                column_rows = await self._fetch(
                    conn, "view_columns", columns_sql, *columns_params, name, table=name
                )
                views[name] = View(
                    name=name,
                    definition=(row.get("view_definition") or "").strip(),
                    columns=[column["column_name"] for column in column_rows],
                    is_materialized=False,
                )
        return views

    async def _analyze_table(self, conn, schema_name: Optional[str], table_name: str) -> Table:
        table = Table(name=table_name)

        async def _query(operation: str, template: str) -> List[Dict[str, Any]]:
            sql, params = self._scope(schema_name, template, with_table=True)
            return await self._fetch(conn, operation, sql, *params, table_name, table=table_name)

        for row in await _query("columns", COLUMNS_QUERY):
            table.add_column(_column_from_row(row))

        pk_rows = await _query("primary_key", PRIMARY_KEY_QUERY)
        if pk_rows:
            table.set_primary_key(
                PrimaryKey(name="PRIMARY", columns=[row["column_name"] for row in pk_rows])
            )

        fk_rows = await _query("foreign_keys", FOREIGN_KEYS_QUERY)
        foreign_keys = group_foreign_keys(fk_rows)
        fk_names = {fk.name for fk in foreign_keys}

        index_rows = await _query("indexes", INDEXES_QUERY)
        for row in index_rows:
            row["is_unique"] = not int(row["non_unique"])
        for index in group_indexes(index_rows):
            # InnoDB backs each foreign key with an index named after the constraint
            if index.name in fk_names and not index.is_unique:
                continue
            table.add_index(index)

        for fk in foreign_keys:
            table.add_foreign_key(fk)

        flag_unique_columns(table)
        return table

    async def _fetch(
        self, conn, operation: str, sql: str, *params: Any, table: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        try:
            return await conn.fetch(sql, *params)
        except Exception as exc:
            raise SchemaAnalysisError(
                f"Failed to read {operation.replace('_', ' ')}: {exc}",
                dialect=self.dialect,
                table=table,
                operation=operation,
            ) from exc


def _clean_default(row: Dict[str, Any]) -> Optional[str]:
    default = row.get("column_default")
    if default is None:
        return None
    extra = (row.get("extra") or "").upper()
    text = str(default)
    if "DEFAULT_GENERATED" in extra or text.upper().startswith("CURRENT_TIMESTAMP"):
        return text
    if text.startswith("'") or text.upper() == "NULL":
        return text
    data_type = (row.get("data_type") or "").lower()
    if data_type in _STRING_TYPES or not _NUMERIC_LITERAL.match(text):
        return quote_literal(text)
    return text


def _column_from_row(row: Dict[str, Any]) -> Column:
    extra = (row.get("extra") or "").upper()
    is_generated = "VIRTUAL GENERATED" in extra or "STORED GENERATED" in extra
    return Column(
        name=row["column_name"],
        data_type=canonical_mysql_type(row.get("column_type") or row.get("data_type") or ""),
        nullable=row.get("is_nullable") == "YES",
        default=None if is_generated else _clean_default(row),
        comment=row.get("column_comment") or None,
        is_generated=is_generated,
        generation_expression=(row.get("generation_expression") or None) if is_generated else None,
    )
