"""PostgreSQL schema introspection via information_schema and pg_catalog."""

import logging
import re
from typing import Any, Dict, List, Optional

from common.errors import SchemaAnalysisError
from common.interfaces.schema_analyzer import SchemaAnalyzer
from dal.postgres.types import canonical_postgres_type
from dal.util.catalog import flag_unique_columns, group_foreign_keys, group_indexes
from schema.model import Column, DatabaseSchema, PrimaryKey, Table, View

logger = logging.getLogger(__name__)

_CAST_LITERAL = re.compile(r"^('(?:[^']|'')*')::[\w\s.\"\[\]]+$")

TABLES_QUERY = """
    SELECT t.table_name, obj_description(c.oid, 'pg_class') AS table_comment
    FROM information_schema.tables t
    JOIN pg_namespace n ON n.nspname = t.table_schema
    JOIN pg_class c ON c.relname = t.table_name AND c.relnamespace = n.oid
    WHERE t.table_schema = $1
    AND t.table_type = 'BASE TABLE'
    ORDER BY t.table_name
"""

COLUMNS_QUERY = """
    SELECT
        c.column_name,
        c.data_type,
        c.udt_name,
        c.is_nullable,
        c.column_default,
        c.character_maximum_length,
        c.numeric_precision,
        c.numeric_scale,
        c.is_generated,
        c.generation_expression,
        col_description(a.attrelid, a.attnum) AS column_comment
    FROM information_schema.columns c
    JOIN pg_namespace n ON n.nspname = c.table_schema
    JOIN pg_class cls ON cls.relname = c.table_name AND cls.relnamespace = n.oid
    JOIN pg_attribute a ON a.attrelid = cls.oid AND a.attname = c.column_name
    WHERE c.table_schema = $1
    AND c.table_name = $2
    ORDER BY c.ordinal_position
"""

PRIMARY_KEY_QUERY = """
    SELECT tc.constraint_name, kcu.column_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
        ON tc.constraint_name = kcu.constraint_name
        AND tc.table_schema = kcu.table_schema
        AND tc.table_name = kcu.table_name
    WHERE tc.constraint_type = 'PRIMARY KEY'
    AND tc.table_schema = $1
    AND tc.table_name = $2
    ORDER BY kcu.ordinal_position
"""

INDEXES_QUERY = """
    SELECT
        i.relname AS index_name,
        a.attname AS column_name,
        ix.indisunique AS is_unique,
        am.amname AS method
    FROM pg_index ix
    JOIN pg_class t ON t.oid = ix.indrelid
    JOIN pg_class i ON i.oid = ix.indexrelid
    JOIN pg_namespace n ON n.oid = t.relnamespace
    JOIN pg_am am ON am.oid = i.relam
    JOIN LATERAL unnest(ix.indkey) WITH ORDINALITY AS k(attnum, ord) ON TRUE
    JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = k.attnum
    WHERE n.nspname = $1
    AND t.relname = $2
    AND NOT ix.indisprimary
    ORDER BY i.relname, k.ord
"""

FOREIGN_KEYS_QUERY = """
    SELECT
        tc.constraint_name,
        kcu.column_name,
        rk.table_name AS ref_table,
        rk.column_name AS ref_column,
        rc.delete_rule,
        rc.update_rule
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
        ON tc.constraint_name = kcu.constraint_name
        AND tc.table_schema = kcu.table_schema
        AND tc.table_name = kcu.table_name
    JOIN information_schema.referential_constraints rc
        ON rc.constraint_name = tc.constraint_name
        AND rc.constraint_schema = tc.table_schema
    JOIN information_schema.key_column_usage rk
        ON rk.constraint_name = rc.unique_constraint_name
        AND rk.constraint_schema = rc.unique_constraint_schema
        AND rk.ordinal_position = kcu.position_in_unique_constraint
    WHERE tc.constraint_type = 'FOREIGN KEY'
    AND tc.table_schema = $1
    AND tc.table_name = $2
    ORDER BY tc.constraint_name, kcu.ordinal_position
"""

VIEWS_QUERY = """
    SELECT table_name AS view_name, view_definition
    FROM information_schema.views
    WHERE table_schema = $1
    ORDER BY table_name
"""

MATERIALIZED_VIEWS_QUERY = """
    SELECT matviewname AS view_name, definition AS view_definition
    FROM pg_matviews
    WHERE schemaname = $1
    ORDER BY matviewname
"""

RELATION_COLUMNS_QUERY = """
    SELECT a.attname AS column_name
    FROM pg_attribute a
    JOIN pg_class c ON c.oid = a.attrelid
    JOIN pg_namespace n ON n.oid = c.relnamespace
    WHERE n.nspname = $1
    AND c.relname = $2
    AND a.attnum > 0
    AND NOT a.attisdropped
    ORDER BY a.attnum
"""


class PostgresSchemaAnalyzer(SchemaAnalyzer):
    """PostgreSQL implementation of SchemaAnalyzer using information_schema and pg_catalog."""

    dialect = "postgres"

    def __init__(self, database, default_schema: str = "public") -> None:
        self._database = database
        self._default_schema = default_schema

    async def analyze_schema(self, schema_name: Optional[str] = None) -> DatabaseSchema:
        """Return tables and views of a schema as one DatabaseSchema."""
        schema_name = schema_name or self._default_schema
        schema = DatabaseSchema(schema_name=schema_name)
        for table in (await self.analyze_tables(schema_name)).values():
            schema.add_table(table)
        for view in (await self.analyze_views(schema_name)).values():
            schema.add_view(view)
        logger.info(
            "Analyzed postgres schema %s: %d tables, %d views",
            schema_name,
            len(schema.tables),
            len(schema.views),
        )
        return schema

    async def analyze_tables(self, schema_name: Optional[str] = None) -> Dict[str, Table]:
        """Return every base table of a schema keyed by name."""
        schema_name = schema_name or self._default_schema
        tables: Dict[str, Table] = {}
        async with self._database.get_connection() as conn:
            table_rows = await self._fetch(conn, "list_tables", TABLES_QUERY, schema_name)
            for row in table_rows:
                table = await self._analyze_table(conn, schema_name, row["table_name"])
                table.comment = row.get("table_comment")
                tables[table.name] = table
        return tables

    async def analyze_views(self, schema_name: Optional[str] = None) -> Dict[str, View]:
        """Return every view of a schema keyed by name."""
        schema_name = schema_name or self._default_schema
        views: Dict[str, View] = {}
        async with self._database.get_connection() as conn:
            plain = await self._fetch(conn, "list_views", VIEWS_QUERY, schema_name)
            materialized = await self._fetch(
                conn, "list_materialized_views", MATERIALIZED_VIEWS_QUERY, schema_name
            )
            for rows, is_materialized in ((plain, False), (materialized, True)):
                for row in rows:
                    name = row["view_name"]
                    column_rows = await self._fetch(
                        conn, "view_columns", RELATION_COLUMNS_QUERY, schema_name, name, table=name
                    )
                    views[name] = View(
                        name=name,
                        definition=(row.get("view_definition") or "").strip(),
                        columns=[column["column_name"] for column in column_rows],
                        is_materialized=is_materialized,
                    )
        return views

    async def _analyze_table(self, conn, schema_name: str, table_name: str) -> Table:
        table = Table(name=table_name)

        column_rows = await self._fetch(
            conn, "columns", COLUMNS_QUERY, schema_name, table_name, table=table_name
        )
        for row in column_rows:
            table.add_column(_column_from_row(row))

        pk_rows = await self._fetch(
            conn, "primary_key", PRIMARY_KEY_QUERY, schema_name, table_name, table=table_name
        )
        if pk_rows:
            table.set_primary_key(
                PrimaryKey(
                    name=pk_rows[0]["constraint_name"],
                    columns=[row["column_name"] for row in pk_rows],
                )
            )

        index_rows = await self._fetch(
            conn, "indexes", INDEXES_QUERY, schema_name, table_name, table=table_name
        )
        for index in group_indexes(index_rows):
            table.add_index(index)

        fk_rows = await self._fetch(
            conn, "foreign_keys", FOREIGN_KEYS_QUERY, schema_name, table_name, table=table_name
        )
        for fk in group_foreign_keys(fk_rows):
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


def _render_type(row: Dict[str, Any]) -> str:
    data_type = (row.get("data_type") or "").lower()
    max_length = row.get("character_maximum_length")
    if data_type == "character varying" and max_length:
        return f"varchar({max_length})"
    if data_type == "character" and max_length:
        return f"char({max_length})"
    if data_type == "numeric" and row.get("numeric_precision") is not None:
        return f"numeric({row['numeric_precision']},{row.get('numeric_scale') or 0})"
    if data_type == "array":
        return canonical_postgres_type((row.get("udt_name") or "").lstrip("_") + "[]")
    if data_type == "user-defined":
        return (row.get("udt_name") or data_type).lower()
    return canonical_postgres_type(data_type)


def _clean_default(default: Optional[str]) -> Optional[str]:
    if default is None:
        return None
    match = _CAST_LITERAL.match(default.strip())
    return match.group(1) if match else default


def _column_from_row(row: Dict[str, Any]) -> Column:
    is_generated = (row.get("is_generated") or "NEVER").upper() == "ALWAYS"
    return Column(
        name=row["column_name"],
        data_type=_render_type(row),
        nullable=row.get("is_nullable") == "YES",
        default=None if is_generated else _clean_default(row.get("column_default")),
        comment=row.get("column_comment"),
        is_generated=is_generated,
        generation_expression=row.get("generation_expression") if is_generated else None,
    )
