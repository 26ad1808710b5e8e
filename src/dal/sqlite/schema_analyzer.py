"""SQLite schema introspection via sqlite_master and PRAGMA queries."""

import logging
import re
from typing import Any, Dict, List, Optional

from common.errors import SchemaAnalysisError
from common.interfaces.schema_analyzer import SchemaAnalyzer
from common.utils.naming import get_foreign_key_name
from common.utils.sql_text import normalize_type_name
from dal.util.catalog import flag_unique_columns
from schema.model import Column, DatabaseSchema, ForeignKey, Index, PrimaryKey, Table, View

logger = logging.getLogger(__name__)

TABLES_QUERY = """
    SELECT name, sql
    FROM sqlite_master
    WHERE type = 'table'
    AND name NOT LIKE 'sqlite_%'
    ORDER BY name
"""

VIEWS_QUERY = """
    SELECT name, sql
    FROM sqlite_master
    WHERE type = 'view'
    ORDER BY name
"""

_IDENTIFIER = r'(?:"(?:[^"]|"")+"|`[^`]+`|\[[^\]]+\]|[A-Za-z_][\w$]*)'
_NAMED_FOREIGN_KEY = re.compile(
    rf"CONSTRAINT\s+({_IDENTIFIER})\s+FOREIGN\s+KEY\s*\(([^)]*)\)", re.IGNORECASE
)
_VIEW_BODY = re.compile(r"^\s*CREATE\s+(?:TEMP\w*\s+)?VIEW\s+.*?\s+AS\s+(.*)$", re.I | re.S)


def _unquote(identifier: str) -> str:
    identifier = identifier.strip()
    if identifier[:1] in ('"', "`", "[") and len(identifier) >= 2:
        inner = identifier[1:-1]
        return inner.replace('""', '"') if identifier[0] == '"' else inner
    return identifier


def _pragma_target(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def named_foreign_keys(create_sql: Optional[str]) -> Dict[tuple, str]:
    """Map local column tuples to constraint names declared in CREATE TABLE text."""
    names: Dict[tuple, str] = {}
    for match in _NAMED_FOREIGN_KEY.finditer(create_sql or ""):
        columns = tuple(_unquote(part) for part in match.group(2).split(","))
        names[columns] = _unquote(match.group(1))
    return names


class SqliteSchemaAnalyzer(SchemaAnalyzer):
    """SQLite implementation of SchemaAnalyzer using sqlite_master and PRAGMA.

    SQLite does not report foreign key names; names declared with ``CONSTRAINT``
    are recovered from the table's CREATE statement, others fall back to
    ``fk_<table>_<columns>``.
    """

    dialect = "sqlite"

    def __init__(self, database) -> None:
        self._database = database

    async def analyze_schema(self, schema_name: Optional[str] = None) -> DatabaseSchema:
        """Return tables and views of a schema as one DatabaseSchema."""
        schema = DatabaseSchema(schema_name=schema_name)
        for table in (await self.analyze_tables(schema_name)).values():
            schema.add_table(table)
        for view in (await self.analyze_views(schema_name)).values():
            schema.add_view(view)
        logger.info(
            "Analyzed sqlite schema: %d tables, %d views", len(schema.tables), len(schema.views)
        )
        return schema

    async def analyze_tables(self, schema_name: Optional[str] = None) -> Dict[str, Table]:
        """Return every base table of a schema keyed by name."""
        _ = schema_name
        tables: Dict[str, Table] = {}
        async with self._database.get_connection() as conn:
            for row in await self._fetch(conn, "list_tables", TABLES_QUERY):
                table = await self._analyze_table(conn, row["name"], row.get("sql"))
                tables[table.name] = table
        return tables

    async def analyze_views(self, schema_name: Optional[str] = None) -> Dict[str, View]:
        """Return every view of a schema keyed by name."""
        _ = schema_name
        views: Dict[str, View] = {}
        async with self._database.get_connection() as conn:
            for row in await self._fetch(conn, "list_views", VIEWS_QUERY):
                name = row["name"]
                column_rows = await self._fetch(
                    conn, "view_columns", f"PRAGMA table_info({_pragma_target(name)})", table=name
                )
                body = _VIEW_BODY.match(row.get("sql") or "")
                views[name] = View(
                    name=name,
                    definition=(body.group(1) if body else row.get("sql") or "").strip(),
                    columns=[column["name"] for column in column_rows],
                    is_materialized=False,
                )
        return views

    async def _analyze_table(self, conn, table_name: str, create_sql: Optional[str]) -> Table:
        table = Table(name=table_name)
        target = _pragma_target(table_name)

        column_rows = await self._fetch(
            conn, "columns", f"PRAGMA table_info({target})", table=table_name
        )
        pk_columns = []
        for row in column_rows:
            is_pk = int(row["pk"]) > 0
            table.add_column(
                Column(
                    name=row["name"],
                    data_type=normalize_type_name(row["type"]) or "text",
                    nullable=not int(row["notnull"]) and not is_pk,
                    default=row["dflt_value"],
                )
            )
            if is_pk:
                pk_columns.append((int(row["pk"]), row["name"]))
        if pk_columns:
            table.set_primary_key(PrimaryKey(columns=[name for _, name in sorted(pk_columns)]))

        index_rows = await self._fetch(
            conn, "indexes", f"PRAGMA index_list({target})", table=table_name
        )
        auto_unique: List[Index] = []
        for row in index_rows:
            if row["origin"] == "pk":
                continue
            info_target = _pragma_target(row["name"])
            info_rows = await self._fetch(
                conn, "index_columns", f"PRAGMA index_info({info_target})", table=table_name
            )
            index = Index(
                name=row["name"],
                columns=[
                    info["name"]
                    for info in sorted(info_rows, key=lambda r: r["seqno"])
                    if info["name"] is not None
                ],
                is_unique=bool(row["unique"]),
            )
            if row["name"].startswith("sqlite_autoindex_"):
                auto_unique.append(index)
            else:
                table.add_index(index)

        fk_rows = await self._fetch(
            conn, "foreign_keys", f"PRAGMA foreign_key_list({target})", table=table_name
        )
        declared = named_foreign_keys(create_sql)
        for fk in _group_pragma_foreign_keys(table_name, fk_rows, declared):
            table.add_foreign_key(fk)

        flag_unique_columns(table)
        # inline UNIQUE constraints only mark columns, they are not diffable indexes
        for index in auto_unique:
            if index.is_unique and len(index.columns) == 1:
                column = table.get_column(index.columns[0])
                if column is not None:
                    column.is_unique = True
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


def _group_pragma_foreign_keys(
    table_name: str, rows: List[Dict[str, Any]], declared: Dict[tuple, str]
) -> List[ForeignKey]:
    grouped: Dict[int, List[Dict[str, Any]]] = {}
    for row in rows:
        grouped.setdefault(int(row["id"]), []).append(row)

    foreign_keys = []
    for fk_id in sorted(grouped, reverse=True):
        fk_rows = sorted(grouped[fk_id], key=lambda r: r["seq"])
        columns = [row["from"] for row in fk_rows]
        name = declared.get(tuple(columns)) or get_foreign_key_name(
            "fk_{table}_{column}", table_name, "_".join(columns)
        )
        first = fk_rows[0]
        foreign_keys.append(
            ForeignKey(
                name=name,
                columns=columns,
                ref_table=first["table"],
                ref_columns=[row["to"] or "" for row in fk_rows],
                on_delete=(first.get("on_delete") or None),
                on_update=(first.get("on_update") or None),
            )
        )
    return foreign_keys
