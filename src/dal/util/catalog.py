"""Helpers shared by the dialect schema analyzers for folding catalog rows."""

from typing import Any, Dict, Iterable, List, Optional

from schema.model import ForeignKey, Index, Table


def group_indexes(
    rows: Iterable[Dict[str, Any]],
    name_key: str = "index_name",
    column_key: str = "column_name",
    unique_key: str = "is_unique",
    method_key: Optional[str] = "method",
) -> List[Index]:
    """Fold one-row-per-column index rows into Index definitions.

    First-seen order is kept so a multi-column index's rows append onto one
    definition in catalog order.
    """
    indexes: Dict[str, Index] = {}
    for row in rows:
        name = row[name_key]
        index = indexes.get(name)
        if index is None:
            method = row.get(method_key) if method_key else None
            index = Index(
                name=name,
                is_unique=bool(row[unique_key]),
                method=method.lower() if isinstance(method, str) else None,
            )
            indexes[name] = index
        index.columns.append(row[column_key])
    return list(indexes.values())


def group_foreign_keys(
    rows: Iterable[Dict[str, Any]],
    name_key: str = "constraint_name",
    column_key: str = "column_name",
    ref_table_key: str = "ref_table",
    ref_column_key: str = "ref_column",
    on_delete_key: str = "delete_rule",
    on_update_key: str = "update_rule",
) -> List[ForeignKey]:
    """Fold one-row-per-column-pair foreign key rows into ForeignKey definitions."""
    foreign_keys: Dict[Any, ForeignKey] = {}
    for row in rows:
        key = row[name_key]
        fk = foreign_keys.get(key)
        if fk is None:
            fk = ForeignKey(
                name=str(key),
                ref_table=row[ref_table_key],
                on_delete=_action(row.get(on_delete_key)),
                on_update=_action(row.get(on_update_key)),
            )
            foreign_keys[key] = fk
        fk.columns.append(row[column_key])
        fk.ref_columns.append(row[ref_column_key])
    return list(foreign_keys.values())


def flag_unique_columns(table: Table) -> None:
    """Mark columns covered by a single-column unique index as unique."""
    for index in table.indexes:
        if index.is_unique and len(index.columns) == 1:
            column = table.get_column(index.columns[0])
            if column is not None:
                column.is_unique = True


def _action(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = " ".join(str(value).upper().split())
    return text or None
