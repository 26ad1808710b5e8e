"""Pure schema comparison.

``diff_schemas`` compares a current schema (from an analyzer) with a target
schema (from the model registry) and returns every structural change needed,
gated by the removal flags of ``SchemaPolicy``. It performs no I/O and returns
the same diff for the same inputs.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Set

from common.config.settings import SchemaPolicy
from common.utils.sql_text import normalize_default, normalize_type_name
from schema.model import Column, ColumnChange, DatabaseSchema, SchemaDiff, Table

logger = logging.getLogger(__name__)

TypeNormalizer = Callable[[str], str]


def column_needs_alteration(
    current: Column, target: Column, normalize_type: TypeNormalizer = normalize_type_name
) -> bool:
    """Return True when type, nullability, default or uniqueness differ."""
    if normalize_type(current.data_type) != normalize_type(target.data_type):
        return True
    if current.nullable != target.nullable:
        return True
    if normalize_default(current.default) != normalize_default(target.default):
        return True
    return current.is_unique != target.is_unique


def dependency_order(tables: Dict[str, Table]) -> List[str]:
    """Order table names so referenced tables come before referencing ones.

    Only references between the given tables count. Ties resolve by name and
    tables left in a cycle are appended in name order.
    """
    pending = {
        name: {ref for ref in table.referenced_tables() if ref in tables}
        for name, table in tables.items()
    }
    ordered: List[str] = []
    while pending:
        ready = sorted(name for name, refs in pending.items() if not refs)
        if not ready:
            cycle = sorted(pending)
            logger.warning("Foreign key cycle between tables: %s", ", ".join(cycle))
            ordered.extend(cycle)
            break
        for name in ready:
            ordered.append(name)
            del pending[name]
        for refs in pending.values():
            refs.difference_update(ready)
    return ordered


def diff_schemas(
    current: DatabaseSchema,
    target: DatabaseSchema,
    policy: Optional[SchemaPolicy] = None,
    ignore_tables: Iterable[str] = (),
    normalize_type: TypeNormalizer = normalize_type_name,
) -> SchemaDiff:
    """Compute the changes that turn ``current`` into ``target``.

    Args:
        current: Schema read from the live database.
        target: Desired schema.
        policy: Removal gates; defaults to a policy that never drops.
        ignore_tables: Tables removed from both sides before comparing.
        normalize_type: Maps a type to the form used for comparison.

    Returns:
        SchemaDiff; ``is_empty()`` when the schemas already match.
    """
    policy = policy or SchemaPolicy()
    ignored = set(ignore_tables)
    current_tables = {n: t for n, t in current.tables.items() if n not in ignored}
    target_tables = {n: t for n, t in target.tables.items() if n not in ignored}

    diff = SchemaDiff()

    new_tables = {n: t for n, t in target_tables.items() if n not in current_tables}
    for name in dependency_order(new_tables):
        diff.tables_to_create.append(new_tables[name].model_copy(deep=True))

    dropped: Set[str] = set()
    if policy.allow_table_removal:
        old_tables = {n: t for n, t in current_tables.items() if n not in target_tables}
        # referencing tables go first
        diff.tables_to_drop = list(reversed(dependency_order(old_tables)))
        dropped = set(diff.tables_to_drop)

    for name in sorted(set(current_tables) & set(target_tables)):
        _diff_table(diff, current_tables[name], target_tables[name], policy, normalize_type)

    if dropped:
        _drop_references_to(diff, current_tables, dropped)

    if diff.is_empty():
        logger.debug("Schemas are in sync")
    else:
        logger.info("Schema diff: %s", diff.summary())
    return diff


def _diff_table(
    diff: SchemaDiff,
    current: Table,
    target: Table,
    policy: SchemaPolicy,
    normalize_type: TypeNormalizer,
) -> None:
    name = target.name
    current_columns = {column.name: column for column in current.columns}
    target_columns = {column.name: column for column in target.columns}

    added = [column for column in target.columns if column.name not in current_columns]
    if added:
        diff.columns_to_add[name] = [column.model_copy(deep=True) for column in added]

    if policy.allow_column_removal:
        removed = [column.name for column in current.columns if column.name not in target_columns]
        if removed:
            diff.columns_to_drop[name] = removed

    changes = [
        ColumnChange(
            column_name=column.name,
            from_column=current_columns[column.name].model_copy(deep=True),
            to_column=column.model_copy(deep=True),
        )
        for column in target.columns
        if column.name in current_columns
        and column_needs_alteration(current_columns[column.name], column, normalize_type)
    ]
    if changes:
        diff.columns_to_alter[name] = changes

    current_indexes = {index.name: index for index in current.indexes}
    target_indexes = {index.name: index for index in target.indexes}
    create_indexes = []
    drop_indexes = []
    for index in target.indexes:
        existing = current_indexes.get(index.name)
        if existing is None:
            create_indexes.append(index.model_copy(deep=True))
        elif not existing.same_definition(index):
            drop_indexes.append(index.name)
            create_indexes.append(index.model_copy(deep=True))
    for index in current.indexes:
        if index.name not in target_indexes:
            drop_indexes.append(index.name)
    if create_indexes:
        diff.indices_to_create[name] = create_indexes
    if drop_indexes:
        diff.indices_to_drop[name] = drop_indexes

    current_fks = {fk.name: fk for fk in current.foreign_keys}
    target_fks = {fk.name: fk for fk in target.foreign_keys}
    create_fks = []
    drop_fks = []
    for fk in target.foreign_keys:
        existing = current_fks.get(fk.name)
        if existing is None:
            create_fks.append(fk.model_copy(deep=True))
        elif not existing.same_definition(fk):
            drop_fks.append(fk.name)
            create_fks.append(fk.model_copy(deep=True))
    for fk in current.foreign_keys:
        if fk.name not in target_fks:
            drop_fks.append(fk.name)
    if create_fks:
        diff.foreign_keys_to_create[name] = create_fks
    if drop_fks:
        diff.foreign_keys_to_drop[name] = drop_fks


def _drop_references_to(
    diff: SchemaDiff, current_tables: Dict[str, Table], dropped: Set[str]
) -> None:
    """Schedule drops of surviving foreign keys that reference dropped tables."""
    for name in sorted(current_tables):
        if name in dropped:
            continue
        scheduled = diff.foreign_keys_to_drop.setdefault(name, [])
        for fk in current_tables[name].foreign_keys:
            if fk.ref_table in dropped and fk.name not in scheduled:
                scheduled.append(fk.name)
        if not scheduled:
            del diff.foreign_keys_to_drop[name]
