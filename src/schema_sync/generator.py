"""Render a SchemaDiff into ordered migration units for one dialect."""

import logging
from typing import Dict, List, Set

from common.interfaces import DdlRenderer
from schema.model import MigrationUnit, SchemaDiff

logger = logging.getLogger(__name__)


class MigrationGenerator:
    """Turns a diff into ordered, dialect-specific migration units.

    Unit order: table creations, foreign key drops ahead of table drops, table
    drops, column additions, column drops, column alterations, index creations,
    index drops, foreign key creations, remaining foreign key drops.

    A table losing columns has its foreign key and index drops emitted right
    before its column drops, since those objects may cover the dropped columns.
    An index or foreign key redefined under the same name is dropped right
    before it is created again, unless an earlier drop already removed it.
    Renderer capability errors propagate and abort generation.
    """

    def __init__(self, renderer: DdlRenderer) -> None:
        self.renderer = renderer

    def generate_units(self, diff: SchemaDiff) -> List[MigrationUnit]:
        renderer = self.renderer
        units: List[MigrationUnit] = []

        def emit(label: str, statements: List[str]) -> None:
            if statements:
                units.append(MigrationUnit(label=label, statements=statements))

        def drop_foreign_keys(table_name: str, skip: Set[str]) -> None:
            emit(
                f"drop_foreign_keys_{table_name}",
                _flatten(
                    renderer.drop_foreign_key(table_name, name)
                    for name in diff.foreign_keys_to_drop.get(table_name, [])
                    if name not in skip
                ),
            )

        def drop_indexes(table_name: str, skip: Set[str]) -> None:
            emit(
                f"drop_indexes_{table_name}",
                _flatten(
                    renderer.drop_index(table_name, name)
                    for name in diff.indices_to_drop.get(table_name, [])
                    if name not in skip
                ),
            )

        replaced_indexes = _replaced(diff.indices_to_drop, diff.indices_to_create)
        replaced_fks = _replaced(diff.foreign_keys_to_drop, diff.foreign_keys_to_create)
        early_fk_drops = bool(diff.tables_to_drop)
        # tables whose index and foreign key drops run ahead of their column drops
        shrinking = set(diff.columns_to_drop)

        def fks_dropped_early(table_name: str) -> bool:
            return early_fk_drops or table_name in shrinking

        for table in diff.tables_to_create:
            emit(f"create_table_{table.name}", renderer.create_table(table))

        if early_fk_drops:
            for table_name in sorted(diff.foreign_keys_to_drop):
                drop_foreign_keys(table_name, set())

        for table_name in diff.tables_to_drop:
            emit(f"drop_table_{table_name}", renderer.drop_table(table_name))

        for table_name in sorted(diff.columns_to_add):
            emit(
                f"add_columns_{table_name}",
                _flatten(
                    renderer.add_column(table_name, column)
                    for column in diff.columns_to_add[table_name]
                ),
            )

        for table_name in sorted(diff.columns_to_drop):
            if not early_fk_drops:
                drop_foreign_keys(table_name, set())
            drop_indexes(table_name, set())
            emit(
                f"drop_columns_{table_name}",
                _flatten(
                    renderer.drop_column(table_name, name)
                    for name in diff.columns_to_drop[table_name]
                ),
            )

        for table_name in sorted(diff.columns_to_alter):
            emit(
                f"alter_columns_{table_name}",
                _flatten(
                    renderer.alter_column(table_name, change)
                    for change in diff.columns_to_alter[table_name]
                ),
            )

        for table_name in sorted(diff.indices_to_create):
            statements: List[str] = []
            for index in diff.indices_to_create[table_name]:
                redefined = index.name in replaced_indexes.get(table_name, set())
                if redefined and table_name not in shrinking:
                    statements.extend(renderer.drop_index(table_name, index.name))
                statements.extend(renderer.create_index(table_name, index))
            emit(f"create_indexes_{table_name}", statements)

        for table_name in sorted(diff.indices_to_drop):
            if table_name not in shrinking:
                drop_indexes(table_name, replaced_indexes.get(table_name, set()))

        for table_name in sorted(diff.foreign_keys_to_create):
            statements = []
            for fk in diff.foreign_keys_to_create[table_name]:
                redefined = fk.name in replaced_fks.get(table_name, set())
                if redefined and not fks_dropped_early(table_name):
                    statements.extend(renderer.drop_foreign_key(table_name, fk.name))
                statements.extend(renderer.add_foreign_key(table_name, fk))
            emit(f"add_foreign_keys_{table_name}", statements)

        for table_name in sorted(diff.foreign_keys_to_drop):
            if not fks_dropped_early(table_name):
                drop_foreign_keys(table_name, replaced_fks.get(table_name, set()))

        logger.info("Generated %d %s migration units", len(units), renderer.dialect)
        return units

    def generate_migration_sql(self, diff: SchemaDiff) -> List[str]:
        """Return every statement of every unit, in order."""
        return [statement for unit in self.generate_units(diff) for statement in unit.statements]


def _replaced(drops: Dict[str, List[str]], creates: Dict[str, list]) -> Dict[str, Set[str]]:
    replaced: Dict[str, Set[str]] = {}
    for table_name, names in drops.items():
        created = {item.name for item in creates.get(table_name, [])}
        common = created.intersection(names)
        if common:
            replaced[table_name] = common
    return replaced


def _flatten(groups) -> List[str]:
    return [statement for group in groups for statement in group]
