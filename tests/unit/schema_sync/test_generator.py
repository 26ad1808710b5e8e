import pytest

from common.config.settings import SchemaPolicy
from common.errors import MigrationError
from dal.mysql import MysqlDdlRenderer
from dal.postgres import PostgresDdlRenderer
from dal.sqlite import SqliteDdlRenderer
from schema.model import (
    Column,
    ColumnChange,
    DatabaseSchema,
    ForeignKey,
    Index,
    SchemaDiff,
    Table,
)
from schema_sync.diff import diff_schemas
from schema_sync.generator import MigrationGenerator
from tests._support.fixtures.schema_fixtures import (
    current_users_schema,
    posts_table,
    target_users_posts_schema,
)


def _labels(units):
    return [unit.label for unit in units]


def test_users_posts_scenario_units():
    diff = diff_schemas(current_users_schema(), target_users_posts_schema())

    units = MigrationGenerator(PostgresDdlRenderer()).generate_units(diff)

    assert _labels(units) == ["create_table_posts", "add_columns_users", "create_indexes_users"]
    assert units[0].statements[0].startswith('CREATE TABLE IF NOT EXISTS "posts"')
    assert units[1].statements == ['ALTER TABLE "users" ADD COLUMN "email" VARCHAR(255) NULL']
    assert units[2].statements == [
        'CREATE UNIQUE INDEX IF NOT EXISTS "ix_users_email" ON "users" ("email")'
    ]


def test_unit_order_across_every_collection():
    fk = ForeignKey(name="fk_a_b", columns=["b_id"], ref_table="b", ref_columns=["id"])
    diff = SchemaDiff(
        tables_to_create=[posts_table()],
        columns_to_add={"a": [Column(name="x", data_type="TEXT", nullable=True)]},
        columns_to_drop={"c": ["y"]},
        columns_to_alter={
            "a": [
                ColumnChange(
                    column_name="z",
                    from_column=Column(name="z", data_type="TEXT"),
                    to_column=Column(name="z", data_type="TEXT", nullable=True),
                )
            ]
        },
        indices_to_create={"a": [Index(name="ix_a_x", columns=["x"])]},
        indices_to_drop={"a": ["ix_a_old"]},
        foreign_keys_to_create={"a": [fk]},
        foreign_keys_to_drop={"a": ["fk_a_old"]},
    )

    units = MigrationGenerator(PostgresDdlRenderer()).generate_units(diff)

    assert _labels(units) == [
        "create_table_posts",
        "add_columns_a",
        "drop_columns_c",
        "alter_columns_a",
        "create_indexes_a",
        "drop_indexes_a",
        "add_foreign_keys_a",
        "drop_foreign_keys_a",
    ]


def test_foreign_keys_are_dropped_before_tables():
    diff = SchemaDiff(
        tables_to_drop=["posts", "users"],
        foreign_keys_to_drop={"audit": ["fk_audit_users"]},
    )

    units = MigrationGenerator(PostgresDdlRenderer()).generate_units(diff)

    assert _labels(units) == ["drop_foreign_keys_audit", "drop_table_posts", "drop_table_users"]
    assert units[1].statements == ['DROP TABLE IF EXISTS "posts"']


def test_redefined_index_is_dropped_inside_its_create_unit():
    diff = SchemaDiff(
        indices_to_create={"posts": [Index(name="ix_p", columns=["a"], is_unique=True)]},
        indices_to_drop={"posts": ["ix_p", "ix_gone"]},
    )

    units = MigrationGenerator(PostgresDdlRenderer()).generate_units(diff)

    assert _labels(units) == ["create_indexes_posts", "drop_indexes_posts"]
    assert units[0].statements == [
        'DROP INDEX IF EXISTS "ix_p"',
        'CREATE UNIQUE INDEX IF NOT EXISTS "ix_p" ON "posts" ("a")',
    ]
    assert units[1].statements == ['DROP INDEX IF EXISTS "ix_gone"']


def test_redefined_foreign_key_is_dropped_before_it_is_added():
    fk = ForeignKey(
        name="fk_posts_user_id",
        columns=["user_id"],
        ref_table="users",
        ref_columns=["id"],
        on_delete="CASCADE",
    )
    diff = SchemaDiff(
        foreign_keys_to_create={"posts": [fk]},
        foreign_keys_to_drop={"posts": ["fk_posts_user_id"]},
    )

    units = MigrationGenerator(MysqlDdlRenderer()).generate_units(diff)

    assert _labels(units) == ["add_foreign_keys_posts"]
    assert units[0].statements[0] == (
        "ALTER TABLE `posts` DROP FOREIGN KEY `fk_posts_user_id`"
    )
    assert "ON DELETE CASCADE" in units[0].statements[1]


def test_empty_diff_generates_nothing():
    generator = MigrationGenerator(PostgresDdlRenderer())

    assert generator.generate_units(SchemaDiff()) == []
    assert generator.generate_migration_sql(SchemaDiff()) == []


def test_migration_sql_flattens_units():
    diff = diff_schemas(current_users_schema(), target_users_posts_schema())

    sql = MigrationGenerator(PostgresDdlRenderer()).generate_migration_sql(diff)

    assert len(sql) == 5
    assert sql[-1].startswith('CREATE UNIQUE INDEX IF NOT EXISTS "ix_users_email"')


def test_capability_errors_abort_generation():
    diff = SchemaDiff(columns_to_drop={"users": ["name"]})

    with pytest.raises(MigrationError, match="SQLite does not support dropping columns"):
        MigrationGenerator(SqliteDdlRenderer()).generate_units(diff)


def _posts_with_user_fk() -> Table:
    table = Table(name="posts")
    table.add_column(Column(name="id", data_type="INT"))
    table.add_column(Column(name="user_id", data_type="INT"))
    table.add_index(Index(name="idx_posts_user_id", columns=["user_id"]))
    table.add_foreign_key(
        ForeignKey(
            name="fk_posts_user_id", columns=["user_id"], ref_table="users", ref_columns=["id"]
        )
    )
    return table


def test_dropped_column_loses_its_foreign_key_and_index_first():
    current = DatabaseSchema()
    current.add_table(_posts_with_user_fk())
    target = DatabaseSchema()
    target.add_table(Table(name="posts").add_column(Column(name="id", data_type="INT")))
    diff = diff_schemas(current, target, SchemaPolicy(allow_column_removal=True))

    sql = MigrationGenerator(MysqlDdlRenderer()).generate_migration_sql(diff)

    assert sql == [
        "ALTER TABLE `posts` DROP FOREIGN KEY `fk_posts_user_id`",
        "DROP INDEX `idx_posts_user_id` ON `posts`",
        "ALTER TABLE `posts` DROP COLUMN `user_id`",
    ]


def test_redefinitions_on_a_shrinking_table_are_dropped_once():
    fk = ForeignKey(name="fk_p", columns=["b"], ref_table="users", ref_columns=["id"])
    diff = SchemaDiff(
        columns_to_drop={"posts": ["a"]},
        indices_to_create={"posts": [Index(name="ix_p", columns=["b"])]},
        indices_to_drop={"posts": ["ix_p"]},
        foreign_keys_to_create={"posts": [fk]},
        foreign_keys_to_drop={"posts": ["fk_p"]},
    )

    units = MigrationGenerator(MysqlDdlRenderer()).generate_units(diff)

    assert _labels(units) == [
        "drop_foreign_keys_posts",
        "drop_indexes_posts",
        "drop_columns_posts",
        "create_indexes_posts",
        "add_foreign_keys_posts",
    ]
    assert units[3].statements == ["CREATE INDEX `ix_p` ON `posts` (`b`)"]
    assert len(units[4].statements) == 1


def test_shrinking_table_keeps_early_foreign_key_drops_when_tables_are_dropped():
    diff = SchemaDiff(
        tables_to_drop=["users"],
        columns_to_drop={"posts": ["user_id"]},
        foreign_keys_to_drop={"posts": ["fk_posts_user_id"]},
    )

    units = MigrationGenerator(PostgresDdlRenderer()).generate_units(diff)

    assert _labels(units) == ["drop_foreign_keys_posts", "drop_table_users", "drop_columns_posts"]
