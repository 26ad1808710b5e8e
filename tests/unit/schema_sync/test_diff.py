from common.config.settings import SchemaPolicy
from dal.postgres.types import canonical_postgres_type
from schema.model import Column, DatabaseSchema, ForeignKey, Index, Table
from schema_sync.diff import column_needs_alteration, dependency_order, diff_schemas
from tests._support.fixtures.schema_fixtures import (
    current_users_schema,
    posts_table,
    schema_of,
    target_users_posts_schema,
    users_table,
)


def _table(name, *refs):
    table = Table(name=name)
    table.add_column(Column(name="id", data_type="INTEGER"))
    for ref in refs:
        table.add_column(Column(name=f"{ref}_id", data_type="INTEGER"))
        table.add_foreign_key(
            ForeignKey(
                name=f"fk_{name}_{ref}", columns=[f"{ref}_id"], ref_table=ref, ref_columns=["id"]
            )
        )
    return table


def test_users_posts_scenario():
    diff = diff_schemas(current_users_schema(), target_users_posts_schema())

    assert [table.name for table in diff.tables_to_create] == ["posts"]
    assert [column.name for column in diff.columns_to_add["users"]] == ["email"]
    assert [index.name for index in diff.indices_to_create["users"]] == ["ix_users_email"]
    assert diff.tables_to_drop == []
    assert diff.columns_to_alter == {}
    assert diff.foreign_keys_to_create == {}


def test_identical_schemas_produce_an_empty_diff():
    assert diff_schemas(target_users_posts_schema(), target_users_posts_schema()).is_empty()


def test_diff_is_deterministic():
    first = diff_schemas(current_users_schema(), target_users_posts_schema())
    second = diff_schemas(current_users_schema(), target_users_posts_schema())

    assert first == second


def test_diff_does_not_alias_inputs():
    target = target_users_posts_schema()

    diff = diff_schemas(current_users_schema(), target)
    diff.tables_to_create[0].columns[0].data_type = "BIGINT"
    diff.columns_to_add["users"][0].nullable = False

    assert target.tables["posts"].columns[0].data_type == "INTEGER"
    assert target.tables["users"].get_column("email").nullable is True


def test_removals_are_gated_by_policy():
    current = target_users_posts_schema()
    target = schema_of(Table(name="users", columns=[Column(name="id", data_type="INTEGER")]))

    guarded = diff_schemas(current, target)
    permissive = diff_schemas(
        current, target, SchemaPolicy(allow_column_removal=True, allow_table_removal=True)
    )

    assert guarded.tables_to_drop == []
    assert guarded.columns_to_drop == {}
    assert permissive.tables_to_drop == ["posts"]
    assert permissive.columns_to_drop == {"users": ["name", "email"]}


def test_alterations_use_the_type_normalizer():
    current = schema_of(Table(name="t", columns=[Column(name="a", data_type="int4")]))
    target = schema_of(Table(name="t", columns=[Column(name="a", data_type="INTEGER")]))

    assert "t" in diff_schemas(current, target).columns_to_alter
    assert diff_schemas(current, target, normalize_type=canonical_postgres_type).is_empty()


def test_column_needs_alteration_compares_each_aspect():
    base = Column(name="a", data_type="VARCHAR(10)", default="'x'")

    respaced = base.model_copy(update={"data_type": "varchar( 10 )"})

    assert not column_needs_alteration(base, respaced)
    assert not column_needs_alteration(base, base.model_copy(update={"default": "('x')"}))
    assert not column_needs_alteration(base, base.model_copy(update={"comment": "note"}))
    assert column_needs_alteration(base, base.model_copy(update={"nullable": True}))
    assert column_needs_alteration(base, base.model_copy(update={"default": "'X'"}))
    assert column_needs_alteration(base, base.model_copy(update={"is_unique": True}))


def test_changed_index_and_foreign_key_are_dropped_and_recreated():
    current = target_users_posts_schema()
    target = target_users_posts_schema()
    posts = target.tables["posts"]
    posts.indexes[0] = Index(name="ix_posts_user_id", columns=["user_id"], is_unique=True)
    posts.foreign_keys[0].on_delete = "CASCADE"
    current.tables["users"].add_index(Index(name="ix_users_name", columns=["name"]))

    diff = diff_schemas(current, target)

    assert diff.indices_to_drop == {"posts": ["ix_posts_user_id"], "users": ["ix_users_name"]}
    assert [index.is_unique for index in diff.indices_to_create["posts"]] == [True]
    assert diff.foreign_keys_to_drop == {"posts": ["fk_posts_user_id"]}
    assert diff.foreign_keys_to_create["posts"][0].on_delete == "CASCADE"


def test_ignored_tables_are_invisible():
    current = schema_of(users_table(), Table(name="schema_migrations"))
    target = schema_of(users_table(), Table(name="audit_log"))

    diff = diff_schemas(
        current,
        target,
        SchemaPolicy(allow_table_removal=True),
        ignore_tables=["schema_migrations", "audit_log"],
    )

    assert diff.is_empty()


def test_new_tables_are_created_in_dependency_order():
    target = schema_of(
        _table("comments", "posts", "users"), _table("posts", "users"), _table("users")
    )

    diff = diff_schemas(DatabaseSchema(), target)

    assert [table.name for table in diff.tables_to_create] == ["users", "posts", "comments"]


def test_dropped_tables_go_referencing_first_and_release_foreign_keys():
    current = schema_of(_table("users"), _table("posts", "users"), _table("audit", "users"))
    target = schema_of(_table("audit"))

    diff = diff_schemas(current, target, SchemaPolicy(allow_table_removal=True))

    assert diff.tables_to_drop == ["posts", "users"]
    assert diff.foreign_keys_to_drop == {"audit": ["fk_audit_users"]}


def test_dependency_order_breaks_cycles_by_name(caplog):
    tables = {"b": _table("b", "a"), "a": _table("a", "b"), "c": _table("c")}

    assert dependency_order(tables) == ["c", "a", "b"]
    assert "Foreign key cycle between tables: a, b" in caplog.text


def test_self_references_do_not_block_ordering():
    tables = {"nodes": _table("nodes", "nodes"), "edges": _table("edges", "nodes")}

    assert dependency_order(tables) == ["nodes", "edges"]


def test_posts_fixture_is_valid():
    posts_table().validate()
