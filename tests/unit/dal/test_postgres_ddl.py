from dal.postgres import PostgresDdlRenderer
from schema.model import Column, ColumnChange, ForeignKey, Index, Table
from tests._support.fixtures.schema_fixtures import posts_table, users_table


def _change(before: Column, after: Column) -> ColumnChange:
    return ColumnChange(column_name=after.name, from_column=before, to_column=after)


def test_create_table_with_inline_primary_key():
    statements = PostgresDdlRenderer().create_table(users_table(with_email=True))

    assert statements[0] == (
        'CREATE TABLE IF NOT EXISTS "users" (\n'
        '    "id" INTEGER NOT NULL,\n'
        '    "name" VARCHAR(255) NOT NULL,\n'
        '    "email" VARCHAR(255) NULL,\n'
        '    CONSTRAINT "pk_users" PRIMARY KEY ("id")\n'
        ")"
    )
    assert statements[1] == (
        'CREATE UNIQUE INDEX IF NOT EXISTS "ix_users_email" ON "users" ("email")'
    )


def test_create_table_adds_foreign_keys_after_indexes():
    statements = PostgresDdlRenderer().create_table(posts_table())

    assert statements[1] == 'CREATE INDEX IF NOT EXISTS "ix_posts_user_id" ON "posts" ("user_id")'
    assert statements[2] == (
        'ALTER TABLE "posts" ADD CONSTRAINT "fk_posts_user_id" FOREIGN KEY ("user_id") '
        'REFERENCES "users" ("id") ON DELETE NO ACTION ON UPDATE NO ACTION'
    )


def test_comments_are_follow_up_statements():
    table = Table(name="notes", comment="Free text")
    table.add_column(Column(name="body", data_type="TEXT", comment="It's the body"))

    statements = PostgresDdlRenderer().create_table(table)

    assert statements[1] == "COMMENT ON TABLE \"notes\" IS 'Free text'"
    assert statements[2] == "COMMENT ON COLUMN \"notes\".\"body\" IS 'It''s the body'"


def test_schema_qualified_names():
    renderer = PostgresDdlRenderer("app")

    assert renderer.drop_table("users") == ['DROP TABLE IF EXISTS "app"."users"']
    assert renderer.drop_index("users", "ix_users_email") == [
        'DROP INDEX IF EXISTS "app"."ix_users_email"'
    ]


def test_add_and_drop_column():
    renderer = PostgresDdlRenderer()

    assert renderer.add_column("users", Column(name="age", data_type="INTEGER", nullable=True)) == [
        'ALTER TABLE "users" ADD COLUMN "age" INTEGER NULL'
    ]
    assert renderer.drop_column("users", "name") == ['ALTER TABLE "users" DROP COLUMN "name"']


def test_alter_column_emits_one_statement_per_aspect():
    before = Column(name="name", data_type="VARCHAR(100)")
    after = Column(name="name", data_type="TEXT", nullable=True, default="'anon'")

    statements = PostgresDdlRenderer().alter_column("users", _change(before, after))

    assert statements == [
        'ALTER TABLE "users" ALTER COLUMN "name" TYPE TEXT USING "name"::TEXT',
        'ALTER TABLE "users" ALTER COLUMN "name" DROP NOT NULL',
        "ALTER TABLE \"users\" ALTER COLUMN \"name\" SET DEFAULT 'anon'",
    ]


def test_alter_column_ignores_alias_spelling():
    before = Column(name="id", data_type="int4", default="nextval('users_id_seq')")
    after = Column(name="id", data_type="SERIAL", nullable=True, default=None)

    statements = PostgresDdlRenderer().alter_column("users", _change(before, after))

    assert statements == [
        'ALTER TABLE "users" ALTER COLUMN "id" DROP NOT NULL',
        'ALTER TABLE "users" ALTER COLUMN "id" DROP DEFAULT',
    ]


def test_index_method_and_foreign_key_actions():
    renderer = PostgresDdlRenderer()
    index = Index(name="ix_docs_body", columns=["body"], method="gin")
    fk = ForeignKey(
        name="fk_a_b", columns=["b_id"], ref_table="b", ref_columns=["id"], on_delete="cascade"
    )

    assert renderer.create_index("docs", index) == [
        'CREATE INDEX IF NOT EXISTS "ix_docs_body" ON "docs" USING gin ("body")'
    ]
    assert renderer.add_foreign_key("a", fk)[0].endswith("ON DELETE CASCADE ON UPDATE NO ACTION")
    assert renderer.drop_foreign_key("a", "fk_a_b") == [
        'ALTER TABLE "a" DROP CONSTRAINT IF EXISTS "fk_a_b"'
    ]


def test_long_identifiers_are_truncated():
    renderer = PostgresDdlRenderer()
    name = "ix_" + "x" * 80

    statement = renderer.create_index("t", Index(name=name, columns=["c"]))[0]
    quoted = statement.split(" ")[5]

    assert len(quoted.strip('"')) == 63


def test_history_table_and_insert():
    renderer = PostgresDdlRenderer()

    history_sql = renderer.history_table_sql("schema_migrations")[0]
    assert "migration_id VARCHAR(255) NOT NULL" in history_sql
    assert renderer.insert_history_sql("schema_migrations") == (
        'INSERT INTO "schema_migrations" ("migration_id", "name", "checksum", '
        '"execution_time_ms") VALUES ($1, $2, $3, $4)'
    )
