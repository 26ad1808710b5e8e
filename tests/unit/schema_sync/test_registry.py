from typing import Optional

import pytest
from pydantic import BaseModel, Field

from common.config.settings import NamingConfig, SchemaPolicy, SchemaSyncConfig
from common.errors import ModelRegistrationError, ModelSyntaxError, TypeMappingError
from schema.descriptor import FieldDescriptor, ModelDescriptor
from schema_sync.registry import AUDIT_TIMESTAMP_TYPE, ModelRegistry


class User(BaseModel):
    id: int = Field(json_schema_extra={"primary_key": True})
    name: str
    email: Optional[str] = Field(default=None, json_schema_extra={"unique": True})


class BlogPost(BaseModel):
    id: int = Field(json_schema_extra={"primary_key": True})
    title: str
    user_id: int = Field(json_schema_extra={"foreign_key": "User.id"})


def _registry(**sections) -> ModelRegistry:
    return ModelRegistry(SchemaSyncConfig(**sections))


def test_builds_tables_from_pydantic_models():
    registry = _registry()
    registry.register_model(User)
    registry.register_model(BlogPost)

    schema = registry.to_database_schema()

    assert schema.table_names() == ["blog_posts", "users"]
    users = schema.tables["users"]
    assert [(c.name, c.data_type, c.nullable) for c in users.columns] == [
        ("id", "INTEGER", False),
        ("name", "VARCHAR(255)", False),
        ("email", "VARCHAR(255)", True),
    ]
    assert users.primary_key.name == "pk_users"
    assert users.get_column("email").is_unique is True
    (unique,) = users.indexes
    assert (unique.name, unique.columns, unique.is_unique) == ("ix_users_email", ["email"], True)


def test_foreign_keys_resolve_model_names_and_get_an_index():
    registry = _registry()
    registry.register_model(User)
    registry.register_model(BlogPost)

    posts = registry.to_database_schema().tables["blog_posts"]

    (fk,) = posts.foreign_keys
    assert (fk.name, fk.columns, fk.ref_table, fk.ref_columns) == (
        "fk_blog_posts_user_id",
        ["user_id"],
        "users",
        ["id"],
    )
    assert [index.name for index in posts.indexes] == ["ix_blog_posts_user_id"]


def test_foreign_key_index_can_be_disabled():
    registry = _registry(schema=SchemaPolicy(index_foreign_keys=False))
    registry.register_model(BlogPost)

    assert registry.to_database_schema().tables["blog_posts"].indexes == []


def test_register_dict_parses_reference_strings():
    registry = _registry()
    registry.register_dict(
        {
            "name": "Comment",
            "table_name": "comments",
            "fields": [
                {"name": "id", "source_type": "i64", "primary_key": True},
                {
                    "name": "postId",
                    "source_type": "i64",
                    "foreign_key": "posts.id",
                    "on_delete": "CASCADE",
                },
                {"name": "body", "source_type": "Option<String>"},
            ],
        }
    )

    table = registry.to_database_schema().tables["comments"]

    assert table.column_names() == ["id", "post_id", "body"]
    assert table.get_column("body").nullable is True
    assert table.foreign_keys[0].on_delete == "CASCADE"
    assert table.foreign_keys[0].ref_table == "posts"


@pytest.mark.parametrize(
    "payload",
    [
        ["not", "a", "mapping"],
        {"name": "Broken", "fields": ["id"]},
        {"fields": []},
        {"name": "Bad", "fields": [{"name": "x", "source_type": "i32", "foreign_key": "nodot"}]},
    ],
)
def test_register_dict_rejects_malformed_descriptors(payload):
    with pytest.raises(ModelSyntaxError):
        _registry().register_dict(payload)


def test_duplicate_models_and_tables_are_rejected():
    registry = _registry()
    registry.register_model(User)

    with pytest.raises(ModelRegistrationError, match="already registered"):
        registry.register_model(User)
    with pytest.raises(ModelRegistrationError, match="both map to table 'users'"):
        registry.register(ModelDescriptor(name="Account", table_name="users"))


def test_case_only_table_conflicts_are_rejected_by_default():
    registry = _registry(naming=NamingConfig(pluralize_tables=False))
    registry.register(ModelDescriptor(name="Item", table_name="items"))
    registry.register(ModelDescriptor(name="LegacyItem", table_name="Items"))

    with pytest.raises(ModelRegistrationError, match="differ only by case"):
        registry.to_database_schema()


def test_case_only_conflicts_allowed_when_ignored():
    registry = _registry(naming=NamingConfig(ignore_case_conflicts=True))
    registry.register(ModelDescriptor(name="Item", table_name="items"))
    registry.register(ModelDescriptor(name="LegacyItem", table_name="Items"))

    assert registry.to_database_schema().table_names() == ["Items", "items"]


def test_audit_columns_and_default_nullability():
    registry = _registry(
        schema=SchemaPolicy(
            add_created_at_column=True, add_updated_at_column=True, default_nullable=True
        )
    )
    registry.register(
        ModelDescriptor(
            name="Event",
            fields=[
                FieldDescriptor(name="id", source_type="i64", primary_key=True, nullable=True),
                FieldDescriptor(name="note", source_type="String"),
                FieldDescriptor(name="kind", source_type="String", nullable=False),
            ],
        )
    )

    events = registry.to_database_schema().tables["events"]

    assert events.column_names() == ["id", "note", "kind", "created_at", "updated_at"]
    assert events.get_column("id").nullable is False
    assert events.get_column("note").nullable is True
    assert events.get_column("kind").nullable is False
    created = events.get_column("created_at")
    assert created.data_type == AUDIT_TIMESTAMP_TYPE
    assert created.default == "CURRENT_TIMESTAMP"
    assert created.nullable is False


def test_db_type_overrides_mapping_and_unknown_types_fail_in_strict_mode():
    registry = _registry()
    registry.register(
        ModelDescriptor(
            name="Shape",
            fields=[
                FieldDescriptor(name="area", source_type="Geometry", db_type="GEOMETRY"),
                FieldDescriptor(name="outline", source_type="Polygon"),
            ],
        )
    )

    with pytest.raises(TypeMappingError, match="'Polygon'"):
        registry.to_database_schema()

    lenient = _registry(schema=SchemaPolicy(strict_mode=False))
    lenient.register(registry.get_model("Shape"))
    shapes = lenient.to_database_schema().tables["shapes"]
    assert [column.data_type for column in shapes.columns] == ["GEOMETRY", "TEXT"]


def test_long_names_are_truncated_to_the_identifier_limit():
    registry = ModelRegistry(SchemaSyncConfig(), max_identifier_length=20)
    registry.register(
        ModelDescriptor(
            name="Thing",
            table_name="extraordinarily_long_table",
            fields=[FieldDescriptor(name="code", source_type="String", unique=True)],
        )
    )

    (index,) = registry.to_database_schema().tables["extraordinarily_long_table"].indexes

    assert len(index.name) == 20
    assert index.name.startswith("ix_extraord_")
