"""Shared convergence scenario for the live-database round-trip tests."""

from common.config.settings import SchemaSyncConfig
from schema_sync import SchemaSyncClient

USER_V1 = {
    "name": "User",
    "fields": [
        {"name": "id", "source_type": "i32", "primary_key": True},
        {"name": "name", "source_type": "String"},
    ],
}

USER_V2 = {
    "name": "User",
    "fields": USER_V1["fields"]
    + [{"name": "email", "source_type": "Option<String>", "unique": True}],
}

POST = {
    "name": "Post",
    "fields": [
        {"name": "id", "source_type": "i32", "primary_key": True},
        {"name": "title", "source_type": "String"},
        {"name": "user_id", "source_type": "i32", "foreign_key": "users.id"},
    ],
}


async def sync_with(config: SchemaSyncConfig, *models):
    client = await SchemaSyncClient.create(config)
    try:
        client.register_models(models)
        return await client.sync_database()
    finally:
        await client.close()


async def assert_converges(config: SchemaSyncConfig) -> None:
    """Create users, evolve it and add posts, then expect a no-op third run."""
    first = await sync_with(config, USER_V1)
    assert [unit.label for unit in first.units] == ["create_table_users"]

    second = await sync_with(config, USER_V2, POST)
    assert [unit.label for unit in second.units] == [
        "create_table_posts",
        "add_columns_users",
        "create_indexes_users",
    ]

    assert await sync_with(config, USER_V2, POST) is None

    client = await SchemaSyncClient.create(config)
    try:
        applied = await client.executor.history.list_applied()
    finally:
        await client.close()
    assert len(applied) == 4
