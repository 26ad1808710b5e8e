from schema.model import Column, DatabaseSchema, ForeignKey, Index, PrimaryKey, Table


def users_table(with_email: bool = False) -> Table:
    """``users(id INTEGER PK, name VARCHAR(255))`` plus an optional unique email."""
    table = Table(name="users")
    table.add_column(Column(name="id", data_type="INTEGER"))
    table.add_column(Column(name="name", data_type="VARCHAR(255)"))
    table.set_primary_key(PrimaryKey(name="pk_users", columns=["id"]))
    if with_email:
        table.add_column(
            Column(name="email", data_type="VARCHAR(255)", nullable=True, is_unique=True)
        )
        table.add_index(Index(name="ix_users_email", columns=["email"], is_unique=True))
    return table


def posts_table() -> Table:
    """``posts(id INTEGER PK, title VARCHAR(255), user_id INTEGER FK -> users.id)``."""
    table = Table(name="posts")
    table.add_column(Column(name="id", data_type="INTEGER"))
    table.add_column(Column(name="title", data_type="VARCHAR(255)"))
    table.add_column(Column(name="user_id", data_type="INTEGER"))
    table.set_primary_key(PrimaryKey(name="pk_posts", columns=["id"]))
    table.add_index(Index(name="ix_posts_user_id", columns=["user_id"]))
    table.add_foreign_key(
        ForeignKey(
            name="fk_posts_user_id",
            columns=["user_id"],
            ref_table="users",
            ref_columns=["id"],
        )
    )
    return table


def schema_of(*tables: Table) -> DatabaseSchema:
    schema = DatabaseSchema()
    for table in tables:
        schema.add_table(table)
    return schema


def current_users_schema() -> DatabaseSchema:
    return schema_of(users_table())


def target_users_posts_schema() -> DatabaseSchema:
    return schema_of(users_table(with_email=True), posts_table())
