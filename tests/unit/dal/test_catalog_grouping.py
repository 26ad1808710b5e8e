from dal.util.catalog import flag_unique_columns, group_foreign_keys, group_indexes
from schema.model import Column, Index, Table


def test_group_indexes_keeps_catalog_column_order():
    rows = [
        {"index_name": "ix_ab", "column_name": "a", "is_unique": False, "method": "BTREE"},
        {"index_name": "ux_c", "column_name": "c", "is_unique": 1, "method": None},
        {"index_name": "ix_ab", "column_name": "b", "is_unique": False, "method": "BTREE"},
    ]

    indexes = group_indexes(rows)

    assert [index.name for index in indexes] == ["ix_ab", "ux_c"]
    assert indexes[0].columns == ["a", "b"]
    assert indexes[0].method == "btree"
    assert indexes[1].is_unique is True
    assert indexes[1].method is None


def test_group_indexes_without_method_column():
    rows = [{"name": "ix", "col": "a", "uniq": 0}]

    indexes = group_indexes(
        rows, name_key="name", column_key="col", unique_key="uniq", method_key=None
    )

    assert indexes == [Index(name="ix", columns=["a"], is_unique=False)]


def test_group_foreign_keys_pairs_columns():
    rows = [
        {
            "constraint_name": "fk_x",
            "column_name": "a_id",
            "ref_table": "a",
            "ref_column": "id",
            "delete_rule": "cascade",
            "update_rule": "NO  ACTION",
        },
        {
            "constraint_name": "fk_x",
            "column_name": "a_rev",
            "ref_table": "a",
            "ref_column": "rev",
            "delete_rule": "cascade",
            "update_rule": "NO  ACTION",
        },
    ]

    (fk,) = group_foreign_keys(rows)

    assert fk.columns == ["a_id", "a_rev"]
    assert fk.ref_columns == ["id", "rev"]
    assert fk.on_delete == "CASCADE"
    assert fk.on_update == "NO ACTION"


def test_flag_unique_columns_only_for_single_column_unique_indexes():
    table = Table(name="t")
    for name in ("a", "b", "c"):
        table.add_column(Column(name=name, data_type="TEXT"))
    table.add_index(Index(name="ux_a", columns=["a"], is_unique=True))
    table.add_index(Index(name="ux_bc", columns=["b", "c"], is_unique=True))

    flag_unique_columns(table)

    assert [column.is_unique for column in table.columns] == [True, False, False]
