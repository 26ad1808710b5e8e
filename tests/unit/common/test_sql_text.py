import pytest

from common.errors import ErrorCode, error_code_group
from common.utils.sql_text import (
    normalize_default,
    normalize_type_name,
    quote_literal,
    split_type_params,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("VARCHAR(255)", "varchar(255)"),
        ("NUMERIC( 20, 6 )", "numeric(20,6)"),
        ("  Timestamp   With Time Zone ", "timestamp with time zone"),
        (None, ""),
    ],
)
def test_normalize_type_name(raw, expected):
    assert normalize_type_name(raw) == expected


def test_split_type_params():
    assert split_type_params("NUMERIC(20, 6)") == ("numeric", "20,6", "")
    assert split_type_params("timestamp(3) with time zone") == (
        "timestamp",
        "3",
        "with time zone",
    )
    assert split_type_params("integer") == ("integer", None, "")


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, None),
        ("   ", None),
        ("CURRENT_TIMESTAMP", "current_timestamp"),
        ("(now())", "now()"),
        ("((0))", "0"),
        ("'Draft'", "'Draft'"),
    ],
)
def test_normalize_default(raw, expected):
    assert normalize_default(raw) == expected


def test_quote_literal_escapes_quotes():
    assert quote_literal("it's") == "'it''s'"


def test_error_code_group():
    assert error_code_group(ErrorCode.MIGRATION_APPLY_ERROR) == "MIGRATION"
    assert error_code_group("schema_analysis_error") == "DB"
    assert error_code_group("nope") == "INTERNAL"
    assert error_code_group(None) == "INTERNAL"
