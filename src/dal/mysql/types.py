import re

from common.utils.sql_text import normalize_type_name, split_type_params

_SIMPLE = {
    "smallint": "SMALLINT",
    "int2": "SMALLINT",
    "integer": "INT",
    "int": "INT",
    "int4": "INT",
    "serial": "INT",
    "bigint": "BIGINT",
    "int8": "BIGINT",
    "bigserial": "BIGINT",
    "real": "FLOAT",
    "float4": "FLOAT",
    "double precision": "DOUBLE",
    "float8": "DOUBLE",
    "text": "TEXT",
    "date": "DATE",
    "timestamp": "TIMESTAMP",
    "timestamp with time zone": "TIMESTAMP",
    "timestamp without time zone": "TIMESTAMP",
    "timestamptz": "TIMESTAMP",
    "time": "TIME",
    "time with time zone": "TIME",
    "time without time zone": "TIME",
    "timetz": "TIME",
    "boolean": "TINYINT(1)",
    "bool": "TINYINT(1)",
    "bytea": "BLOB",
    "json": "JSON",
    "jsonb": "JSON",
    "uuid": "CHAR(36)",
}

_INTEGER_DISPLAY_WIDTH = re.compile(r"^(tinyint|smallint|mediumint|int|bigint)\(\d+\)")


def translate_mysql_type(data_type: str) -> str:
    """Translate a canonical column type to its MySQL equivalent.

    Parameters of varchar/char/numeric survive translation; types MySQL already
    understands pass through unchanged.
    """
    normalized = normalize_type_name(data_type)
    if normalized.endswith("[]"):
        return "JSON"
    if normalized in _SIMPLE:
        return _SIMPLE[normalized]

    base, params, suffix = split_type_params(normalized)
    if base in ("varchar", "character varying"):
        return f"VARCHAR({params or 255})"
    if base in ("char", "character"):
        return f"CHAR({params or 1})"
    if base in ("numeric", "decimal"):
        return f"DECIMAL({params or '10,2'})"
    if params is not None and base in ("timestamp", "timestamptz"):
        return f"TIMESTAMP({params})"
    if params is not None and base in ("time", "timetz"):
        return f"TIME({params})"
    return data_type.strip()


def canonical_mysql_type(data_type: str) -> str:
    """Return the lowercase ``column_type`` MySQL reports for a column type.

    Integer display widths (``int(11)``) are dropped except the ``tinyint(1)``
    boolean marker.
    """
    normalized = normalize_type_name(translate_mysql_type(data_type))
    if normalized.startswith("tinyint(1)"):
        return normalized
    if normalized == "integer":
        return "int"
    return _INTEGER_DISPLAY_WIDTH.sub(r"\1", normalized)
