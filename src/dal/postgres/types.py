from common.utils.sql_text import normalize_type_name, split_type_params

_ALIASES = {
    "int": "integer",
    "int4": "integer",
    "integer": "integer",
    "serial": "integer",
    "serial4": "integer",
    "int8": "bigint",
    "bigint": "bigint",
    "bigserial": "bigint",
    "serial8": "bigint",
    "int2": "smallint",
    "smallint": "smallint",
    "smallserial": "smallint",
    "bool": "boolean",
    "boolean": "boolean",
    "float4": "real",
    "real": "real",
    "float8": "double precision",
    "float": "double precision",
    "double precision": "double precision",
    "timestamptz": "timestamp with time zone",
    "timestamp with time zone": "timestamp with time zone",
    "timestamp": "timestamp without time zone",
    "timestamp without time zone": "timestamp without time zone",
    "timetz": "time with time zone",
    "time with time zone": "time with time zone",
    "time": "time without time zone",
    "time without time zone": "time without time zone",
    "varchar": "character varying",
    "character varying": "character varying",
    "char": "char(1)",
    "character": "char(1)",
    "bpchar": "char(1)",
    "decimal": "numeric",
    "numeric": "numeric",
}

_PARAMETERIZED = {
    "varchar": "varchar",
    "character varying": "varchar",
    "char": "char",
    "character": "char",
    "bpchar": "char",
    "numeric": "numeric",
    "decimal": "numeric",
}

_TEMPORAL = {
    "timestamp": ("timestamp without time zone", "timestamp with time zone"),
    "timestamptz": ("timestamp with time zone", "timestamp with time zone"),
    "time": ("time without time zone", "time with time zone"),
    "timetz": ("time with time zone", "time with time zone"),
}


def canonical_postgres_type(data_type: str) -> str:
    """Return the form PostgreSQL reports for a type, lowercased.

    Aliases fold onto catalog names (``int4`` -> ``integer``, ``timestamptz`` ->
    ``timestamp with time zone``). Length and precision parameters are preserved
    except on temporal types, whose fractional precision the catalog does not report.
    """
    normalized = normalize_type_name(data_type)
    if normalized.endswith("[]"):
        return canonical_postgres_type(normalized[:-2]) + "[]"

    base, params, suffix = split_type_params(normalized)
    if params is None:
        return _ALIASES.get(base, base)

    if base in _PARAMETERIZED:
        return f"{_PARAMETERIZED[base]}({params})"
    if base in _TEMPORAL:
        without_zone, with_zone = _TEMPORAL[base]
        return with_zone if suffix == "with time zone" else without_zone
    return normalized
