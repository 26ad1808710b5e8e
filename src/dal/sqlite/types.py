from common.utils.sql_text import normalize_type_name, split_type_params

_STORAGE_CLASSES = {
    "smallint": "INTEGER",
    "integer": "INTEGER",
    "int": "INTEGER",
    "int2": "INTEGER",
    "int4": "INTEGER",
    "bigint": "INTEGER",
    "int8": "INTEGER",
    "serial": "INTEGER",
    "bigserial": "INTEGER",
    "boolean": "INTEGER",
    "bool": "INTEGER",
    "real": "REAL",
    "float4": "REAL",
    "double precision": "REAL",
    "float8": "REAL",
    "double": "REAL",
    "float": "REAL",
    "numeric": "REAL",
    "decimal": "REAL",
    "char": "TEXT",
    "character": "TEXT",
    "varchar": "TEXT",
    "character varying": "TEXT",
    "text": "TEXT",
    "date": "TEXT",
    "time": "TEXT",
    "timetz": "TEXT",
    "time with time zone": "TEXT",
    "time without time zone": "TEXT",
    "timestamp": "TEXT",
    "timestamptz": "TEXT",
    "timestamp with time zone": "TEXT",
    "timestamp without time zone": "TEXT",
    "datetime": "TEXT",
    "json": "TEXT",
    "jsonb": "TEXT",
    "uuid": "TEXT",
    "bytea": "BLOB",
    "blob": "BLOB",
}


def translate_sqlite_type(data_type: str) -> str:
    """Map a canonical column type onto a SQLite storage class.

    Parameterized types drop their parameters; unknown types become TEXT.
    """
    normalized = normalize_type_name(data_type)
    if normalized.endswith("[]"):
        return "TEXT"
    if normalized in _STORAGE_CLASSES:
        return _STORAGE_CLASSES[normalized]
    base, params, suffix = split_type_params(normalized)
    if params is not None:
        return translate_sqlite_type(f"{base} {suffix}".strip())
    return "TEXT"
