"""Normalization of SQL type names and default expressions for comparison."""

import re
from typing import Optional, Tuple

_PARAMS_PATTERN = re.compile(r"^(?P<base>[^(]*?)\s*\((?P<params>[^)]*)\)\s*(?P<suffix>.*)$")


def normalize_type_name(data_type: Optional[str]) -> str:
    """Lowercase a type name and collapse whitespace, including inside parameters.

    ``"NUMERIC( 20, 6 )"`` and ``"numeric(20,6)"`` normalize to the same text.
    """
    if not data_type:
        return ""
    text = " ".join(data_type.strip().lower().split())
    text = re.sub(r"\s*\(\s*", "(", text)
    text = re.sub(r"\s*\)", ")", text)
    return re.sub(r"\s*,\s*", ",", text)


def split_type_params(data_type: str) -> Tuple[str, Optional[str], str]:
    """Split ``base(params) suffix`` into its parts; params is None when absent."""
    normalized = normalize_type_name(data_type)
    match = _PARAMS_PATTERN.match(normalized)
    if match is None:
        return normalized, None, ""
    return match.group("base"), match.group("params"), match.group("suffix")


def normalize_default(default: Optional[str]) -> Optional[str]:
    """Normalize a default expression: quoted literals keep their case, keywords do not."""
    if default is None:
        return None
    text = default.strip()
    if not text:
        return None
    while text.startswith("(") and text.endswith(")") and _balanced(text[1:-1]):
        text = text[1:-1].strip()
    if text.startswith("'"):
        return text
    return " ".join(text.lower().split())


def quote_literal(value: str) -> str:
    """Render a single-quoted SQL string literal."""
    return "'" + value.replace("'", "''") + "'"


def _balanced(text: str) -> bool:
    depth = 0
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0
