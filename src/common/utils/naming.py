"""Identifier naming conventions.

Converts model and field names between case styles, pluralizes table names,
formats index/constraint name patterns and fits identifiers into a dialect's
length limit without collisions.
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from common.utils.hashing import short_md5

_WORD_PATTERN = re.compile(r"[A-Z]+(?=[A-Z][a-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+|[0-9]+")

_IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "foot": "feet",
    "tooth": "teeth",
}

_UNCOUNTABLE = frozenset(
    {"data", "metadata", "information", "equipment", "series", "species", "news", "sheep", "fish"}
)


def split_words(name: str) -> List[str]:
    """Split an identifier into lowercase words across case and separator boundaries."""
    words: List[str] = []
    for chunk in re.split(r"[^A-Za-z0-9]+", name):
        words.extend(match.group(0).lower() for match in _WORD_PATTERN.finditer(chunk))
    return words


def to_snake_case(name: str) -> str:
    return "_".join(split_words(name))


def to_screaming_snake_case(name: str) -> str:
    return to_snake_case(name).upper()


def to_kebab_case(name: str) -> str:
    return "-".join(split_words(name))


def to_pascal_case(name: str) -> str:
    return "".join(word.capitalize() for word in split_words(name))


def to_camel_case(name: str) -> str:
    words = split_words(name)
    if not words:
        return ""
    return words[0] + "".join(word.capitalize() for word in words[1:])


_CONVERTERS = {
    "snake_case": to_snake_case,
    "camel_case": to_camel_case,
    "pascal_case": to_pascal_case,
    "kebab_case": to_kebab_case,
    "screaming_snake_case": to_screaming_snake_case,
}


def apply_naming_convention(name: str, convention: str) -> str:
    """Apply a case style; unknown conventions return the name unchanged."""
    converter = _CONVERTERS.get(convention)
    return converter(name) if converter else name


def _pluralize_word(word: str) -> str:
    lower = word.lower()
    if lower in _UNCOUNTABLE:
        return word
    if lower in _IRREGULAR_PLURALS:
        plural = _IRREGULAR_PLURALS[lower]
        if word.isupper():
            return plural.upper()
        if word[:1].isupper():
            return plural.capitalize()
        return plural

    upper = word.isupper() and len(word) > 1
    if re.search(r"[^aeiou]y$", lower):
        plural = word[:-1] + "ies"
    elif re.search(r"(ss|us|x|z|ch|sh)$", lower):
        plural = word + "es"
    elif lower.endswith("is"):
        plural = word[:-2] + "es"
    elif lower.endswith("s"):
        plural = word
    elif re.search(r"[^aeiou]f$", lower) and lower not in {"roof", "chef", "proof"}:
        plural = word[:-1] + "ves"
    elif lower.endswith("fe"):
        plural = word[:-2] + "ves"
    else:
        plural = word + "s"
    return plural.upper() if upper else plural


def pluralize(name: str) -> str:
    """Pluralize the last word of an identifier, keeping its separators and case."""
    matches = list(re.finditer(r"[A-Z]?[a-z0-9]+|[A-Z]+(?![a-z])", name))
    if not matches:
        return name
    last = matches[-1]
    return name[: last.start()] + _pluralize_word(last.group(0)) + name[last.end() :]


def get_table_name(model_name: str, style: str, pluralize_tables: bool) -> str:
    """Derive a table name from a model name."""
    name = apply_naming_convention(model_name, style)
    return pluralize(name) if pluralize_tables else name


def get_column_name(field_name: str, style: str) -> str:
    return apply_naming_convention(field_name, style)


def format_name(pattern: str, replacements: Dict[str, str]) -> str:
    """Substitute ``{placeholder}`` tokens in a naming pattern."""
    result = pattern
    for placeholder, value in replacements.items():
        result = result.replace("{" + placeholder + "}", value)
    return result


def get_index_name(pattern: str, table_name: str, columns: Iterable[str]) -> str:
    return format_name(pattern, {"table": table_name, "columns": "_".join(columns)})


def get_foreign_key_name(pattern: str, table_name: str, column_name: str) -> str:
    return format_name(pattern, {"table": table_name, "column": column_name})


def sanitize_identifier(name: str) -> str:
    """Replace characters not allowed in bare SQL identifiers and avoid a leading digit."""
    sanitized = re.sub(r"[^0-9A-Za-z_]", "_", name)
    if sanitized[:1].isdigit():
        sanitized = f"_{sanitized}"
    return sanitized


def check_identifier_conflicts(
    names: Iterable[str], ignore_case: bool
) -> Optional[Tuple[str, str]]:
    """Return the first pair of distinct names that collide, or None.

    With ``ignore_case`` names differing only by case are treated as the same key.
    """
    seen: Dict[str, str] = {}
    for name in names:
        key = name.lower() if ignore_case else name
        existing = seen.get(key)
        if existing is None:
            seen[key] = name
        elif existing != name:
            return existing, name
    return None


def truncate_identifier(name: str, max_length: int) -> str:
    """Fit an identifier into ``max_length`` characters.

    Long names keep a prefix and gain ``_`` plus 8 hex chars of the MD5 of the full
    name, so two different long names never truncate to the same identifier.
    """
    if len(name) <= max_length:
        return name
    prefix_len = max(max_length - 9, 0)
    return f"{name[:prefix_len]}_{short_md5(name, 8)}"
