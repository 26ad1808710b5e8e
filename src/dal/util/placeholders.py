import re
from typing import Any, List, Optional, Tuple

PLACEHOLDER_PATTERN = re.compile(r"\$(\d+)")


def translate_placeholders(
    sql: str, params: List[Any], replacement: str, provider: str
) -> Tuple[str, Optional[List[Any]]]:
    """Translate Postgres-style ``$N`` placeholders to a positional driver style.

    ``replacement`` is the driver marker (``%s`` for aiomysql, ``?`` for aiosqlite).
    Params are reordered to follow placeholder occurrence. Returns ``None`` params
    when the statement has no placeholders so drivers skip interpolation.
    """
    matches = list(PLACEHOLDER_PATTERN.finditer(sql))
    if not matches:
        if params:
            raise ValueError(
                f"{provider} query received params but no $N placeholders were found."
            )
        return sql, None

    indices = []
    for match in matches:
        idx = int(match.group(1))
        if idx <= 0:
            raise ValueError(f"Invalid placeholder index ${idx}; placeholders must start at $1.")
        indices.append(idx)

    max_index = max(indices)
    if set(indices) != set(range(1, max_index + 1)):
        raise ValueError(
            f"Invalid placeholder sequence: expected $1..${max_index} without gaps, got "
            f"{sorted(set(indices))}."
        )
    if max_index > len(params):
        raise ValueError(
            f"Not enough parameters for placeholders: expected {max_index}, got {len(params)}."
        )

    return PLACEHOLDER_PATTERN.sub(replacement, sql), [params[i - 1] for i in indices]
