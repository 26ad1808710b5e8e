from typing import Optional

from pydantic import BaseModel


class Column(BaseModel):
    """Canonical column definition.

    Attributes:
        name: Column name, unique within its table.
        data_type: Canonical type string (e.g. ``varchar(255)``, ``integer``).
        nullable: Whether NULL is allowed.
        default: Raw SQL default expression, if any.
        comment: Optional column comment.
        is_unique: True when a single-column unique index covers the column.
        is_generated: True for generated/computed columns.
        generation_expression: Expression for generated columns.
    """

    name: str
    data_type: str
    nullable: bool = False
    default: Optional[str] = None
    comment: Optional[str] = None
    is_unique: bool = False
    is_generated: bool = False
    generation_expression: Optional[str] = None

    model_config = {"frozen": False}
