import re
from typing import List, Optional

from pydantic import BaseModel, Field

from common.errors import ModelSyntaxError

_REFERENCE_PATTERN = re.compile(r"^\s*([A-Za-z_][\w$]*)\s*\.\s*([A-Za-z_][\w$]*)\s*$")


class ForeignKeyReference(BaseModel):
    """Reference from a model field to ``ref_table.ref_column``."""

    ref_table: str
    ref_column: str
    on_delete: Optional[str] = None
    on_update: Optional[str] = None

    model_config = {"frozen": False}

    @classmethod
    def parse(
        cls,
        text: str,
        on_delete: Optional[str] = None,
        on_update: Optional[str] = None,
    ) -> "ForeignKeyReference":
        """Parse ``"table.column"`` text.

        Raises:
            ModelSyntaxError: If the text is not exactly two dotted identifiers.
        """
        match = _REFERENCE_PATTERN.match(text or "")
        if match is None:
            raise ModelSyntaxError(
                f"Invalid foreign key reference '{text}'; expected 'table.column'"
            )
        return cls(
            ref_table=match.group(1),
            ref_column=match.group(2),
            on_delete=on_delete,
            on_update=on_update,
        )


class FieldDescriptor(BaseModel):
    """One field of an external model declaration.

    ``source_type`` is resolved through the type mapper unless ``db_type`` is set.
    ``nullable=None`` defers to the schema policy default.
    """

    name: str
    source_type: str
    db_type: Optional[str] = None
    nullable: Optional[bool] = None
    primary_key: bool = False
    unique: bool = False
    default: Optional[str] = None
    comment: Optional[str] = None
    foreign_key: Optional[ForeignKeyReference] = None

    model_config = {"frozen": False}


class ModelDescriptor(BaseModel):
    """External model declaration: ordered fields plus table-level metadata."""

    name: str
    table_name: Optional[str] = None
    fields: List[FieldDescriptor] = Field(default_factory=list)
    comment: Optional[str] = None

    model_config = {"frozen": False}
