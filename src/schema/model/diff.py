from typing import Dict, List

from pydantic import BaseModel, Field

from .column import Column
from .constraints import ForeignKey, Index
from .table import Table


class ColumnChange(BaseModel):
    """A column present on both sides whose definition differs."""

    column_name: str
    from_column: Column
    to_column: Column

    model_config = {"frozen": False}


class SchemaDiff(BaseModel):
    """Structural delta between a current and a target schema.

    Creates carry full definitions; drops carry names. An empty diff means the
    database is already in sync.
    """

    tables_to_create: List[Table] = Field(default_factory=list)
    tables_to_drop: List[str] = Field(default_factory=list)
    columns_to_add: Dict[str, List[Column]] = Field(default_factory=dict)
    columns_to_drop: Dict[str, List[str]] = Field(default_factory=dict)
    columns_to_alter: Dict[str, List[ColumnChange]] = Field(default_factory=dict)
    indices_to_create: Dict[str, List[Index]] = Field(default_factory=dict)
    indices_to_drop: Dict[str, List[str]] = Field(default_factory=dict)
    foreign_keys_to_create: Dict[str, List[ForeignKey]] = Field(default_factory=dict)
    foreign_keys_to_drop: Dict[str, List[str]] = Field(default_factory=dict)

    model_config = {"frozen": False}

    def is_empty(self) -> bool:
        return not any(
            (
                self.tables_to_create,
                self.tables_to_drop,
                self.columns_to_add,
                self.columns_to_drop,
                self.columns_to_alter,
                self.indices_to_create,
                self.indices_to_drop,
                self.foreign_keys_to_create,
                self.foreign_keys_to_drop,
            )
        )

    def summary(self) -> Dict[str, int]:
        """Return per-collection change counts."""

        def _count(mapping: Dict[str, list]) -> int:
            return sum(len(items) for items in mapping.values())

        return {
            "tables_to_create": len(self.tables_to_create),
            "tables_to_drop": len(self.tables_to_drop),
            "columns_to_add": _count(self.columns_to_add),
            "columns_to_drop": _count(self.columns_to_drop),
            "columns_to_alter": _count(self.columns_to_alter),
            "indices_to_create": _count(self.indices_to_create),
            "indices_to_drop": _count(self.indices_to_drop),
            "foreign_keys_to_create": _count(self.foreign_keys_to_create),
            "foreign_keys_to_drop": _count(self.foreign_keys_to_drop),
        }
