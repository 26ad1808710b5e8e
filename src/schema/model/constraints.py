from typing import List, Optional

from pydantic import BaseModel, Field


class PrimaryKey(BaseModel):
    """Primary key constraint; columns are in key order."""

    name: Optional[str] = None
    columns: List[str] = Field(default_factory=list)

    model_config = {"frozen": False}


class Index(BaseModel):
    """Secondary index definition (the primary key index is never represented here)."""

    name: str
    columns: List[str] = Field(default_factory=list)
    is_unique: bool = False
    method: Optional[str] = None

    model_config = {"frozen": False}

    def same_definition(self, other: "Index") -> bool:
        """Return True when columns and uniqueness match (method is not compared)."""
        return self.columns == other.columns and self.is_unique == other.is_unique


class ForeignKey(BaseModel):
    """Foreign key constraint; ``columns`` and ``ref_columns`` pair up by position."""

    name: str
    columns: List[str] = Field(default_factory=list)
    ref_table: str
    ref_columns: List[str] = Field(default_factory=list)
    on_delete: Optional[str] = None
    on_update: Optional[str] = None

    model_config = {"frozen": False}

    def same_definition(self, target: "ForeignKey") -> bool:
        """Compare against a target definition.

        Referential actions only count when the target states them.
        """
        if (
            self.columns != target.columns
            or self.ref_table != target.ref_table
            or self.ref_columns != target.ref_columns
        ):
            return False
        for action in ("on_delete", "on_update"):
            wanted = getattr(target, action)
            if wanted is None:
                continue
            actual = getattr(self, action) or "NO ACTION"
            if _normalize_action(actual) != _normalize_action(wanted):
                return False
        return True


def _normalize_action(action: str) -> str:
    return " ".join(action.upper().split())
