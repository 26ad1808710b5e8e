from typing import List, Optional

from pydantic import BaseModel, Field

from common.errors import ValidationError

from .column import Column
from .constraints import ForeignKey, Index, PrimaryKey


class Table(BaseModel):
    """Canonical table definition.

    Built empty and populated incrementally through the ``add_*`` helpers, which
    reject duplicate names as they go. ``validate()`` checks the cross-references
    (key and index columns must exist) once the table is complete.
    """

    name: str
    columns: List[Column] = Field(default_factory=list)
    primary_key: Optional[PrimaryKey] = None
    indexes: List[Index] = Field(default_factory=list)
    foreign_keys: List[ForeignKey] = Field(default_factory=list)
    comment: Optional[str] = None

    model_config = {"frozen": False}

    def add_column(self, column: Column) -> "Table":
        if self.get_column(column.name) is not None:
            raise ValidationError(
                f"Duplicate column '{column.name}' in table '{self.name}'", table=self.name
            )
        self.columns.append(column)
        return self

    def set_primary_key(self, primary_key: PrimaryKey) -> "Table":
        if not primary_key.columns:
            raise ValidationError(
                f"Primary key of table '{self.name}' has no columns", table=self.name
            )
        self.primary_key = primary_key
        return self

    def add_index(self, index: Index) -> "Table":
        if self.get_index(index.name) is not None:
            raise ValidationError(
                f"Duplicate index '{index.name}' in table '{self.name}'", table=self.name
            )
        self.indexes.append(index)
        return self

    def add_foreign_key(self, foreign_key: ForeignKey) -> "Table":
        if self.get_foreign_key(foreign_key.name) is not None:
            raise ValidationError(
                f"Duplicate foreign key '{foreign_key.name}' in table '{self.name}'",
                table=self.name,
            )
        self.foreign_keys.append(foreign_key)
        return self

    def get_column(self, name: str) -> Optional[Column]:
        return next((column for column in self.columns if column.name == name), None)

    def get_index(self, name: str) -> Optional[Index]:
        return next((index for index in self.indexes if index.name == name), None)

    def get_foreign_key(self, name: str) -> Optional[ForeignKey]:
        return next((fk for fk in self.foreign_keys if fk.name == name), None)

    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def referenced_tables(self) -> List[str]:
        """Return tables referenced by foreign keys, excluding self references."""
        seen: List[str] = []
        for fk in self.foreign_keys:
            if fk.ref_table != self.name and fk.ref_table not in seen:
                seen.append(fk.ref_table)
        return seen

    def validate(self) -> None:
        """Raise ValidationError when names collide or a constraint names a missing column."""
        names = set()
        for column in self.columns:
            if column.name in names:
                raise ValidationError(
                    f"Duplicate column '{column.name}' in table '{self.name}'", table=self.name
                )
            names.add(column.name)

        if self.primary_key is not None:
            if not self.primary_key.columns:
                raise ValidationError(
                    f"Primary key of table '{self.name}' has no columns", table=self.name
                )
            self._check_columns("primary key", self.primary_key.name, self.primary_key.columns)

        index_names = set()
        for index in self.indexes:
            if index.name in index_names:
                raise ValidationError(
                    f"Duplicate index '{index.name}' in table '{self.name}'", table=self.name
                )
            index_names.add(index.name)
            if not index.columns:
                raise ValidationError(
                    f"Index '{index.name}' in table '{self.name}' has no columns", table=self.name
                )
            self._check_columns("index", index.name, index.columns)

        fk_names = set()
        for fk in self.foreign_keys:
            if fk.name in fk_names:
                raise ValidationError(
                    f"Duplicate foreign key '{fk.name}' in table '{self.name}'", table=self.name
                )
            fk_names.add(fk.name)
            if not fk.columns or len(fk.columns) != len(fk.ref_columns):
                raise ValidationError(
                    f"Foreign key '{fk.name}' in table '{self.name}' must pair each local "
                    "column with one referenced column",
                    table=self.name,
                )
            self._check_columns("foreign key", fk.name, fk.columns)

    def _check_columns(self, kind: str, name: Optional[str], columns: List[str]) -> None:
        known = set(self.column_names())
        for column in columns:
            if column not in known:
                label = f"{kind} '{name}'" if name else kind
                raise ValidationError(
                    f"{label.capitalize()} in table '{self.name}' references unknown column "
                    f"'{column}'",
                    table=self.name,
                )
