from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from common.errors import ValidationError

from .table import Table
from .view import View


class DatabaseSchema(BaseModel):
    """Named collection of tables and views, keyed by name.

    Instances are transient: built fresh for each analysis or target-schema build.
    """

    schema_name: Optional[str] = None
    tables: Dict[str, Table] = Field(default_factory=dict)
    views: Dict[str, View] = Field(default_factory=dict)

    model_config = {"frozen": False}

    def add_table(self, table: Table) -> "DatabaseSchema":
        if table.name in self.tables:
            raise ValidationError(f"Duplicate table '{table.name}'", table=table.name)
        self.tables[table.name] = table
        return self

    def add_view(self, view: View) -> "DatabaseSchema":
        if view.name in self.views:
            raise ValidationError(f"Duplicate view '{view.name}'")
        self.views[view.name] = view
        return self

    def get_table(self, name: str) -> Optional[Table]:
        return self.tables.get(name)

    def table_names(self) -> List[str]:
        return sorted(self.tables)

    def without_tables(self, names: Iterable[str]) -> "DatabaseSchema":
        """Return a deep copy of the schema minus the named tables."""
        excluded = set(names)
        return DatabaseSchema(
            schema_name=self.schema_name,
            tables={
                name: table.model_copy(deep=True)
                for name, table in self.tables.items()
                if name not in excluded
            },
            views={name: view.model_copy(deep=True) for name, view in self.views.items()},
        )

    def validate(self) -> None:
        """Validate every table; keys must match table names."""
        for key, table in self.tables.items():
            if key != table.name:
                raise ValidationError(
                    f"Table registered as '{key}' is named '{table.name}'", table=table.name
                )
            table.validate()
