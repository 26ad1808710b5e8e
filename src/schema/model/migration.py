from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class MigrationState(str, Enum):
    """Executor run states, in transition order."""

    START = "START"
    ENSURE_HISTORY_TABLE = "ENSURE_HISTORY_TABLE"
    APPLY = "APPLY"
    RECORD_HISTORY = "RECORD_HISTORY"
    DONE = "DONE"
    FAILED = "FAILED"


class MigrationUnit(BaseModel):
    """One generated group of statements, persisted to one file and applied as one transaction.

    ``migration_id`` and ``file_path`` are assigned by the executor.
    """

    label: str
    statements: List[str] = Field(default_factory=list)
    migration_id: Optional[str] = None
    file_path: Optional[str] = None

    model_config = {"frozen": False}

    @property
    def name(self) -> str:
        """History name of the unit (its file name without directory)."""
        if self.migration_id is None:
            return self.label
        return f"{self.migration_id}_{self.label}.sql"

    @property
    def sql(self) -> str:
        return "".join(f"{statement};\n" for statement in self.statements)


class AppliedMigration(BaseModel):
    """A row of the migration history table."""

    id: int
    migration_id: str
    name: str
    applied_at: Optional[datetime] = None
    checksum: Optional[str] = None
    execution_time_ms: Optional[int] = None

    model_config = {"frozen": False}


class MigrationRun(BaseModel):
    """Outcome of one executor run."""

    run_id: str
    dry_run: bool = False
    state: MigrationState = MigrationState.START
    units: List[MigrationUnit] = Field(default_factory=list)
    applied: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    model_config = {"frozen": False}
