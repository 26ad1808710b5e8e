from typing import List

from pydantic import BaseModel, Field


class View(BaseModel):
    """Database view; ``definition`` is the raw SQL body."""

    name: str
    definition: str = ""
    columns: List[str] = Field(default_factory=list)
    is_materialized: bool = False

    model_config = {"frozen": False}
