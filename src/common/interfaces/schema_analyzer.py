from typing import Dict, Optional, Protocol, runtime_checkable

from schema.model import DatabaseSchema, Table, View


@runtime_checkable
class SchemaAnalyzer(Protocol):
    """Protocol for reading a live database catalog into the canonical schema model.

    Implementations are read-only and surface query failures as SchemaAnalysisError.
    """

    async def analyze_schema(self, schema_name: Optional[str] = None) -> DatabaseSchema:
        """Analyze base tables and views of a schema.

        Args:
            schema_name: Schema/namespace to analyze; None uses the dialect default.

        Returns:
            A populated DatabaseSchema.
        """
        ...

    async def analyze_tables(self, schema_name: Optional[str] = None) -> Dict[str, Table]:
        """Analyze base tables keyed by name."""
        ...

    async def analyze_views(self, schema_name: Optional[str] = None) -> Dict[str, View]:
        """Analyze views (including materialized views where supported) keyed by name."""
        ...
