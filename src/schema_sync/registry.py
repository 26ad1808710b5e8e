"""Per-run registry of model descriptors and the target schema built from them."""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pydantic

from common.config.settings import SchemaSyncConfig
from common.errors import ModelRegistrationError, ModelSyntaxError
from common.utils.naming import (
    check_identifier_conflicts,
    get_column_name,
    get_foreign_key_name,
    get_index_name,
    get_table_name,
    truncate_identifier,
)
from schema.descriptor import (
    FieldDescriptor,
    ForeignKeyReference,
    ModelDescriptor,
    descriptor_from_model,
)
from schema.model import Column, DatabaseSchema, ForeignKey, Index, PrimaryKey, Table
from schema_sync.type_mapper import TypeMapper, is_optional

logger = logging.getLogger(__name__)

AUDIT_TIMESTAMP_TYPE = "TIMESTAMP WITH TIME ZONE"
DEFAULT_IDENTIFIER_LIMIT = 63


class ModelRegistry:
    """Explicit registry of model descriptors for one schema sync run.

    Usage:
        registry = ModelRegistry(config)
        registry.register_model(User)
        registry.register_model(Post)
        target = registry.to_database_schema()
    """

    def __init__(
        self,
        config: SchemaSyncConfig,
        type_mapper: Optional[TypeMapper] = None,
        max_identifier_length: int = DEFAULT_IDENTIFIER_LIMIT,
    ) -> None:
        self._config = config
        self._type_mapper = type_mapper or TypeMapper(
            config.type_mapping, strict=config.schema.strict_mode
        )
        self._max_identifier_length = max_identifier_length
        self._models: Dict[str, ModelDescriptor] = {}
        self._table_names: Dict[str, str] = {}

    @property
    def models(self) -> List[ModelDescriptor]:
        """Registered descriptors in registration order."""
        return list(self._models.values())

    def get_model(self, name: str) -> Optional[ModelDescriptor]:
        return self._models.get(name)

    def table_name_for(self, descriptor: ModelDescriptor) -> str:
        naming = self._config.naming
        if descriptor.table_name:
            return descriptor.table_name
        return get_table_name(descriptor.name, naming.table_style, naming.pluralize_tables)

    def register(self, descriptor: ModelDescriptor) -> ModelDescriptor:
        """Register a descriptor.

        Raises:
            ModelRegistrationError: If the model name or its table name is already taken.
        """
        if descriptor.name in self._models:
            raise ModelRegistrationError(f"Model '{descriptor.name}' is already registered")

        table_name = self.table_name_for(descriptor)
        owner = self._table_names.get(table_name)
        if owner is not None:
            raise ModelRegistrationError(
                f"Models '{owner}' and '{descriptor.name}' both map to table '{table_name}'"
            )

        self._models[descriptor.name] = descriptor
        self._table_names[table_name] = descriptor.name
        logger.debug("Registered model %s as table %s", descriptor.name, table_name)
        return descriptor

    def register_many(self, descriptors: Iterable[ModelDescriptor]) -> None:
        for descriptor in descriptors:
            self.register(descriptor)

    def register_model(self, cls: type) -> ModelDescriptor:
        """Register a pydantic model class."""
        return self.register(descriptor_from_model(cls))

    def register_dict(self, data: Mapping[str, Any]) -> ModelDescriptor:
        """Register a descriptor given as a plain mapping.

        ``foreign_key`` entries may be ``"table.column"`` strings.

        Raises:
            ModelSyntaxError: If the mapping is not a valid model descriptor.
        """
        if not isinstance(data, Mapping):
            raise ModelSyntaxError(f"Model descriptor must be a mapping, got {type(data).__name__}")
        payload = dict(data)
        fields = []
        for field in payload.get("fields") or []:
            if not isinstance(field, Mapping):
                raise ModelSyntaxError(f"Field descriptor must be a mapping, got {field!r}")
            field = dict(field)
            reference = field.get("foreign_key")
            if isinstance(reference, str):
                field["foreign_key"] = ForeignKeyReference.parse(
                    reference,
                    on_delete=field.pop("on_delete", None),
                    on_update=field.pop("on_update", None),
                )
            fields.append(field)
        payload["fields"] = fields
        try:
            descriptor = ModelDescriptor.model_validate(payload)
        except pydantic.ValidationError as exc:
            raise ModelSyntaxError(f"Invalid model descriptor: {exc}") from exc
        return self.register(descriptor)

    def to_database_schema(self) -> DatabaseSchema:
        """Build and validate the target schema from the registered models."""
        naming = self._config.naming
        conflict = check_identifier_conflicts(
            self._table_names.keys(), ignore_case=not naming.ignore_case_conflicts
        )
        if conflict is not None:
            raise ModelRegistrationError(
                f"Table names '{conflict[0]}' and '{conflict[1]}' differ only by case"
            )

        schema = DatabaseSchema(schema_name=self._config.database.schema_name)
        for descriptor in self._models.values():
            schema.add_table(self._build_table(descriptor))
        schema.validate()
        return schema

    def _truncate(self, name: str) -> str:
        return truncate_identifier(name, self._max_identifier_length)

    def _resolve_ref_table(self, ref_table: str) -> str:
        # references may name a registered model instead of its table
        descriptor = self._models.get(ref_table)
        if descriptor is not None:
            return self.table_name_for(descriptor)
        return ref_table

    def _column_for(self, field: FieldDescriptor) -> Column:
        naming = self._config.naming
        nullable = field.nullable
        if nullable is None:
            nullable = is_optional(field.source_type) or self._config.schema.default_nullable
        if field.primary_key:
            nullable = False
        return Column(
            name=get_column_name(field.name, naming.column_style),
            data_type=field.db_type or self._type_mapper.map_type(field.source_type),
            nullable=nullable,
            default=field.default,
            comment=field.comment,
            is_unique=field.unique and not field.primary_key,
        )

    def _build_table(self, descriptor: ModelDescriptor) -> Table:
        naming = self._config.naming
        policy = self._config.schema
        table = Table(name=self.table_name_for(descriptor), comment=descriptor.comment)

        pk_columns: List[str] = []
        for field in descriptor.fields:
            column = self._column_for(field)
            table.add_column(column)
            if field.primary_key:
                pk_columns.append(column.name)

        if pk_columns:
            table.set_primary_key(
                PrimaryKey(name=self._truncate(f"pk_{table.name}"), columns=pk_columns)
            )

        if policy.add_created_at_column and table.get_column("created_at") is None:
            table.add_column(_audit_column("created_at", "Record creation timestamp"))
        if policy.add_updated_at_column and table.get_column("updated_at") is None:
            table.add_column(_audit_column("updated_at", "Record last update timestamp"))

        for field in descriptor.fields:
            column_name = get_column_name(field.name, naming.column_style)
            if field.unique and not field.primary_key:
                table.add_index(
                    Index(
                        name=self._truncate(
                            get_index_name(naming.index_pattern, table.name, [column_name])
                        ),
                        columns=[column_name],
                        is_unique=True,
                        method="btree",
                    )
                )

        for field in descriptor.fields:
            if field.foreign_key is None:
                continue
            column_name = get_column_name(field.name, naming.column_style)
            reference = field.foreign_key
            table.add_foreign_key(
                ForeignKey(
                    name=self._truncate(
                        get_foreign_key_name(naming.constraint_pattern, table.name, column_name)
                    ),
                    columns=[column_name],
                    ref_table=self._resolve_ref_table(reference.ref_table),
                    ref_columns=[reference.ref_column],
                    on_delete=reference.on_delete,
                    on_update=reference.on_update,
                )
            )
            covered = field.unique or pk_columns == [column_name]
            if policy.index_foreign_keys and not covered:
                index_name = self._truncate(
                    get_index_name(naming.index_pattern, table.name, [column_name])
                )
                if table.get_index(index_name) is None:
                    table.add_index(
                        Index(name=index_name, columns=[column_name], method="btree")
                    )

        return table


def _audit_column(name: str, comment: str) -> Column:
    return Column(
        name=name,
        data_type=AUDIT_TIMESTAMP_TYPE,
        nullable=False,
        default="CURRENT_TIMESTAMP",
        comment=comment,
    )
