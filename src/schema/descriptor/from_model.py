"""Build model descriptors from pydantic model classes.

Per-field schema metadata comes from ``json_schema_extra``::

    class Post(BaseModel):
        model_config = {"json_schema_extra": {"table_name": "posts"}}

        id: int = Field(json_schema_extra={"primary_key": True})
        title: str = Field(json_schema_extra={"db_type": "VARCHAR(200)"})
        user_id: int = Field(
            json_schema_extra={"foreign_key": "users.id", "on_delete": "CASCADE"}
        )
        summary: Optional[str] = None

Nullability follows ``Optional[...]`` / ``X | None`` annotations unless the metadata
sets ``nullable`` explicitly.
"""

import types
from typing import Any, Dict, Optional, Tuple, Union, get_args, get_origin

from pydantic import BaseModel

from common.errors import ModelSyntaxError

from .descriptors import FieldDescriptor, ForeignKeyReference, ModelDescriptor

_FIELD_KEYS = {
    "primary_key",
    "unique",
    "db_type",
    "foreign_key",
    "on_delete",
    "on_update",
    "default",
    "comment",
    "nullable",
    "source_type",
}


def _unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) != len(get_args(annotation)) and len(args) == 1:
            return args[0], True
    return annotation, False


def _type_name(annotation: Any) -> str:
    origin = get_origin(annotation)
    target = origin if origin is not None else annotation
    name = getattr(target, "__name__", None)
    return name if name else str(annotation)


def _field_extra(cls_name: str, field_name: str, extra: Any) -> Dict[str, Any]:
    if extra is None:
        return {}
    if callable(extra):
        schema: Dict[str, Any] = {}
        extra(schema)
        extra = schema
    if not isinstance(extra, dict):
        raise ModelSyntaxError(
            f"Field '{cls_name}.{field_name}' json_schema_extra must be a mapping"
        )
    return {key: value for key, value in extra.items() if key in _FIELD_KEYS}


def descriptor_from_model(cls: type) -> ModelDescriptor:
    """Build a ModelDescriptor from a pydantic model class.

    Raises:
        ModelSyntaxError: If ``cls`` is not a pydantic model or its metadata is malformed.
    """
    if not isinstance(cls, type) or not issubclass(cls, BaseModel):
        raise ModelSyntaxError(f"{cls!r} is not a pydantic model class")

    model_extra = cls.model_config.get("json_schema_extra")
    if callable(model_extra) or not isinstance(model_extra, (dict, type(None))):
        raise ModelSyntaxError(f"Model '{cls.__name__}' json_schema_extra must be a mapping")
    model_extra = model_extra or {}

    fields = []
    for field_name, info in cls.model_fields.items():
        extra = _field_extra(cls.__name__, field_name, info.json_schema_extra)
        inner, is_optional = _unwrap_optional(info.annotation)

        nullable: Optional[bool] = extra.get("nullable")
        if nullable is None and is_optional:
            nullable = True

        foreign_key = None
        reference = extra.get("foreign_key")
        if isinstance(reference, str):
            foreign_key = ForeignKeyReference.parse(
                reference, on_delete=extra.get("on_delete"), on_update=extra.get("on_update")
            )
        elif isinstance(reference, dict):
            foreign_key = ForeignKeyReference(**reference)
        elif reference is not None:
            raise ModelSyntaxError(
                f"Field '{cls.__name__}.{field_name}' foreign_key must be 'table.column'"
            )

        fields.append(
            FieldDescriptor(
                name=field_name,
                source_type=extra.get("source_type") or _type_name(inner),
                db_type=extra.get("db_type"),
                nullable=nullable,
                primary_key=bool(extra.get("primary_key", False)),
                unique=bool(extra.get("unique", False)),
                default=extra.get("default"),
                comment=extra.get("comment") or info.description,
                foreign_key=foreign_key,
            )
        )

    return ModelDescriptor(
        name=cls.__name__,
        table_name=model_extra.get("table_name"),
        fields=fields,
        comment=model_extra.get("comment"),
    )
