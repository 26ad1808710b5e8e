"""Model descriptors: the target-schema input supplied by callers."""

from .descriptors import FieldDescriptor, ForeignKeyReference, ModelDescriptor
from .from_model import descriptor_from_model

__all__ = ["FieldDescriptor", "ForeignKeyReference", "ModelDescriptor", "descriptor_from_model"]
