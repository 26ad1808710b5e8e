"""Shared observability helpers."""

from common.observability.context import run_id_var
from common.observability.metrics import sync_metrics

__all__ = ["run_id_var", "sync_metrics"]
