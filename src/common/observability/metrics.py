"""OpenTelemetry metrics for schema sync runs.

Emission is off unless ``SCHEMA_SYNC_METRICS_ENABLED`` is true, or the flag is
unset and an OTLP exporter endpoint is configured. Instruments are created on
first use, so a disabled run never asks the global provider for a meter.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from opentelemetry import metrics

from common.config.env import get_env_bool

logger = logging.getLogger(__name__)

METRICS_FLAG = "SCHEMA_SYNC_METRICS_ENABLED"

UNIT_OUTCOME_COUNTER = "schema_sync.migrations.{status}"
UNIT_DURATION_HISTOGRAM = "schema_sync.migration.duration_ms"

_EXPORTER_ENDPOINT_VARS = ("OTEL_EXPORTER_OTLP_ENDPOINT", "OTEL_EXPORTER_OTLP_METRICS_ENDPOINT")


def is_otel_exporter_configured() -> bool:
    """Return True when an OTLP endpoint is set and exporting is not switched off."""
    if get_env_bool("OTEL_DISABLE_EXPORTER", False):
        return False
    if (os.getenv("OTEL_METRICS_EXPORTER") or "").strip().lower() == "none":
        return False
    return any((os.getenv(name) or "").strip() for name in _EXPORTER_ENDPOINT_VARS)


def is_metrics_enabled(flag: str = METRICS_FLAG) -> bool:
    """Resolve an on/off flag: an explicit value wins, else exporter presence decides.

    An unparseable value disables emission rather than failing the run.
    """
    if os.getenv(flag) is None:
        return is_otel_exporter_configured()
    try:
        return bool(get_env_bool(flag, False))
    except ValueError:
        logger.warning("Invalid %s value '%s'; metrics disabled.", flag, os.getenv(flag))
        return False


def _metric_attributes(attributes: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    # OTEL attribute values must be str, bool, int or float; bools are kept as text labels
    cleaned: Dict[str, Any] = {}
    for key, value in (attributes or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            cleaned[key] = str(value).lower()
        elif isinstance(value, (str, int, float)):
            cleaned[key] = value
        else:
            cleaned[key] = str(value)
    return cleaned


@dataclass
class OptionalMetrics:
    """Counters and histograms for one meter, silent while the flag is off."""

    meter_name: str
    enabled_env_var: str = METRICS_FLAG
    _meter: Any = None
    _instruments: dict[str, Any] = field(default_factory=dict)

    def enabled(self) -> bool:
        return is_metrics_enabled(self.enabled_env_var)

    def _get_instrument(self, kind: str, name: str, description: str, unit: str):
        key = f"{kind}:{name}"
        if key not in self._instruments:
            if self._meter is None:
                self._meter = metrics.get_meter(self.meter_name)
            if kind == "counter":
                create = self._meter.create_counter
            else:
                create = self._meter.create_histogram
            self._instruments[key] = create(name=name, description=description, unit=unit)
        return self._instruments[key]

    def add_counter(
        self,
        name: str,
        value: int = 1,
        *,
        description: str = "",
        unit: str = "1",
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add to a monotonic counter; emission failures are logged, never raised."""
        if not self.enabled():
            return
        try:
            instrument = self._get_instrument("counter", name, description, unit)
            instrument.add(int(value), _metric_attributes(attributes))
        except Exception as exc:
            logger.debug("Counter metric emission failed for %s: %s", name, exc)

    def record_histogram(
        self,
        name: str,
        value: float,
        *,
        description: str = "",
        unit: str = "1",
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record one histogram datapoint; emission failures are logged, never raised."""
        if not self.enabled():
            return
        try:
            instrument = self._get_instrument("histogram", name, description, unit)
            instrument.record(float(value), _metric_attributes(attributes))
        except Exception as exc:
            logger.debug("Histogram metric emission failed for %s: %s", name, exc)

    def record_migration_unit(self, dialect: str, status: str, duration_ms: float) -> None:
        """Count one migration unit by outcome and record how long it ran."""
        attributes = {"dialect": dialect, "status": status}
        self.add_counter(
            UNIT_OUTCOME_COUNTER.format(status=status),
            description="Migration units by outcome",
            attributes=attributes,
        )
        self.record_histogram(
            UNIT_DURATION_HISTOGRAM,
            duration_ms,
            description="Migration unit execution time",
            unit="ms",
            attributes=attributes,
        )


sync_metrics = OptionalMetrics(meter_name="schema-sync")
