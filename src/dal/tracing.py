from typing import Awaitable, Optional

from common.observability.context import run_id_var
from common.observability.metrics import is_metrics_enabled
from common.utils.hashing import sha256_hex

SPAN_NAME = "schema_sync.query"


def trace_enabled() -> bool:
    """Return True when query tracing is enabled or OTEL exporter defaults apply."""
    return is_metrics_enabled("SCHEMA_SYNC_TRACE_QUERIES")


async def trace_query_operation(
    provider: str,
    operation_name: str,
    sql: Optional[str],
    operation: Awaitable,
):
    """Await a database operation inside an OTEL span when tracing is enabled."""
    if not trace_enabled():
        return await operation

    from opentelemetry import trace

    tracer = trace.get_tracer("schema_sync")
    with tracer.start_as_current_span(SPAN_NAME) as span:
        run_id = run_id_var.get()
        if run_id:
            span.set_attribute("run_id", run_id)
        span.set_attribute("db.provider", provider)
        span.set_attribute("db.operation", operation_name)
        if sql:
            span.set_attribute("db.statement_hash", sha256_hex(sql))
        try:
            result = await operation
            span.set_attribute("db.status", "ok")
            return result
        except Exception:
            span.set_attribute("db.status", "error")
            raise
