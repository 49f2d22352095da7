# OpenTelemetry spans paired with Prometheus tool metrics

from contextlib import contextmanager
from typing import Any, Dict

from opentelemetry.trace import SpanKind

from .metrics import mcp_tool_calls_total, mcp_tool_duration_seconds
from .tracing import get_tracer


@contextmanager
def trace_mcp_tool(tool_name: str, arguments: Dict[str, Any]):
    """
    Context manager to trace MCP tool execution with metrics.

    Args:
        tool_name: Name of the MCP tool
        arguments: Tool arguments

    Yields:
        Span object
    """
    tracer = get_tracer(__name__)

    with tracer.start_as_current_span(
        f"mcp.tool.{tool_name}",
        kind=SpanKind.INTERNAL,
        attributes={
            "mcp.tool.name": tool_name,
            "mcp.tool.args": str(arguments),
        },
    ) as span:
        with mcp_tool_duration_seconds.labels(tool_name=tool_name).time():
            try:
                yield span
                mcp_tool_calls_total.labels(tool_name=tool_name, status="success").inc()
                span.set_attribute("mcp.tool.status", "success")
            except Exception as e:
                mcp_tool_calls_total.labels(tool_name=tool_name, status="error").inc()
                span.set_attribute("mcp.tool.status", "error")
                span.set_attribute("mcp.tool.error", str(e))
                span.record_exception(e)
                raise
