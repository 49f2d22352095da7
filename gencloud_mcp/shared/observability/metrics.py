# Prometheus metrics for the MCP server

from typing import Optional

from prometheus_client import Counter, Histogram, generate_latest, start_http_server

from .logging import get_logger

logger = get_logger(__name__)

# ===== Request metrics =====
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ===== JSON-RPC metrics =====
jsonrpc_errors_total = Counter(
    "jsonrpc_errors_total",
    "Total JSON-RPC error envelopes returned",
    ["code"],
)

# ===== MCP tool metrics =====
mcp_tool_calls_total = Counter(
    "mcp_tool_calls_total",
    "Total MCP tool calls",
    ["tool_name", "status"],
)

mcp_tool_duration_seconds = Histogram(
    "mcp_tool_duration_seconds",
    "MCP tool execution duration in seconds",
    ["tool_name"],
    buckets=(0.01, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 5.0, 10.0),
)

# ===== Embedding / vector index metrics =====
embedding_request_total = Counter(
    "embedding_request_total",
    "Total embedding requests",
    ["model_id", "status"],
)

vector_query_total = Counter(
    "vector_query_total",
    "Total vector index queries",
    ["backend", "status"],
)


def setup_metrics(metrics_port: Optional[int]) -> bool:
    """
    Expose Prometheus metrics on a dedicated port.

    The main HTTP surface answers every path itself, so metrics live on
    their own listener. Returns True when the exporter was started.
    """
    if not metrics_port:
        logger.info("Prometheus exporter disabled")
        return False
    start_http_server(metrics_port)
    logger.info("Prometheus exporter started", port=metrics_port)
    return True


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format"""
    return generate_latest()
