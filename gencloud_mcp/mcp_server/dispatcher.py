"""
Top-level request dispatcher.

Every inbound HTTP request is classified as a health probe (GET), a
JSON-RPC/MCP envelope (body with ``"jsonrpc": "2.0"``) or a legacy flat
call (``{"method", "params"}``). Every exit is HTTP 200; uncaught
failures become a JSON-RPC internal error with ``id: null``.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from starlette.requests import Request
from starlette.responses import Response

from gencloud_mcp.clients import Collaborators
from gencloud_mcp.query import SemanticSearch
from gencloud_mcp.shared.config import Config
from gencloud_mcp.shared.errors import JsonRpcErrorCode
from gencloud_mcp.shared.observability import get_logger

from .envelopes import (
    JSONRPC_VERSION,
    display_value,
    jsonrpc_error,
    legacy_content,
    plain_text,
)
from .protocol import McpProtocolHandler
from .tools import ToolExecutors, ToolName

logger = get_logger(__name__)

HEALTH_MESSAGE = "MCP server is running. Send JSON-RPC 2.0 via POST."


def _reject_constant(name: str) -> Any:
    # NaN, Infinity and -Infinity are accepted by json.loads but are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


class Dispatcher:
    def __init__(self, protocol: McpProtocolHandler, executors: ToolExecutors) -> None:
        self.protocol = protocol
        self.executors = executors

    @classmethod
    def from_config(cls, config: Config, collaborators: Collaborators) -> "Dispatcher":
        search = SemanticSearch(
            collaborators.embedder,
            collaborators.vector_index,
            model_id=config.search.embedding_model,
        )
        executors = ToolExecutors(
            collaborators, search, default_top_k=config.search.default_top_k
        )
        protocol = McpProtocolHandler(
            executors,
            server_name=config.app.name,
            server_version=config.app.version,
            protocol_version=config.mcp.protocol_version,
            instructions=config.mcp.instructions,
        )
        return cls(protocol, executors)

    async def handle(self, request: Request) -> Response:
        try:
            return await self._handle(request)
        except Exception as e:
            logger.error(
                "Unexpected MCP server error",
                method=request.method,
                error=str(e),
                exc_info=True,
            )
            return jsonrpc_error(
                None, JsonRpcErrorCode.INTERNAL_ERROR, f"Internal error: {e}"
            )

    async def _handle(self, request: Request) -> Response:
        if request.method == "GET":
            return plain_text(HEALTH_MESSAGE)

        if request.method != "POST":
            return invalid_request_method()

        raw = await request.body()
        try:
            body = json.loads(raw, parse_constant=_reject_constant)
        except ValueError:
            return jsonrpc_error(
                None, JsonRpcErrorCode.PARSE_ERROR, "Parse error: invalid JSON"
            )

        if isinstance(body, dict) and body.get("jsonrpc") == JSONRPC_VERSION:
            return await self.protocol.handle(body)

        return await self._handle_legacy(body)

    async def _handle_legacy(self, body: Any) -> Response:
        """Flat ``{method, params}`` calls; failures are reported only as text."""
        method: Optional[Any] = None
        params: Any = None
        if isinstance(body, dict):
            method = body.get("method")
            params = body.get("params")
        arguments = params if isinstance(params, dict) else {}

        tool = ToolName.lookup(method)
        if tool is None:
            return legacy_content(f"Unknown method: {display_value(method)}")

        logger.info("Legacy tool call request", tool=tool.value, args=arguments)
        text = await self.executors.execute(tool, arguments)
        return legacy_content(text)


def invalid_request_method() -> Response:
    return jsonrpc_error(
        None,
        JsonRpcErrorCode.INVALID_REQUEST,
        "Invalid request method (POST required)",
    )


__all__ = ["Dispatcher", "HEALTH_MESSAGE", "invalid_request_method"]
