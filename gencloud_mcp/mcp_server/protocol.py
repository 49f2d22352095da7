"""
MCP protocol handler for JSON-RPC 2.0 envelopes.

Supported methods: ``initialize``, ``tools/list`` and ``tools/call``. The
handler keeps no state between calls.

Error signalling is asymmetric: protocol problems (unknown
method, unknown tool, missing tool name) become JSON-RPC ``error``
objects, while tool-level problems (missing argument, file not found,
backend failure) come back as a successful ``result`` whose text
describes the problem.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from starlette.responses import Response

from gencloud_mcp.shared.config import DEFAULT_INSTRUCTIONS, DEFAULT_PROTOCOL_VERSION
from gencloud_mcp.shared.errors import JsonRpcErrorCode
from gencloud_mcp.shared.observability import get_logger

from .envelopes import (
    ID_ABSENT,
    display_value,
    jsonrpc_error,
    jsonrpc_result,
    text_result,
)
from .models import MCPInitializeResponse, MCPServerInfo, MCPToolsListResponse
from .tools import TOOL_DESCRIPTORS, ToolExecutors, ToolName

logger = get_logger(__name__)


class McpMethod(str, Enum):
    INITIALIZE = "initialize"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"

    @classmethod
    def lookup(cls, name: Any) -> Optional["McpMethod"]:
        try:
            return cls(name)
        except ValueError:
            return None


def _as_mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


class McpProtocolHandler:
    def __init__(
        self,
        executors: ToolExecutors,
        *,
        server_name: str = "gencloud-qa-mcp",
        server_version: str = "0.1.0",
        protocol_version: str = DEFAULT_PROTOCOL_VERSION,
        instructions: str = DEFAULT_INSTRUCTIONS,
    ) -> None:
        self.executors = executors
        self._initialize_result = MCPInitializeResponse(
            protocol_version=protocol_version,
            capabilities={"tools": {}},
            server_info=MCPServerInfo(name=server_name, version=server_version),
            instructions=instructions,
        ).model_dump(by_alias=True)
        self._tools_list_result = MCPToolsListResponse(
            tools=list(TOOL_DESCRIPTORS)
        ).model_dump(by_alias=True)

    async def handle(self, body: Dict[str, Any]) -> Response:
        request_id = body.get("id", ID_ABSENT)
        method_name = body.get("method")
        params = _as_mapping(body.get("params"))

        method = McpMethod.lookup(method_name)
        if method is McpMethod.INITIALIZE:
            # Client capabilities in params are not negotiated
            logger.info("MCP initialize request", client_info=params.get("clientInfo"))
            return jsonrpc_result(request_id, self._initialize_result)
        if method is McpMethod.TOOLS_LIST:
            return jsonrpc_result(request_id, self._tools_list_result)
        if method is McpMethod.TOOLS_CALL:
            return await self._call_tool(request_id, params)

        logger.info("Unknown MCP method", method=method_name)
        return jsonrpc_error(
            request_id,
            JsonRpcErrorCode.METHOD_NOT_FOUND,
            f"Unknown method: {display_value(method_name)}",
        )

    async def _call_tool(self, request_id: Any, params: Dict[str, Any]) -> Response:
        tool_name = params.get("name")
        arguments = _as_mapping(params.get("arguments"))

        if not tool_name:
            return jsonrpc_error(
                request_id,
                JsonRpcErrorCode.INVALID_PARAMS,
                "Missing tool name in params.name",
            )

        tool = ToolName.lookup(tool_name)
        if tool is None:
            return jsonrpc_error(
                request_id,
                JsonRpcErrorCode.METHOD_NOT_FOUND,
                f"Unknown tool: {display_value(tool_name)}",
            )

        logger.info("MCP tool call request", tool=tool.value, args=arguments)
        text = await self.executors.execute(tool, arguments)

        return jsonrpc_result(request_id, text_result(text))


__all__ = ["McpMethod", "McpProtocolHandler"]
