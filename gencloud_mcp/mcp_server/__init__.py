# MCP server package
from .dispatcher import Dispatcher
from .protocol import McpMethod, McpProtocolHandler
from .tools import TOOL_DESCRIPTORS, ToolExecutors, ToolName

__all__ = [
    "Dispatcher",
    "McpMethod",
    "McpProtocolHandler",
    "TOOL_DESCRIPTORS",
    "ToolExecutors",
    "ToolName",
]
