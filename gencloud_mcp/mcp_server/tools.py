"""
Tool descriptors and executors.

Each executor validates its arguments, calls exactly one collaborator
operation (search calls two, in sequence) and renders the outcome as
text. Missing arguments are answered with an explanatory string, never
an exception.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from gencloud_mcp.clients import Collaborators, ObjectStorage
from gencloud_mcp.query import SemanticSearch
from gencloud_mcp.shared.errors import ConfigurationError, ToolExecutionError
from gencloud_mcp.shared.observability import get_logger, trace_mcp_tool

from .models import MCPTool

logger = get_logger(__name__)

DEFAULT_TOP_K = 5


class ToolName(str, Enum):
    LIST_R2_FILES = "list_r2_files"
    READ_R2_FILE = "read_r2_file"
    SEARCH_VECTORS = "search_vectors"

    @classmethod
    def lookup(cls, name: Any) -> Optional["ToolName"]:
        try:
            return cls(name)
        except ValueError:
            return None


TOOL_DESCRIPTORS: Tuple[MCPTool, ...] = (
    MCPTool(
        name=ToolName.LIST_R2_FILES.value,
        description="List files in the bound R2 bucket under an optional prefix path.",
        input_schema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Optional prefix/folder to list under. Example: 'logs/2025/'.",
                },
            },
            "additionalProperties": False,
        },
    ),
    MCPTool(
        name=ToolName.READ_R2_FILE.value,
        description="Read a text file from the bound R2 bucket.",
        input_schema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Full key/path of the file in R2.",
                },
            },
            "required": ["path"],
            "additionalProperties": False,
        },
    ),
    MCPTool(
        name=ToolName.SEARCH_VECTORS.value,
        description=(
            "Semantic search over the Cloudflare Vectorize index. "
            "Returns the most relevant chunks with metadata."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Natural language search query.",
                },
                "topK": {
                    "type": "number",
                    "description": "Number of top results to return (default: 5).",
                },
            },
            "required": ["query"],
            "additionalProperties": False,
        },
    ),
)


def normalize_prefix(path: Any) -> str:
    """
    Turn a tool ``path`` argument into a directory-style listing prefix.

    None, "" and "/" mean the bucket root (empty prefix); anything else
    gets a trailing "/" when it lacks one. Applying it twice is the same
    as applying it once.
    """
    if path is None:
        return ""
    if not isinstance(path, str):
        raise TypeError(f"'path' must be a string, got {type(path).__name__}")
    if path in ("", "/"):
        return ""
    if not path.endswith("/"):
        return path + "/"
    return path


def coerce_top_k(value: Any, default: int = DEFAULT_TOP_K) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'topK' must be a positive integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"'topK' must be a positive integer, got {value!r}")
        value = int(value)
    if value < 1:
        raise ValueError(f"'topK' must be a positive integer, got {value!r}")
    return value


class ToolExecutors:
    """The three tools, bound to explicitly injected collaborators."""

    def __init__(
        self,
        collaborators: Collaborators,
        search: Optional[SemanticSearch] = None,
        default_top_k: int = DEFAULT_TOP_K,
    ) -> None:
        self.collaborators = collaborators
        self.search = search or SemanticSearch(
            collaborators.embedder, collaborators.vector_index
        )
        self.default_top_k = default_top_k

    async def execute(self, tool: ToolName, arguments: Dict[str, Any]) -> str:
        """
        Run *tool* and return its text.

        ToolExecutionError (storage failure, missing collaborator) becomes
        "Error running <tool>: <message>" for both call shapes; any other
        exception propagates.
        """
        try:
            with trace_mcp_tool(tool.value, arguments):
                return await self._run(tool, arguments)
        except ToolExecutionError as e:
            logger.error("Tool call failed", tool=tool.value, error=str(e))
            return f"Error running {tool.value}: {e}"

    async def _run(self, tool: ToolName, arguments: Dict[str, Any]) -> str:
        if tool is ToolName.LIST_R2_FILES:
            return await self.list_r2_files(arguments)
        if tool is ToolName.READ_R2_FILE:
            return await self.read_r2_file(arguments)
        if tool is ToolName.SEARCH_VECTORS:
            return await self.search_vectors(arguments)
        raise ValueError(f"Unhandled tool: {tool!r}")

    def _storage(self) -> ObjectStorage:
        storage = self.collaborators.storage
        if storage is None:
            raise ConfigurationError(
                "Object storage is not configured. Set R2_BUCKET, "
                "R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY."
            )
        return storage

    async def list_r2_files(self, arguments: Dict[str, Any]) -> str:
        prefix = normalize_prefix(arguments.get("path"))
        objects = await self._storage().list(prefix)
        files = [obj.to_dict() for obj in objects]
        logger.info("Listed objects", prefix=prefix, count=len(files))
        return json.dumps(files, indent=2, ensure_ascii=False)

    async def read_r2_file(self, arguments: Dict[str, Any]) -> str:
        path = arguments.get("path")
        if not path:
            return "Error: missing 'path' argument"
        if not isinstance(path, str):
            raise TypeError(f"'path' must be a string, got {type(path).__name__}")

        stored = await self._storage().get(path)
        if stored is None:
            return f'Error: File "{path}" not found'
        return stored.text()

    async def search_vectors(self, arguments: Dict[str, Any]) -> str:
        query = arguments.get("query")
        if not query:
            return "Error: missing 'query' argument"

        try:
            top_k = coerce_top_k(arguments.get("topK"), self.default_top_k)
            matches = await self.search.search(query, top_k)
        except Exception as e:
            logger.error("search_vectors failed", error=str(e), exc_info=True)
            return f"Error running search_vectors: {e}"

        return json.dumps([m.to_dict() for m in matches], indent=2, ensure_ascii=False)


__all__ = [
    "DEFAULT_TOP_K",
    "TOOL_DESCRIPTORS",
    "ToolExecutors",
    "ToolName",
    "coerce_top_k",
    "normalize_prefix",
]
