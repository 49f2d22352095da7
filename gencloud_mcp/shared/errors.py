# Error taxonomy shared by the dispatcher, tool executors and clients

from enum import IntEnum


class JsonRpcErrorCode(IntEnum):
    """JSON-RPC 2.0 error codes used on the protocol tier."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


class ToolExecutionError(RuntimeError):
    """Expected tool-level failure; rendered as text, never as a JSON-RPC error."""


class ConfigurationError(ToolExecutionError):
    """Raised when a required collaborator is not configured."""


class StorageError(ToolExecutionError):
    """Raised when the object storage backend fails."""


class EmbeddingClientError(ToolExecutionError):
    """Raised when an embedding HTTP call fails."""


class EmbeddingExtractionError(ToolExecutionError):
    """Raised when an embedding response carries no usable vector."""


class VectorIndexError(ToolExecutionError):
    """Raised when the vector index call fails or returns an unexpected shape."""


__all__ = [
    "JsonRpcErrorCode",
    "ToolExecutionError",
    "ConfigurationError",
    "StorageError",
    "EmbeddingClientError",
    "EmbeddingExtractionError",
    "VectorIndexError",
]
