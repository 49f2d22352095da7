"""
Response envelope builders.

Three wire shapes leave this server, always with HTTP 200:

* JSON-RPC result  ``{"jsonrpc": "2.0", "id": ..., "result": ...}``
* JSON-RPC error   ``{"jsonrpc": "2.0", "id": ..., "error": {"code", "message"}}``
* legacy content   ``{"content": [{"type": "text", "text": ...}]}``

Protocol failures are reported inside the body so a JSON client can always
inspect them; HTTP status codes are never used for them.
"""

import json
from typing import Any, Dict

from starlette.responses import JSONResponse, PlainTextResponse

from gencloud_mcp.shared.errors import JsonRpcErrorCode
from gencloud_mcp.shared.observability.metrics import jsonrpc_errors_total

from .models import MCPToolCallResponse

JSONRPC_VERSION = "2.0"


class _AbsentId:
    """Marks a request that carried no ``id`` member; the response omits it too."""

    def __repr__(self) -> str:
        return "ID_ABSENT"


ID_ABSENT: Any = _AbsentId()


def _envelope(request_id: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"jsonrpc": JSONRPC_VERSION}
    if request_id is not ID_ABSENT:
        body["id"] = request_id
    return body


def jsonrpc_result_body(request_id: Any, result: Any) -> Dict[str, Any]:
    body = _envelope(request_id)
    body["result"] = result
    return body


def jsonrpc_error_body(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    body = _envelope(request_id)
    body["error"] = {"code": int(code), "message": message}
    return body


def jsonrpc_result(request_id: Any, result: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(jsonrpc_result_body(request_id, result), status_code=status_code)


def jsonrpc_error(
    request_id: Any, code: JsonRpcErrorCode, message: str, status_code: int = 200
) -> JSONResponse:
    jsonrpc_errors_total.labels(code=str(int(code))).inc()
    return JSONResponse(
        jsonrpc_error_body(request_id, code, message), status_code=status_code
    )


def display_value(value: Any) -> str:
    """Render a request value for message text as it looked on the wire (None is null)."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def text_result(text: str) -> Dict[str, Any]:
    """Tool output as an MCP content block list."""
    return MCPToolCallResponse.from_text(text).model_dump()


def legacy_content(text: str, status_code: int = 200) -> JSONResponse:
    return JSONResponse(text_result(text), status_code=status_code)


def plain_text(text: str, status_code: int = 200) -> PlainTextResponse:
    return PlainTextResponse(text, status_code=status_code)


__all__ = [
    "ID_ABSENT",
    "JSONRPC_VERSION",
    "jsonrpc_result",
    "jsonrpc_error",
    "jsonrpc_result_body",
    "jsonrpc_error_body",
    "text_result",
    "display_value",
    "legacy_content",
    "plain_text",
]
