from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from gencloud_mcp.shared.config import CLOUDFLARE_API_BASE_URL
from gencloud_mcp.shared.errors import EmbeddingClientError
from gencloud_mcp.shared.observability import get_logger
from gencloud_mcp.shared.observability.metrics import embedding_request_total

logger = get_logger(__name__)


def _error_body(response: httpx.Response) -> str:
    try:
        return response.text
    except Exception:
        return "<unavailable>"


class WorkersAIEmbeddingClient:
    """Client for Cloudflare Workers AI text embedding models.

    ``run`` mirrors the Workers AI binding: it posts the model inputs to
    ``/accounts/{account_id}/ai/run/{model}`` and returns the unwrapped
    ``result`` object (``{"shape": [...], "data": [[...]]}`` for embedding
    models). The shape of ``result`` is not validated here.
    """

    def __init__(
        self,
        account_id: str,
        api_token: str,
        base_url: str = CLOUDFLARE_API_BASE_URL,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._account_id = account_id
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

    async def aclose(self) -> None:
        await self._client.aclose()

    async def run(self, model_id: str, inputs: Dict[str, Any]) -> Any:
        url = f"{self._base_url}/accounts/{self._account_id}/ai/run/{model_id}"
        try:
            response = await self._client.post(url, json=inputs, headers=self._headers)
        except httpx.HTTPError as e:
            embedding_request_total.labels(model_id=model_id, status="error").inc()
            raise EmbeddingClientError(f"Workers AI request failed: {e}") from e

        if response.status_code != 200:
            embedding_request_total.labels(model_id=model_id, status="error").inc()
            raise EmbeddingClientError(
                f"Workers AI HTTP {response.status_code}: {_error_body(response)}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            embedding_request_total.labels(model_id=model_id, status="error").inc()
            raise EmbeddingClientError("Workers AI returned a non-JSON body") from e

        if isinstance(payload, dict) and payload.get("success") is False:
            embedding_request_total.labels(model_id=model_id, status="error").inc()
            raise EmbeddingClientError(f"Workers AI error: {payload.get('errors')}")

        embedding_request_total.labels(model_id=model_id, status="success").inc()
        if isinstance(payload, dict) and "result" in payload:
            return payload["result"]
        return payload


class OpenAICompatibleEmbeddingClient:
    """Client for an OpenAI-compatible ``/v1/embeddings`` service.

    Responses are reshaped to the Workers AI layout (``{"data": [[...]]}``)
    so the search path treats both providers the same way.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url, timeout=timeout
        )
        self._headers = {"Content-Type": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def run(self, model_id: str, inputs: Dict[str, Any]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model_id,
            "input": inputs.get("text", []),
            "encoding_format": "float",
        }
        try:
            response = await self._client.post(
                "/v1/embeddings", json=payload, headers=self._headers
            )
        except httpx.HTTPError as e:
            embedding_request_total.labels(model_id=model_id, status="error").inc()
            raise EmbeddingClientError(f"Embedding request failed: {e}") from e

        if response.status_code != 200:
            embedding_request_total.labels(model_id=model_id, status="error").inc()
            raise EmbeddingClientError(
                f"Embedding service HTTP {response.status_code}: {_error_body(response)}"
            )

        try:
            body = response.json()
        except ValueError as e:
            embedding_request_total.labels(model_id=model_id, status="error").inc()
            raise EmbeddingClientError("Embedding service returned a non-JSON body") from e

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            embedding_request_total.labels(model_id=model_id, status="error").inc()
            raise EmbeddingClientError("Unexpected embedding service response: no data list")

        embedding_request_total.labels(model_id=model_id, status="success").inc()
        vectors: List[Any] = [item.get("embedding") for item in data]
        return {"data": vectors}


__all__ = ["WorkersAIEmbeddingClient", "OpenAICompatibleEmbeddingClient"]
