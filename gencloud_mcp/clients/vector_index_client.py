"""
Vector index clients.

Both clients return the raw query response as a mapping with a match
list under ``matches`` (``{"matches": [{"id", "score", "metadata"}]}``).
Shape validation happens in the search adapter, not here.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
from qdrant_client import AsyncQdrantClient

from gencloud_mcp.shared.config import CLOUDFLARE_API_BASE_URL
from gencloud_mcp.shared.errors import VectorIndexError
from gencloud_mcp.shared.observability import get_logger
from gencloud_mcp.shared.observability.metrics import vector_query_total

logger = get_logger(__name__)


class VectorizeIndexClient:
    """Cloudflare Vectorize (v2) index queried over the REST API."""

    backend = "vectorize"

    def __init__(
        self,
        account_id: str,
        api_token: str,
        index_name: str,
        base_url: str = CLOUDFLARE_API_BASE_URL,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.index_name = index_name
        self._url = (
            f"{base_url.rstrip('/')}/accounts/{account_id}"
            f"/vectorize/v2/indexes/{index_name}/query"
        )
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

    async def aclose(self) -> None:
        await self._client.aclose()

    async def query(self, vector: List[float], top_k: int) -> Any:
        payload = {
            "vector": vector,
            "topK": top_k,
            "returnMetadata": "all",
            "returnValues": False,
        }
        try:
            response = await self._client.post(
                self._url, json=payload, headers=self._headers
            )
        except httpx.HTTPError as e:
            vector_query_total.labels(backend=self.backend, status="error").inc()
            raise VectorIndexError(f"Vectorize request failed: {e}") from e

        if response.status_code != 200:
            vector_query_total.labels(backend=self.backend, status="error").inc()
            raise VectorIndexError(
                f"Vectorize HTTP {response.status_code}: {response.text}"
            )

        try:
            body = response.json()
        except ValueError as e:
            vector_query_total.labels(backend=self.backend, status="error").inc()
            raise VectorIndexError("Vectorize returned a non-JSON body") from e

        if isinstance(body, dict) and body.get("success") is False:
            vector_query_total.labels(backend=self.backend, status="error").inc()
            raise VectorIndexError(f"Vectorize error: {body.get('errors')}")

        vector_query_total.labels(backend=self.backend, status="success").inc()
        if isinstance(body, dict) and "result" in body:
            return body["result"]
        return body


class QdrantIndexClient:
    """Qdrant collection queried with ``query_points``."""

    backend = "qdrant"

    def __init__(
        self,
        collection_name: str,
        *,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        client: Any = None,
    ) -> None:
        self.collection_name = collection_name
        self._client = client or AsyncQdrantClient(
            url=url, api_key=api_key, timeout=int(timeout)
        )

    async def aclose(self) -> None:
        await self._client.close()

    async def query(self, vector: List[float], top_k: int) -> Dict[str, Any]:
        try:
            response = await self._client.query_points(
                collection_name=self.collection_name,
                query=vector,
                limit=top_k,
                with_payload=True,
            )
        except Exception as e:
            vector_query_total.labels(backend=self.backend, status="error").inc()
            logger.error(
                "Qdrant query failed",
                collection=self.collection_name,
                error=str(e),
            )
            raise VectorIndexError(f"Qdrant query failed: {e}") from e

        vector_query_total.labels(backend=self.backend, status="success").inc()
        return {
            "matches": [
                {
                    "id": str(point.id),
                    "score": point.score,
                    "metadata": point.payload or {},
                }
                for point in response.points
            ]
        }


__all__ = ["VectorizeIndexClient", "QdrantIndexClient"]
