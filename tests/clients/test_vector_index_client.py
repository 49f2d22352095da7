import json
from types import SimpleNamespace

import httpx
import pytest

from gencloud_mcp.clients.vector_index_client import (
    QdrantIndexClient,
    VectorizeIndexClient,
)
from gencloud_mcp.shared.errors import VectorIndexError


def make_vectorize(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return VectorizeIndexClient(
        "acct", "token", "docs-index", base_url="https://cf.test/client/v4", client=client
    )


@pytest.mark.asyncio
async def test_vectorize_query_request_and_result():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "success": True,
                "result": {
                    "count": 1,
                    "matches": [{"id": "v1", "score": 0.7, "metadata": {"text": "t"}}],
                },
            },
        )

    index = make_vectorize(handler)
    result = await index.query([0.1, 0.2], top_k=4)

    assert result["matches"][0]["id"] == "v1"
    assert seen["url"] == (
        "https://cf.test/client/v4/accounts/acct/vectorize/v2/indexes/docs-index/query"
    )
    assert seen["body"] == {
        "vector": [0.1, 0.2],
        "topK": 4,
        "returnMetadata": "all",
        "returnValues": False,
    }


@pytest.mark.asyncio
async def test_vectorize_http_error():
    index = make_vectorize(lambda request: httpx.Response(404, text="index not found"))

    with pytest.raises(VectorIndexError, match="HTTP 404"):
        await index.query([0.1], top_k=1)


@pytest.mark.asyncio
async def test_vectorize_unsuccessful_envelope():
    index = make_vectorize(
        lambda request: httpx.Response(200, json={"success": False, "errors": ["bad dims"]})
    )

    with pytest.raises(VectorIndexError, match="bad dims"):
        await index.query([0.1], top_k=1)


class FakeQdrant:
    def __init__(self, points=None, error=None):
        self.points = points or []
        self.error = error
        self.kwargs = None

    async def query_points(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return SimpleNamespace(points=self.points)

    async def close(self):
        pass


@pytest.mark.asyncio
async def test_qdrant_maps_points_to_matches():
    fake = FakeQdrant(
        [
            SimpleNamespace(id=7, score=0.8, payload={"source": "a.md", "text": "x"}),
            SimpleNamespace(id="uuid-1", score=0.6, payload=None),
        ]
    )
    index = QdrantIndexClient("docs", client=fake)

    result = await index.query([0.3, 0.4], top_k=2)

    assert result == {
        "matches": [
            {"id": "7", "score": 0.8, "metadata": {"source": "a.md", "text": "x"}},
            {"id": "uuid-1", "score": 0.6, "metadata": {}},
        ]
    }
    assert fake.kwargs == {
        "collection_name": "docs",
        "query": [0.3, 0.4],
        "limit": 2,
        "with_payload": True,
    }


@pytest.mark.asyncio
async def test_qdrant_failure_is_wrapped():
    index = QdrantIndexClient("docs", client=FakeQdrant(error=RuntimeError("timeout")))

    with pytest.raises(VectorIndexError, match="timeout"):
        await index.query([0.3], top_k=1)
