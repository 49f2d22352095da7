# Shared fixtures: in-memory collaborators injected into the app

from datetime import datetime, timezone
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

from gencloud_mcp.clients import Collaborators, StorageObject, StoredFile
from gencloud_mcp.mcp_server.main import create_app
from gencloud_mcp.shared.config import Config, MonitoringConfig, Settings


class FakeStorage:
    """Object storage backed by a dict of key -> (body, last_modified)."""

    def __init__(self, objects: Optional[Dict[str, Any]] = None):
        self.objects = objects or {}
        self.listed_prefixes: List[str] = []
        self.fetched_keys: List[str] = []
        self.fail_with: Optional[Exception] = None

    async def list(self, prefix: str) -> List[StorageObject]:
        self.listed_prefixes.append(prefix)
        if self.fail_with:
            raise self.fail_with
        return [
            StorageObject(key=key, size=len(body), last_modified=modified)
            for key, (body, modified) in sorted(self.objects.items())
            if key.startswith(prefix)
        ]

    async def get(self, key: str) -> Optional[StoredFile]:
        self.fetched_keys.append(key)
        if self.fail_with:
            raise self.fail_with
        if key not in self.objects:
            return None
        body, _ = self.objects[key]
        return StoredFile(key=key, body=body)


class FakeEmbedder:
    def __init__(self, response: Any = None):
        self.response = response if response is not None else {"shape": [1, 2], "data": [[0.1, 0.2]]}
        self.calls: List[tuple] = []

    async def run(self, model_id: str, inputs: Dict[str, Any]) -> Any:
        self.calls.append((model_id, inputs))
        return self.response


class FakeVectorIndex:
    def __init__(self, response: Any = None):
        self.response = response if response is not None else {
            "matches": [
                {"id": "a", "score": 0.9, "metadata": {"source": "s", "text": "t"}}
            ]
        }
        self.calls: List[tuple] = []

    async def query(self, vector: List[float], top_k: int) -> Any:
        self.calls.append((vector, top_k))
        return self.response


@pytest.fixture
def storage() -> FakeStorage:
    modified = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc).isoformat()
    return FakeStorage(
        {
            "readme.txt": (b"hello from the bucket root", None),
            "logs/2025/app.log": (b"line one\nline two\n", modified),
            "logs/2025/err.log": (b"boom", modified),
            "logsarchive/old.log": (b"old", None),
        }
    )


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def vector_index() -> FakeVectorIndex:
    return FakeVectorIndex()


@pytest.fixture
def collaborators(storage, embedder, vector_index) -> Collaborators:
    return Collaborators(storage=storage, embedder=embedder, vector_index=vector_index)


@pytest.fixture
def config() -> Config:
    return Config(monitoring=MonitoringConfig(tracing_enabled=False))


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def app(config, settings, collaborators):
    return create_app(config=config, settings=settings, collaborators=collaborators)


@pytest.fixture
def client(app) -> Generator:
    """Get FastAPI test client"""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def rpc(client):
    """POST a JSON-RPC 2.0 request and return the decoded response body."""

    def _call(method: str, params: Any = None, request_id: Any = 1) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            payload["params"] = params
        response = client.post("/", json=payload)
        assert response.status_code == 200
        return response.json()

    return _call


@pytest.fixture
def call_tool(rpc):
    """Invoke a tool over MCP and return the text of its first content block."""

    def _call(name: str, arguments: Optional[Dict[str, Any]] = None) -> str:
        params: Dict[str, Any] = {"name": name}
        if arguments is not None:
            params["arguments"] = arguments
        body = rpc("tools/call", params)
        assert "error" not in body, body
        return body["result"]["content"][0]["text"]

    return _call


@pytest.fixture
def call_legacy(client):
    """Invoke a tool through the legacy flat call shape and return its text."""

    def _call(method: Any, params: Any = None) -> str:
        payload: Dict[str, Any] = {"method": method}
        if params is not None:
            payload["params"] = params
        response = client.post("/", json=payload)
        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"content"}, body
        return body["content"][0]["text"]

    return _call
