from prometheus_client import REGISTRY

from gencloud_mcp.shared.observability import get_metrics


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_tool_calls_are_counted(call_tool):
    before = sample("mcp_tool_calls_total", tool_name="read_r2_file", status="success")

    call_tool("read_r2_file", {"path": "readme.txt"})

    after = sample("mcp_tool_calls_total", tool_name="read_r2_file", status="success")
    assert after == before + 1


def test_jsonrpc_errors_are_counted_by_code(rpc):
    before = sample("jsonrpc_errors_total", code="-32601")

    rpc("resources/list")

    assert sample("jsonrpc_errors_total", code="-32601") == before + 1


def test_http_requests_are_counted(client):
    before = sample("http_requests_total", method="GET", status="200")

    client.get("/")

    assert sample("http_requests_total", method="GET", status="200") == before + 1


def test_exposition_format():
    assert b"mcp_tool_calls_total" in get_metrics()


def test_tool_spans_with_tracing_enabled(settings, collaborators):
    from fastapi.testclient import TestClient

    from gencloud_mcp.mcp_server.main import create_app
    from gencloud_mcp.shared.config import Config

    app = create_app(config=Config(), settings=settings, collaborators=collaborators)

    with TestClient(app) as client:
        body = client.post(
            "/",
            json={
                "jsonrpc": "2.0",
                "id": 1,
                "method": "tools/call",
                "params": {"name": "read_r2_file", "arguments": {"path": "readme.txt"}},
            },
        ).json()

    assert body["result"]["content"][0]["text"] == "hello from the bucket root"
