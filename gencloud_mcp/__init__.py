"""gencloud-qa-mcp: MCP/JSON-RPC tool server over R2, Workers AI and Vectorize."""

__version__ = "0.1.0"
