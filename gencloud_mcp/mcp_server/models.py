# MCP protocol models (serialized by alias to the MCP camelCase field names)

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field


class MCPTool(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    description: str
    input_schema: Dict[str, Any] = Field(alias="inputSchema")


class MCPToolsListResponse(BaseModel):
    tools: List[MCPTool]


class MCPServerInfo(BaseModel):
    name: str
    version: str


class MCPInitializeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    protocol_version: str = Field(alias="protocolVersion")
    capabilities: Dict[str, Any]
    server_info: MCPServerInfo = Field(alias="serverInfo")
    instructions: str


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class MCPToolCallResponse(BaseModel):
    content: List[TextContent]

    @classmethod
    def from_text(cls, text: str) -> "MCPToolCallResponse":
        return cls(content=[TextContent(text=text)])
