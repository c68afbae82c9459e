"""ToolSet 单元测试"""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import respx

from agentrun_toolset.toolset.model import SchemaType
from agentrun_toolset.toolset.toolset import ToolSet
from agentrun_toolset.utils.config import Config
from agentrun_toolset.utils.exception import AgentRunError

OPENAPI_DETAIL = json.dumps({
    "openapi": "3.0.0",
    "servers": [{"url": "https://from-doc.example.com"}],
    "paths": {
        "/weather": {
            "get": {
                "operationId": "getWeather",
                "summary": "Get weather",
                "parameters": [
                    {"name": "city", "in": "query", "required": True}
                ],
            }
        }
    },
})


def _openapi_toolset(**overrides) -> ToolSet:
    data = {
        "name": "weather-tools",
        "spec": {
            "schema": {"type": "OpenAPI", "detail": OPENAPI_DETAIL},
            "authConfig": {
                "type": "APIKey",
                "parameters": {
                    "apiKeyParameter": {
                        "in": "header",
                        "key": "X-Api-Key",
                        "value": "secret-key",
                    }
                },
            },
        },
        "status": {
            "outputs": {
                "urls": {
                    "internetUrl": "https://internet.example.com",
                    "intranetUrl": "https://intranet.example.com",
                },
                "openApiTools": [{
                    "toolId": "tool-123",
                    "toolName": "getWeather",
                    "method": "GET",
                    "path": "/weather",
                }],
            }
        },
    }
    data.update(overrides)
    return ToolSet.from_inner_object(data)


def _mcp_toolset(url="http://mcp.example.com/sse") -> ToolSet:
    return ToolSet.model_validate({
        "name": "mcp-tools",
        "spec": {"schema": {"type": "MCP"}},
        "status": {
            "outputs": {
                "mcpServerConfig": {
                    "url": url,
                    "headers": {"Authorization": "Bearer t"},
                    "transportType": "streamable-http",
                },
                "tools": [
                    {
                        "name": "echo",
                        "description": "Echo input",
                        "inputSchema": {
                            "type": "object",
                            "properties": {"msg": {"type": "string"}},
                        },
                    },
                    {"description": "no name"},
                ],
            }
        },
    })


class TestToolSetModel:

    def test_record_round_trip(self):
        toolset = _openapi_toolset()

        data = toolset.to_map()
        assert data["spec"]["schema"]["type"] == "OpenAPI"
        assert data["spec"]["authConfig"]["parameters"]["apiKeyParameter"][
            "in"
        ] == "header"
        assert data["status"]["outputs"]["openApiTools"][0]["toolId"] == (
            "tool-123"
        )
        assert ToolSet.from_inner_object(toolset) is toolset
        assert ToolSet.from_inner_object(data) == toolset

    def test_type(self):
        assert _openapi_toolset().type() == SchemaType.OpenAPI
        assert _mcp_toolset().type() == SchemaType.MCP
        assert ToolSet().type() is None

    def test_auth_defaults_header(self):
        headers, query = _openapi_toolset()._get_openapi_auth_defaults()
        assert headers == {"X-Api-Key": "secret-key"}
        assert query == {}

    def test_auth_defaults_query(self):
        toolset = _openapi_toolset()
        toolset.spec.auth_config.parameters.api_key_parameter.in_ = "query"

        headers, query = toolset._get_openapi_auth_defaults()
        assert headers == {}
        assert query == {"X-Api-Key": "secret-key"}

    def test_auth_defaults_other_type(self):
        toolset = _openapi_toolset()
        toolset.spec.auth_config.type = "Anonymous"
        assert toolset._get_openapi_auth_defaults() == ({}, {})

    def test_base_url_prefers_intranet(self):
        toolset = _openapi_toolset()
        assert toolset._get_openapi_base_url() == "https://intranet.example.com"

        toolset.status.outputs.urls.intranet_url = None
        assert toolset._get_openapi_base_url() == "https://internet.example.com"

        toolset.status.outputs.urls = None
        assert toolset._get_openapi_base_url() is None


class TestToolSetToApiSet:

    def test_openapi(self):
        apiset = _openapi_toolset().to_apiset()

        tool = apiset.get_tool("getWeather")
        assert tool.description == "Get weather"
        assert tool.parameters.required == ["city"]

    def test_mcp_uses_factory(self):
        factory = MagicMock()
        apiset = _mcp_toolset().to_apiset(
            config=Config(timeout=9), mcp_client_factory=factory
        )

        assert [t.name for t in apiset.tools()] == ["echo"]
        url, config, transport_type = factory.call_args.args
        assert url == "http://mcp.example.com/sse"
        assert config.get_headers() == {"Authorization": "Bearer t"}
        assert config.get_timeout() == 9
        assert transport_type == "streamable-http"

    def test_mcp_without_url(self):
        with pytest.raises(AgentRunError) as exc_info:
            _mcp_toolset(url=None).to_apiset(mcp_client_factory=MagicMock())
        assert "MCP server URL is missing" in str(exc_info.value)

    def test_unsupported_type(self):
        with pytest.raises(AgentRunError):
            ToolSet(name="empty").to_apiset()


class TestToolSetTools:

    def test_resolve_tool_name(self):
        toolset = _openapi_toolset()
        apiset = toolset.to_apiset()

        assert toolset.resolve_tool_name("getWeather", apiset) == "getWeather"
        assert toolset.resolve_tool_name("tool-123", apiset) == "getWeather"
        assert toolset.resolve_tool_name("unknown", apiset) == "unknown"

    @pytest.mark.asyncio
    async def test_list_tools_openapi(self):
        tools = await _openapi_toolset().list_tools_async()
        assert [t.name for t in tools] == ["getWeather"]

    @pytest.mark.asyncio
    async def test_list_tools_mcp_without_connection(self):
        tools = await _mcp_toolset().list_tools_async()

        assert [t.name for t in tools] == ["echo"]
        assert tools[0].parameters.properties["msg"].type == "string"

    @pytest.mark.asyncio
    async def test_list_tools_unknown_type(self):
        assert await ToolSet().list_tools_async() == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_call_tool_openapi_by_tool_id(self):
        route = respx.get("https://intranet.example.com/weather").mock(
            return_value=httpx.Response(200, json={"temp": 21})
        )

        result = await _openapi_toolset().call_tool_async(
            "tool-123", {"city": "Hangzhou"}
        )

        assert route.called
        request = route.calls.last.request
        assert request.headers["X-Api-Key"] == "secret-key"
        assert request.url.params["city"] == "Hangzhou"
        assert result["body"] == {"temp": 21}

    @pytest.mark.asyncio
    async def test_call_tool_mcp(self):
        client = AsyncMock()
        client.call_tool_async.return_value = [{"type": "text", "text": "hi"}]

        result = await _mcp_toolset().call_tool_async(
            "echo",
            {"msg": "hi"},
            mcp_client_factory=lambda url, config, transport: client,
        )

        assert result == [{"type": "text", "text": "hi"}]
        name, arguments, _ = client.call_tool_async.call_args.args
        assert (name, arguments) == ("echo", {"msg": "hi"})
