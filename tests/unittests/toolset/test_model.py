"""ToolSchema / ToolInfo 模型单元测试"""

from types import SimpleNamespace

import pytest

from agentrun_toolset.toolset.model import (
    ArraySchema,
    BooleanSchema,
    CompositeSchema,
    NullSchema,
    NumberSchema,
    ObjectSchema,
    SchemaKind,
    StringSchema,
    ToolInfo,
    ToolMeta,
    ToolSchema,
)
from agentrun_toolset.utils.exception import InvalidToolError


class TestToolSchema:

    def test_variants_by_type(self):
        cases = [
            ({"type": "object"}, ObjectSchema, SchemaKind.OBJECT),
            ({"type": "array"}, ArraySchema, SchemaKind.ARRAY),
            ({"type": "string"}, StringSchema, SchemaKind.STRING),
            ({"type": "number"}, NumberSchema, SchemaKind.NUMBER),
            ({"type": "integer"}, NumberSchema, SchemaKind.NUMBER),
            ({"type": "boolean"}, BooleanSchema, SchemaKind.BOOLEAN),
            ({"type": "null"}, NullSchema, SchemaKind.NULL),
            ({"anyOf": [{"type": "string"}]}, CompositeSchema, SchemaKind.COMPOSITE),
            ({"description": "anything"}, ToolSchema, SchemaKind.ANY),
            ({"type": ["string", "null"]}, ToolSchema, SchemaKind.ANY),
        ]
        for raw, expected_cls, kind in cases:
            parsed = ToolSchema.from_any_openapi_schema(raw)
            assert type(parsed) is expected_cls, raw
            assert parsed.kind == kind

    def test_non_dict_input_is_string(self):
        for raw in (None, "string", 1, ["a"]):
            parsed = ToolSchema.from_any_openapi_schema(raw)
            assert isinstance(parsed, StringSchema)
            assert parsed.to_json_schema() == {"type": "string"}

    def test_round_trip_is_lossless(self):
        raw = {
            "type": "object",
            "title": "Order",
            "description": "An order",
            "properties": {
                "id": {"type": "string", "pattern": "^o_", "minLength": 3},
                "tags": {
                    "type": "array",
                    "items": {"type": "string", "enum": ["a", "b"]},
                    "minItems": 0,
                    "maxItems": 5,
                },
                "price": {
                    "type": "number",
                    "minimum": 0,
                    "exclusiveMaximum": 100.5,
                    "default": 1.5,
                },
                "created": {"type": "string", "format": "date-time"},
                "meta": {
                    "type": "object",
                    "additionalProperties": {"type": "integer"},
                },
                "flag": {"type": "boolean", "default": False},
                "notes": {"anyOf": [{"type": "string"}, {"type": "null"}]},
                "shape": {
                    "oneOf": [{"type": "string"}, {"type": "integer"}],
                    "allOf": [{"description": "shape"}],
                },
                "nullable": {"type": ["string", "null"]},
            },
            "required": ["id"],
            "additionalProperties": False,
        }

        parsed = ToolSchema.from_any_openapi_schema(raw)
        assert parsed.to_json_schema() == raw

    def test_zero_and_empty_values_kept(self):
        raw = {
            "type": "array",
            "items": {"type": "integer", "minimum": 0, "default": 0},
            "minItems": 0,
            "default": [],
        }
        assert ToolSchema.from_any_openapi_schema(raw).to_json_schema() == raw

    def test_invalid_field_types_dropped(self):
        parsed = ToolSchema.from_any_openapi_schema({
            "type": "string",
            "minLength": "3",
            "maxLength": True,
            "required": ["a", 1, "a"],
        })
        assert parsed.min_length is None
        assert parsed.max_length is None
        assert parsed.required == ["a"]

    def test_unknown_keys_ignored(self):
        parsed = ToolSchema.from_any_openapi_schema(
            {"type": "string", "x-internal": True, "example": "x"}
        )
        assert parsed.to_json_schema() == {"type": "string"}

    def test_nested_variants(self):
        parsed = ToolSchema.from_any_openapi_schema({
            "type": "object",
            "properties": {"list": {"type": "array", "items": {"type": "integer"}}},
        })
        assert isinstance(parsed.properties["list"], ArraySchema)
        assert isinstance(parsed.properties["list"].items, NumberSchema)


class TestToolInfoFromMCPTool:

    def test_from_dict(self):
        tool = ToolInfo.from_mcp_tool({
            "name": "search",
            "description": "Search docs",
            "inputSchema": {
                "type": "object",
                "properties": {"q": {"type": "string"}},
                "required": ["q"],
            },
        })

        assert tool.name == "search"
        assert tool.description == "Search docs"
        assert tool.parameters.required == ["q"]
        assert tool.to_json_schema() == {
            "name": "search",
            "description": "Search docs",
            "parameters": {
                "type": "object",
                "properties": {"q": {"type": "string"}},
                "required": ["q"],
            },
        }

    def test_from_dict_snake_case_schema(self):
        tool = ToolInfo.from_mcp_tool(
            {"name": "a", "input_schema": {"type": "object", "properties": {}}}
        )
        assert tool.parameters.type == "object"

    def test_empty_input_schema_takes_precedence(self):
        snake_schema = {
            "type": "object",
            "properties": {"q": {"type": "string"}},
        }

        tool = ToolInfo.from_mcp_tool(
            {"name": "a", "inputSchema": {}, "input_schema": snake_schema}
        )
        assert not tool.parameters.properties

        tool = ToolInfo.from_mcp_tool(
            SimpleNamespace(
                name="a", inputSchema={}, input_schema=snake_schema
            )
        )
        assert not tool.parameters.properties

    def test_from_object(self):
        tool = ToolInfo.from_mcp_tool(
            SimpleNamespace(
                name="echo",
                description=None,
                inputSchema={"type": "object", "properties": {}},
            )
        )
        assert tool.name == "echo"
        assert tool.description is None
        assert tool.to_json_schema() == {
            "name": "echo",
            "parameters": {"type": "object", "properties": {}},
        }

    def test_from_record_model(self):
        meta = ToolMeta.model_validate({
            "name": "weather",
            "description": "Weather",
            "inputSchema": {
                "type": "object",
                "properties": {"city": {"type": "string"}},
            },
        })

        tool = ToolInfo.from_mcp_tool(meta)
        assert tool.name == "weather"
        assert "city" in tool.parameters.properties

    def test_from_mcp_sdk_tool(self):
        from mcp.types import Tool

        tool = ToolInfo.from_mcp_tool(
            Tool(
                name="sum",
                description="Add numbers",
                inputSchema={
                    "type": "object",
                    "properties": {"a": {"type": "number"}},
                },
            )
        )
        assert tool.name == "sum"
        assert isinstance(tool.parameters.properties["a"], NumberSchema)

    def test_tool_schema_input_is_copied(self):
        schema = ObjectSchema(type="object", properties={})
        tool = ToolInfo.from_mcp_tool({"name": "a", "inputSchema": schema})

        assert tool.parameters == schema
        assert tool.parameters is not schema

    def test_missing_schema_defaults_to_empty_object(self):
        tool = ToolInfo.from_mcp_tool({"name": "ping"})

        assert isinstance(tool.parameters, ObjectSchema)
        assert tool.parameters.to_json_schema() == {
            "type": "object",
            "properties": {},
        }

    @pytest.mark.parametrize(
        "tool, message",
        [
            (None, "MCP tool is required"),
            ({"description": "no name"}, "MCP tool must have a name"),
            ({"name": None}, "MCP tool must have a name"),
            ({"name": ""}, "MCP tool name must not be empty"),
            ({"name": 123}, "MCP tool name must be a string"),
            ("tool", "Unsupported MCP tool format: str"),
            (42, "Unsupported MCP tool format: int"),
            (SimpleNamespace(name=None), "MCP tool must have a name"),
        ],
    )
    def test_invalid_tools(self, tool, message):
        with pytest.raises(InvalidToolError) as exc_info:
            ToolInfo.from_mcp_tool(tool)
        assert str(exc_info.value) == message

    def test_from_mcp_tools_skips_invalid(self, caplog):
        tools = ToolInfo.from_mcp_tools([
            {"name": "a"},
            {"description": "broken"},
            None,
            {"name": "b"},
        ])

        assert [t.name for t in tools] == ["a", "b"]
        assert "Failed to parse MCP tool" in caplog.text

    def test_from_mcp_tools_single_and_empty(self):
        assert [t.name for t in ToolInfo.from_mcp_tools({"name": "a"})] == [
            "a"
        ]
        assert ToolInfo.from_mcp_tools(None) == []
        assert ToolInfo.from_mcp_tools([]) == []
