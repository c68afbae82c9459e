"""ToolSet 模型定义 / ToolSet Model Definitions

定义工具集相关的数据模型和枚举。
Defines data models and enumerations related to toolsets.
"""

from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type, Union

from pydash import get as pg

from agentrun_toolset.utils.exception import InvalidToolError
from agentrun_toolset.utils.log import logger
from agentrun_toolset.utils.model import BaseModel, Field


class SchemaType(str, Enum):
    """Schema 类型 / Schema Type"""

    MCP = "MCP"
    """MCP 协议 / MCP Protocol"""
    OpenAPI = "OpenAPI"
    """OpenAPI 规范 / OpenAPI Specification"""


class ToolSetStatusOutputsUrls(BaseModel):
    internet_url: Optional[str] = None
    intranet_url: Optional[str] = None


class MCPServerConfig(BaseModel):
    headers: Optional[Dict[str, str]] = None
    transport_type: Optional[str] = None
    url: Optional[str] = None


class ToolMeta(BaseModel):
    description: Optional[str] = None
    input_schema: Optional[Dict[str, Any]] = None
    name: Optional[str] = None


class OpenAPIToolMeta(BaseModel):
    method: Optional[str] = None
    path: Optional[str] = None
    tool_id: Optional[str] = None
    tool_name: Optional[str] = None


class ToolSetStatusOutputs(BaseModel):
    function_arn: Optional[str] = None
    mcp_server_config: Optional[MCPServerConfig] = None
    open_api_tools: Optional[List[OpenAPIToolMeta]] = None
    tools: Optional[List[ToolMeta]] = None
    urls: Optional[ToolSetStatusOutputsUrls] = None


class APIKeyAuthParameter(BaseModel):
    encrypted: Optional[bool] = None
    in_: Optional[str] = Field(alias="in", default=None)
    key: Optional[str] = None
    value: Optional[str] = None


class AuthorizationParameters(BaseModel):
    api_key_parameter: Optional[APIKeyAuthParameter] = None


class Authorization(BaseModel):
    parameters: Optional[AuthorizationParameters] = None
    type: Optional[str] = None


class ToolSetSchema(BaseModel):
    detail: Optional[str] = None
    type: Optional[SchemaType] = None


class ToolSetSpec(BaseModel):
    auth_config: Optional[Authorization] = None
    tool_schema: Optional[ToolSetSchema] = Field(alias="schema", default=None)


class ToolSetStatus(BaseModel):
    observed_generation: Optional[int] = None
    observed_time: Optional[str] = None
    outputs: Optional[ToolSetStatusOutputs] = None
    phase: Optional[str] = None
    status_reason: Optional[str] = None


class SchemaKind(str, Enum):
    """Schema 节点种类 / Kind of a schema node"""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    COMPOSITE = "composite"
    """仅由 anyOf / oneOf / allOf 描述的节点"""
    ANY = "any"
    """未声明单一类型的节点"""


Number = Union[int, float]


class ToolSchema(BaseModel):
    """JSON Schema 兼容的工具参数描述

    支持完整的 JSON Schema 字段，能够描述复杂的嵌套数据结构。

    ``from_any_openapi_schema`` 会按 ``type`` 返回对应的子类
    (``ObjectSchema``、``ArraySchema`` 等)，组合类型返回 ``CompositeSchema``。
    所有子类保留完整字段，保证与 JSON Schema 之间无损转换。
    """

    kind: ClassVar[SchemaKind] = SchemaKind.ANY

    # 基本字段
    type: Optional[Union[str, List[str]]] = None
    description: Optional[str] = None
    title: Optional[str] = None

    # 对象类型字段
    properties: Optional[Dict[str, "ToolSchema"]] = None
    required: Optional[List[str]] = None
    additional_properties: Optional[Union[bool, "ToolSchema"]] = None

    # 数组类型字段
    items: Optional["ToolSchema"] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None

    # 字符串类型字段
    pattern: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    format: Optional[str] = None  # date, date-time, email, uri 等
    enum: Optional[List[Any]] = None

    # 数值类型字段
    minimum: Optional[Number] = None
    maximum: Optional[Number] = None
    exclusive_minimum: Optional[Union[bool, Number]] = None
    exclusive_maximum: Optional[Union[bool, Number]] = None

    # 联合类型
    any_of: Optional[List["ToolSchema"]] = None
    one_of: Optional[List["ToolSchema"]] = None
    all_of: Optional[List["ToolSchema"]] = None

    # 默认值
    default: Optional[Any] = None

    @classmethod
    def from_any_openapi_schema(cls, schema: Any) -> "ToolSchema":
        """从任意 OpenAPI/JSON Schema 创建 ToolSchema

        递归解析所有嵌套结构，保留完整的 schema 信息。
        非字典输入按 ``{"type": "string"}`` 处理。
        """
        if not isinstance(schema, dict):
            return StringSchema(type="string")

        # 解析 properties
        properties_raw = pg(schema, "properties")
        properties = (
            {
                str(key): ToolSchema.from_any_openapi_schema(value)
                for key, value in properties_raw.items()
            }
            if isinstance(properties_raw, dict)
            else None
        )

        # 解析 items
        items_raw = pg(schema, "items")
        items = (
            ToolSchema.from_any_openapi_schema(items_raw)
            if isinstance(items_raw, dict)
            else None
        )

        additional_raw = pg(schema, "additionalProperties")
        if isinstance(additional_raw, dict):
            additional_properties: Any = ToolSchema.from_any_openapi_schema(
                additional_raw
            )
        elif isinstance(additional_raw, bool):
            additional_properties = additional_raw
        else:
            additional_properties = None

        required_raw = pg(schema, "required")
        required = None
        if isinstance(required_raw, list):
            required = []
            for name in required_raw:
                if isinstance(name, str) and name not in required:
                    required.append(name)

        fields: Dict[str, Any] = {
            # 基本字段
            "type": _pick(schema, "type", (str, list)),
            "description": _pick(schema, "description", str),
            "title": _pick(schema, "title", str),
            # 对象类型
            "properties": properties,
            "required": required,
            "additional_properties": additional_properties,
            # 数组类型
            "items": items,
            "min_items": _pick(schema, "minItems", int),
            "max_items": _pick(schema, "maxItems", int),
            # 字符串类型
            "pattern": _pick(schema, "pattern", str),
            "min_length": _pick(schema, "minLength", int),
            "max_length": _pick(schema, "maxLength", int),
            "format": _pick(schema, "format", str),
            "enum": _pick(schema, "enum", list),
            # 数值类型
            "minimum": _pick(schema, "minimum", (int, float)),
            "maximum": _pick(schema, "maximum", (int, float)),
            "exclusive_minimum": _pick(
                schema, "exclusiveMinimum", (bool, int, float)
            ),
            "exclusive_maximum": _pick(
                schema, "exclusiveMaximum", (bool, int, float)
            ),
            # 联合类型
            "any_of": _parse_list(schema, "anyOf"),
            "one_of": _parse_list(schema, "oneOf"),
            "all_of": _parse_list(schema, "allOf"),
            # 默认值
            "default": schema.get("default"),
        }

        if isinstance(fields["type"], list) and not all(
            isinstance(t, str) for t in fields["type"]
        ):
            fields["type"] = None

        return _variant_for(fields)(**fields)

    def to_json_schema(self) -> Dict[str, Any]:
        """转换为标准 JSON Schema 格式"""
        result: Dict[str, Any] = {}

        # 基本字段
        if self.type is not None:
            result["type"] = (
                list(self.type) if isinstance(self.type, list) else self.type
            )
        if self.description is not None:
            result["description"] = self.description
        if self.title is not None:
            result["title"] = self.title

        # 对象类型
        if self.properties is not None:
            result["properties"] = {
                k: v.to_json_schema() for k, v in self.properties.items()
            }
        if self.required is not None:
            result["required"] = list(self.required)
        if isinstance(self.additional_properties, ToolSchema):
            result["additionalProperties"] = (
                self.additional_properties.to_json_schema()
            )
        elif self.additional_properties is not None:
            result["additionalProperties"] = self.additional_properties

        # 数组类型
        if self.items is not None:
            result["items"] = self.items.to_json_schema()
        if self.min_items is not None:
            result["minItems"] = self.min_items
        if self.max_items is not None:
            result["maxItems"] = self.max_items

        # 字符串类型
        if self.pattern is not None:
            result["pattern"] = self.pattern
        if self.min_length is not None:
            result["minLength"] = self.min_length
        if self.max_length is not None:
            result["maxLength"] = self.max_length
        if self.format is not None:
            result["format"] = self.format
        if self.enum is not None:
            result["enum"] = list(self.enum)

        # 数值类型
        if self.minimum is not None:
            result["minimum"] = self.minimum
        if self.maximum is not None:
            result["maximum"] = self.maximum
        if self.exclusive_minimum is not None:
            result["exclusiveMinimum"] = self.exclusive_minimum
        if self.exclusive_maximum is not None:
            result["exclusiveMaximum"] = self.exclusive_maximum

        # 联合类型
        if self.any_of is not None:
            result["anyOf"] = [s.to_json_schema() for s in self.any_of]
        if self.one_of is not None:
            result["oneOf"] = [s.to_json_schema() for s in self.one_of]
        if self.all_of is not None:
            result["allOf"] = [s.to_json_schema() for s in self.all_of]

        # 默认值
        if self.default is not None:
            result["default"] = self.default

        return result


class ObjectSchema(ToolSchema):
    kind: ClassVar[SchemaKind] = SchemaKind.OBJECT


class ArraySchema(ToolSchema):
    kind: ClassVar[SchemaKind] = SchemaKind.ARRAY


class StringSchema(ToolSchema):
    kind: ClassVar[SchemaKind] = SchemaKind.STRING


class NumberSchema(ToolSchema):
    """number 与 integer"""

    kind: ClassVar[SchemaKind] = SchemaKind.NUMBER


class BooleanSchema(ToolSchema):
    kind: ClassVar[SchemaKind] = SchemaKind.BOOLEAN


class NullSchema(ToolSchema):
    kind: ClassVar[SchemaKind] = SchemaKind.NULL


class CompositeSchema(ToolSchema):
    """没有单一 type、由 anyOf / oneOf / allOf 组合而成的节点"""

    kind: ClassVar[SchemaKind] = SchemaKind.COMPOSITE


_VARIANTS: Dict[str, Type[ToolSchema]] = {
    "object": ObjectSchema,
    "array": ArraySchema,
    "string": StringSchema,
    "number": NumberSchema,
    "integer": NumberSchema,
    "boolean": BooleanSchema,
    "null": NullSchema,
}


def _variant_for(fields: Dict[str, Any]) -> Type[ToolSchema]:
    schema_type = fields.get("type")
    if isinstance(schema_type, str):
        return _VARIANTS.get(schema_type, ToolSchema)
    if schema_type is None and (
        fields.get("any_of") or fields.get("one_of") or fields.get("all_of")
    ):
        return CompositeSchema
    return ToolSchema


def _pick(
    schema: Dict[str, Any],
    key: str,
    types: Union[type, Tuple[type, ...]],
) -> Any:
    value = schema.get(key)
    types = types if isinstance(types, tuple) else (types,)
    # bool 是 int 的子类，只有显式声明时才接受
    if isinstance(value, bool) and bool not in types:
        return None
    return value if isinstance(value, types) else None


def _parse_list(
    schema: Dict[str, Any], key: str
) -> Optional[List[ToolSchema]]:
    raw = schema.get(key)
    if not isinstance(raw, list):
        return None
    return [ToolSchema.from_any_openapi_schema(s) for s in raw]


class ToolInfo(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    parameters: Optional[ToolSchema] = None

    @classmethod
    def from_mcp_tool(cls, tool: Any) -> "ToolInfo":
        """从 MCP tool 创建 ToolInfo

        支持 MCP SDK 的 Tool 对象以及字典格式，字段名兼容
        ``inputSchema`` 与 ``input_schema`` 两种写法。

        Raises:
            InvalidToolError: tool 为空、格式不支持、缺少 name 或 name 为空
        """
        if tool is None:
            raise InvalidToolError("MCP tool is required")

        if isinstance(tool, dict):
            # 字典格式
            if "name" not in tool or tool.get("name") is None:
                raise InvalidToolError("MCP tool must have a name")
            tool_name = tool.get("name")
            tool_description = tool.get("description")
            input_schema = tool.get("inputSchema")
            if input_schema is None:
                input_schema = tool.get("input_schema")
        elif not isinstance(tool, (str, bytes)) and hasattr(tool, "name"):
            # MCP Tool 对象
            tool_name = tool.name
            if tool_name is None:
                raise InvalidToolError("MCP tool must have a name")
            tool_description = getattr(tool, "description", None)
            input_schema = getattr(tool, "inputSchema", None)
            if input_schema is None:
                input_schema = getattr(tool, "input_schema", None)
        else:
            raise InvalidToolError(
                f"Unsupported MCP tool format: {type(tool).__name__}"
            )

        if not isinstance(tool_name, str):
            raise InvalidToolError(
                "MCP tool name must be a string",
                name_type=type(tool_name).__name__,
            )
        if tool_name == "":
            raise InvalidToolError("MCP tool name must not be empty")

        # 构建 parameters schema
        parameters = None
        if isinstance(input_schema, ToolSchema):
            parameters = input_schema.model_copy(deep=True)
        elif isinstance(input_schema, dict):
            parameters = ToolSchema.from_any_openapi_schema(input_schema)
        elif hasattr(input_schema, "model_dump"):
            parameters = ToolSchema.from_any_openapi_schema(
                input_schema.model_dump(by_alias=True, exclude_none=True)
            )

        return cls(
            name=tool_name,
            description=tool_description,
            parameters=parameters or ObjectSchema(type="object", properties={}),
        )

    @classmethod
    def from_mcp_tools(cls, tools: Any) -> List["ToolInfo"]:
        """批量解析 MCP tools，单个工具解析失败时记录警告并跳过

        ``tools`` 可以是单个工具或工具列表。
        """
        if not tools:
            return []
        if not isinstance(tools, (list, tuple)):
            tools = [tools]

        tool_infos = []
        for tool in tools:
            try:
                tool_infos.append(cls.from_mcp_tool(tool))
            except (InvalidToolError, ValueError) as e:
                logger.warning("Failed to parse MCP tool %r: %s", tool, e)
        return tool_infos

    def to_json_schema(self) -> Dict[str, Any]:
        """转换为 function calling 使用的工具描述"""
        result: Dict[str, Any] = {"name": self.name}
        if self.description is not None:
            result["description"] = self.description
        result["parameters"] = (
            self.parameters.to_json_schema()
            if self.parameters is not None
            else {"type": "object", "properties": {}}
        )
        return result
