"""AgentRun ToolSet 模块 / AgentRun ToolSet Module

提供工具集的解析与调用功能，统一 OpenAPI 与 MCP 两种工具。"""

from .api import ApiSet, MCPToolInvoker, OpenAPI, ToolInvoker
from .model import (
    APIKeyAuthParameter,
    ArraySchema,
    Authorization,
    AuthorizationParameters,
    BooleanSchema,
    CompositeSchema,
    MCPServerConfig,
    NullSchema,
    NumberSchema,
    ObjectSchema,
    OpenAPIToolMeta,
    SchemaKind,
    SchemaType,
    StringSchema,
    ToolInfo,
    ToolMeta,
    ToolSchema,
    ToolSetSchema,
    ToolSetSpec,
    ToolSetStatus,
    ToolSetStatusOutputs,
    ToolSetStatusOutputsUrls,
)
from .toolset import ToolSet

__all__ = [
    "ToolSet",
    "ApiSet",
    "OpenAPI",
    "ToolInvoker",
    "MCPToolInvoker",
    # 工具描述
    "ToolInfo",
    "ToolSchema",
    "SchemaKind",
    "ObjectSchema",
    "ArraySchema",
    "StringSchema",
    "NumberSchema",
    "BooleanSchema",
    "NullSchema",
    "CompositeSchema",
    # 模型类
    "SchemaType",
    "ToolSetSpec",
    "ToolSetSchema",
    "ToolSetStatus",
    "ToolSetStatusOutputs",
    "ToolSetStatusOutputsUrls",
    "MCPServerConfig",
    "ToolMeta",
    "OpenAPIToolMeta",
    "Authorization",
    "AuthorizationParameters",
    "APIKeyAuthParameter",
]
