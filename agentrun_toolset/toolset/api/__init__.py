"""ToolSet API 模块 / ToolSet API Module

OpenAPI 与 MCP 两种工具协议的处理。``mcp`` 子模块依赖可选的 ``mcp`` 包，
不在此处导入。"""

from .invoker import MCPToolInvoker, ToolInvoker
from .openapi import ApiSet, OpenAPI
from .refs import resolve_refs

__all__ = [
    "ApiSet",
    "OpenAPI",
    "ToolInvoker",
    "MCPToolInvoker",
    "resolve_refs",
]
