"""工具调用器 / Tool Invokers

``ApiSet`` 通过统一的 ``ToolInvoker`` 接口调用后端，不再在调用时探测对象上存在哪些方法。
``ApiSet`` talks to its backend through the ``ToolInvoker`` interface instead
of probing the backend object for method names at call time.

两种实现 / Two implementations:

- ``OpenAPI``（见 ``openapi.py``）: 基于 HTTP 的工具 / HTTP-backed tools
- ``MCPToolInvoker``: 基于 MCP 会话的工具 / session-backed tools
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from agentrun_toolset.utils.config import Config
from agentrun_toolset.utils.exception import SyncInvocationNotSupportedError


class ToolInvoker(ABC):
    """工具调用器接口"""

    @abstractmethod
    async def invoke_tool_async(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        config: Optional[Config] = None,
    ) -> Any:
        """异步调用指定的工具"""

    def invoke_tool(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        config: Optional[Config] = None,
    ) -> Any:
        """同步调用会阻塞事件循环，直接拒绝"""
        raise SyncInvocationNotSupportedError(
            "tool invocation", "invoke_tool_async"
        )


class MCPToolInvoker(ToolInvoker):
    """将调用转发给 MCP 客户端（例如 ``MCPToolSet``）

    ``mcp_client`` 需要提供
    ``async call_tool_async(name, arguments, config)``。
    每次调用由客户端自行建立并关闭会话，这里不持有连接，也不做重试。
    """

    def __init__(self, mcp_client: Any, config: Optional[Config] = None):
        self.mcp_client = mcp_client
        self.config = config

    async def invoke_tool_async(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        config: Optional[Config] = None,
    ) -> Any:
        cfg = Config.with_configs(self.config, config)
        return await self.mcp_client.call_tool_async(name, arguments, cfg)
