"""MCP协议处理 / MCP Protocol Handler

处理 MCP(Model Context Protocol) 协议的工具列举与调用。
Handles tool listing and invocation for MCP (Model Context Protocol).

每个操作都会新建会话并在结束时关闭（connect -> call -> close），不做重连或重试。
Each operation opens its own session and closes it afterwards
(connect -> call -> close); there is no reconnect or retry logic.
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import (
    Any,
    AsyncContextManager,
    AsyncIterator,
    Callable,
    Dict,
    List,
    Optional,
)

from mcp import ClientSession
from mcp.client.sse import sse_client
from mcp.client.streamable_http import streamablehttp_client

from agentrun_toolset.utils.config import Config
from agentrun_toolset.utils.exception import SyncInvocationNotSupportedError
from agentrun_toolset.utils.helper import to_native
from agentrun_toolset.utils.log import logger

DEFAULT_TIMEOUT = 60
DEFAULT_SSE_READ_TIMEOUT = 300

SessionFactory = Callable[[str, Config], AsyncContextManager[Any]]
"""(url, config) -> 异步上下文管理器，产出已初始化的会话"""

_STREAMABLE_HTTP_TRANSPORTS = {"streamable-http", "streamable_http", "http"}


@asynccontextmanager
async def open_mcp_session(
    url: str,
    config: Config,
    transport_type: Optional[str] = None,
) -> AsyncIterator[ClientSession]:
    """建立并初始化一个 MCP 会话，退出上下文时关闭"""
    headers = config.get_headers() or None
    timeout = config.get_timeout() or DEFAULT_TIMEOUT
    sse_read_timeout = config.get_read_timeout() or DEFAULT_SSE_READ_TIMEOUT

    if (transport_type or "").lower() in _STREAMABLE_HTTP_TRANSPORTS:
        async with streamablehttp_client(
            url,
            headers=headers,
            timeout=timedelta(seconds=timeout),
            sse_read_timeout=timedelta(seconds=sse_read_timeout),
        ) as (
            read_stream,
            write_stream,
            _,
        ):
            async with ClientSession(read_stream, write_stream) as session:
                await session.initialize()
                yield session
    else:
        async with sse_client(
            url,
            headers=headers,
            timeout=timeout,
            sse_read_timeout=sse_read_timeout,
        ) as (
            read_stream,
            write_stream,
        ):
            async with ClientSession(read_stream, write_stream) as session:
                await session.initialize()
                yield session


class MCPToolSet:
    """MCP 工具集客户端

    Args:
        url: MCP 服务地址
        config: 配置对象，headers 与 timeout 会用于建立会话
        transport_type: 传输类型，``sse``（默认）或 ``streamable-http``
        session_factory: 自定义会话工厂，默认使用 ``open_mcp_session``
    """

    def __init__(
        self,
        url: str,
        config: Optional[Config] = None,
        transport_type: Optional[str] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        self.url = url
        self.config = Config.with_configs(config)
        self.transport_type = transport_type
        self._session_factory = session_factory

    def new_session(
        self, config: Optional[Config] = None
    ) -> AsyncContextManager[Any]:
        """创建新会话"""
        cfg = Config.with_configs(self.config, config)
        if self._session_factory is not None:
            return self._session_factory(self.url, cfg)
        return open_mcp_session(self.url, cfg, self.transport_type)

    async def tools_async(self, config: Optional[Config] = None) -> List[Any]:
        """列出可用工具，返回原始 MCP tool 描述"""
        async with self.new_session(config) as session:
            result = await session.list_tools()
        return list(getattr(result, "tools", None) or [])

    def tools(self, config: Optional[Config] = None) -> List[Any]:
        raise SyncInvocationNotSupportedError("tool listing", "tools_async")

    async def call_tool_async(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        config: Optional[Config] = None,
    ) -> Any:
        """调用工具，返回转换为原生类型的 content 列表"""
        logger.debug("Call MCP tool %s at %s", name, self.url)
        async with self.new_session(config) as session:
            result = await session.call_tool(name, arguments or {})

        if getattr(result, "isError", False):
            logger.warning("MCP tool %s returned an error result", name)

        return to_native(getattr(result, "content", None) or [])

    def call_tool(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        config: Optional[Config] = None,
    ) -> Any:
        raise SyncInvocationNotSupportedError("tool invocation", "call_tool_async")
