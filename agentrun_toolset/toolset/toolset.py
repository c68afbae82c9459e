"""ToolSet 资源对象 / ToolSet Resource Object

将控制面返回的工具集记录转换为统一的 ApiSet，并提供列举、调用工具的入口。
Turns a toolset record returned by the control plane into a unified ApiSet
and exposes tool listing and invocation on top of it.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

from pydash import get as pg

from agentrun_toolset.utils.config import Config
from agentrun_toolset.utils.exception import AgentRunError
from agentrun_toolset.utils.helper import mask_password
from agentrun_toolset.utils.log import logger
from agentrun_toolset.utils.model import BaseModel

from .api.openapi import ApiSet
from .model import SchemaType, ToolInfo, ToolSetSpec, ToolSetStatus

MCPClientFactory = Callable[[str, Config, Optional[str]], Any]
"""(url, config, transport_type) -> MCP 客户端"""


def _default_mcp_client_factory(
    url: str, config: Config, transport_type: Optional[str]
) -> Any:
    # mcp 为可选依赖，只在使用 MCP 工具集时导入
    from .api.mcp import MCPToolSet

    return MCPToolSet(url, config=config, transport_type=transport_type)


class ToolSet(BaseModel):
    """工具集 / ToolSet"""

    name: Optional[str] = None
    uid: Optional[str] = None
    kind: Optional[str] = None
    description: Optional[str] = None
    created_time: Optional[str] = None
    generation: Optional[int] = None
    labels: Optional[Dict[str, str]] = None
    spec: Optional[ToolSetSpec] = None
    status: Optional[ToolSetStatus] = None

    def type(self) -> Optional[SchemaType]:
        """获取工具集类型"""
        return pg(self, "spec.tool_schema.type")

    def to_apiset(
        self,
        config: Optional[Config] = None,
        mcp_client_factory: Optional[MCPClientFactory] = None,
    ) -> ApiSet:
        """将 ToolSet 转换为统一的 ApiSet 对象

        Args:
            config: 配置对象
            mcp_client_factory: 自定义 MCP 客户端工厂，默认使用 ``MCPToolSet``
        """
        toolset_type = self.type()

        if toolset_type == SchemaType.MCP:
            mcp_server_config = pg(self, "status.outputs.mcp_server_config")
            url = pg(mcp_server_config, "url")
            if not url:
                raise AgentRunError(
                    "MCP server URL is missing.", toolset_name=self.name
                )

            cfg = Config.with_configs(
                config, Config(headers=pg(mcp_server_config, "headers"))
            )
            factory = mcp_client_factory or _default_mcp_client_factory
            mcp_client = factory(
                url, cfg, pg(mcp_server_config, "transport_type")
            )

            return ApiSet.from_mcp_tools(
                tools=pg(self, "status.outputs.tools") or [],
                mcp_client=mcp_client,
                config=cfg,
            )

        if toolset_type == SchemaType.OpenAPI:
            headers, query = self._get_openapi_auth_defaults()
            return ApiSet.from_openapi_schema(
                schema=pg(self, "spec.tool_schema.detail") or "{}",
                base_url=self._get_openapi_base_url(),
                headers=headers,
                query_params=query,
                config=config,
            )

        raise AgentRunError(
            f"Unsupported ToolSet type: {toolset_type}", toolset_name=self.name
        )

    def resolve_tool_name(self, name: str, apiset: ApiSet) -> str:
        """将调用方传入的名称解析为 ApiSet 中的工具名

        OpenAPI 工具集的调用方可能传入 tool_id，此时通过
        ``status.outputs.open_api_tools`` 映射到对应的 tool_name。
        """
        if apiset.get_tool(name) is not None:
            return name
        if self.type() != SchemaType.OpenAPI:
            return name

        for meta in pg(self, "status.outputs.open_api_tools") or []:
            if meta is None or meta.tool_id != name:
                continue
            if meta.tool_name:
                logger.debug(
                    "Resolved tool id %s to tool name %s", name, meta.tool_name
                )
                return meta.tool_name
        return name

    async def list_tools_async(
        self, config: Optional[Config] = None
    ) -> List[ToolInfo]:
        """获取工具列表，返回统一的 ToolInfo 列表"""
        toolset_type = self.type()
        if toolset_type == SchemaType.MCP:
            return ToolInfo.from_mcp_tools(pg(self, "status.outputs.tools"))
        if toolset_type == SchemaType.OpenAPI:
            return self.to_apiset(config=config).tools()
        return []

    async def call_tool_async(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        config: Optional[Config] = None,
        mcp_client_factory: Optional[MCPClientFactory] = None,
    ) -> Any:
        """调用工具，统一使用 ApiSet 实现"""
        apiset = self.to_apiset(
            config=config, mcp_client_factory=mcp_client_factory
        )
        name = self.resolve_tool_name(name, apiset)

        logger.debug("Invoke tool %s with arguments %s", name, arguments)
        result = await apiset.invoke(name, arguments, config)
        logger.debug("Invoke tool %s got result %s", name, result)
        return result

    def _get_openapi_auth_defaults(
        self,
    ) -> Tuple[Dict[str, str], Dict[str, str]]:
        """获取 OpenAPI 认证默认值 (headers, query)"""
        headers: Dict[str, str] = {}
        query: Dict[str, str] = {}

        auth_config = pg(self, "spec.auth_config")
        if pg(auth_config, "type") != "APIKey":
            return headers, query

        api_key = pg(auth_config, "parameters.api_key_parameter")
        key = pg(api_key, "key")
        value = pg(api_key, "value")
        if not key or not value:
            return headers, query

        location = (pg(api_key, "in_") or "header").lower()
        if location == "query":
            query[key] = value
        else:
            headers[key] = value
        logger.debug(
            "Use APIKey auth in %s: %s=%s", location, key, mask_password(value)
        )
        return headers, query

    def _get_openapi_base_url(self) -> Optional[str]:
        """获取 OpenAPI 基础 URL，优先使用内网地址"""
        return pg(self, "status.outputs.urls.intranet_url") or pg(
            self, "status.outputs.urls.internet_url"
        )
