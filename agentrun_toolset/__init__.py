"""AgentRun ToolSet SDK / AgentRun ToolSet SDK

将 OpenAPI 文档和 MCP 服务描述的工具统一为一个 ``ApiSet``，
供 LLM 发现与调用。
Unifies tools described by OpenAPI documents and MCP servers into a single
``ApiSet`` that an LLM can discover and invoke.

主要功能 / Main Features:
- OpenAPI: 解析文档、展开本地 $ref、按工具名发起 HTTP 请求
  / parse documents, expand local $ref, issue HTTP requests by tool name
- MCP: 通过 MCP 会话列举与调用工具 / list and call tools over MCP sessions
- ToolSet: 将控制面的工具集记录转换为 ApiSet
  / turn control-plane toolset records into an ApiSet
"""

from typing import TYPE_CHECKING

__version__ = "0.1.0"

from agentrun_toolset.toolset import (
    ApiSet,
    MCPToolInvoker,
    OpenAPI,
    SchemaKind,
    SchemaType,
    ToolInfo,
    ToolInvoker,
    ToolSchema,
    ToolSet,
)
from agentrun_toolset.utils.config import Config
from agentrun_toolset.utils.exception import (
    AgentRunError,
    InvalidToolError,
    SyncInvocationNotSupportedError,
    ToolNotFoundError,
)
from agentrun_toolset.utils.helper import to_native

# MCP - 延迟导入以避免可选依赖问题
if TYPE_CHECKING:
    from agentrun_toolset.toolset.api.mcp import MCPToolSet, open_mcp_session

__all__ = [
    ######## ToolSet ########
    "ToolSet",
    "ApiSet",
    "OpenAPI",
    "ToolInvoker",
    "MCPToolInvoker",
    "ToolInfo",
    "ToolSchema",
    "SchemaKind",
    "SchemaType",
    ######## MCP (延迟加载) ########
    "MCPToolSet",
    "open_mcp_session",
    ######## Others ########
    "Config",
    "AgentRunError",
    "InvalidToolError",
    "SyncInvocationNotSupportedError",
    "ToolNotFoundError",
    "to_native",
]

_MCP_EXPORTS = {"MCPToolSet", "open_mcp_session"}

# 可选依赖包映射：安装命令 -> 导入错误的包名列表
_OPTIONAL_PACKAGES = {
    "agentrun-toolset[mcp]": ["mcp"],
}


def __getattr__(name: str):
    """延迟加载 MCP 模块的导出，避免可选依赖导致导入失败

    当用户访问 MCP 相关的类时，才尝试导入 mcp 模块。
    如果 mcp 可选依赖未安装，会抛出清晰的错误提示。
    """
    if name in _MCP_EXPORTS:
        try:
            from agentrun_toolset.toolset.api import mcp

            return getattr(mcp, name)
        except ImportError as e:
            error_str = str(e)
            for install_cmd, package_names in _OPTIONAL_PACKAGES.items():
                for package_name in package_names:
                    if package_name in error_str:
                        raise ImportError(
                            f"'{name}' requires the 'mcp' optional dependencies. "
                            f"Install with: pip install {install_cmd}\n"
                            f"Original error: {e}"
                        ) from e
            raise

    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
