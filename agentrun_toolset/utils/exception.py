"""异常定义"""

import json


class AgentRunError(Exception):
    """AgentRun 工具集基础异常类"""

    def __init__(
        self,
        message: str,
        **kwargs,
    ):
        """初始化异常

        Args:
            message: 错误消息
            kwargs: 详细信息
        """
        msg = message or ""
        if kwargs:
            msg += self.kwargs_str(**kwargs)

        super().__init__(msg)
        self.message = message
        self.details = kwargs

    @classmethod
    def kwargs_str(cls, **kwargs) -> str:
        """获取详细信息字符串

        Returns:
            str: 详细信息字符串
        """
        if not kwargs:
            return ""
        return json.dumps(
            kwargs,
            ensure_ascii=False,
            default=lambda x: getattr(x, "__dict__", str(x)),
        )

    def details_str(self) -> str:
        return self.kwargs_str(**self.details)

    def __str__(self) -> str:
        return self.message


class ToolNotFoundError(AgentRunError):
    """工具不存在异常"""

    def __init__(self, name: str):
        super().__init__(f"Tool '{name}' not found.", tool_name=name)
        self.tool_name = name


class InvalidToolError(AgentRunError):
    """工具描述非法异常，例如 MCP tool 缺少 name"""


class SyncInvocationNotSupportedError(AgentRunError):
    """同步调用不被支持"""

    def __init__(self, operation: str, alternative: str):
        super().__init__(
            f"Synchronous {operation} is not supported. Use"
            f" `await {alternative}(...)` instead."
        )
