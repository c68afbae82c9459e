"""通用工具模块 / Common Utilities"""

from .config import Config
from .exception import (
    AgentRunError,
    InvalidToolError,
    SyncInvocationNotSupportedError,
    ToolNotFoundError,
)
from .helper import mask_password, to_native
from .log import logger

__all__ = [
    "Config",
    "AgentRunError",
    "InvalidToolError",
    "SyncInvocationNotSupportedError",
    "ToolNotFoundError",
    "mask_password",
    "to_native",
    "logger",
]
