"""配置管理模块 / Configuration Management Module

此模块提供工具调用的配置管理功能。
This module provides configuration management for tool invocations.
"""

import os
from typing import Dict, Optional

from dotenv import load_dotenv

load_dotenv()


def get_env_with_default(default: str, *key: str) -> str:
    """从环境变量获取值,支持多个候选键 / Get value from environment variables with multiple fallback keys

    Args:
        default: 默认值 / Default value
        *key: 候选环境变量名 / Candidate environment variable names

    Returns:
        str: 环境变量值或默认值 / Environment variable value or default value
    """
    for k in key:
        v = os.getenv(k)
        if v is not None:
            return v
    return default


def _env_int(*key: str) -> Optional[int]:
    value = get_env_with_default("", *key)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class Config:
    """工具调用配置类 / Tool Invocation Configuration Class

    用于管理请求头与超时时间。
    Used for managing request headers and timeouts.

    支持从参数或环境变量读取配置。
    Supports reading configuration from parameters or environment variables.

    Examples:
        >>> config = Config(timeout=30, headers={"X-Trace": "abc"})
        >>> merged = Config.with_configs(config, Config(timeout=10))
        >>> merged.get_timeout()
        10
    """

    __slots__ = (
        "_timeout",
        "_read_timeout",
        "_headers",
        "__weakref__",
    )

    def __init__(
        self,
        timeout: Optional[int] = None,
        read_timeout: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """初始化配置 / Initialize configuration

        Args:
            timeout: 请求超时时间(秒) / Request timeout in seconds
                未提供时从环境变量读取: AGENTRUN_TIMEOUT
                Read from env var if not provided: AGENTRUN_TIMEOUT
            read_timeout: 读取超时时间(秒) / Read timeout in seconds
                未提供时从环境变量读取: AGENTRUN_READ_TIMEOUT
                Read from env var if not provided: AGENTRUN_READ_TIMEOUT
            headers: 自定义请求头,可选 / Custom request headers, optional
        """

        if timeout is None:
            timeout = _env_int("AGENTRUN_TIMEOUT")
        if read_timeout is None:
            read_timeout = _env_int("AGENTRUN_READ_TIMEOUT")

        self._timeout = timeout
        self._read_timeout = read_timeout
        self._headers = dict(headers) if headers else {}

    @classmethod
    def with_configs(cls, *configs: Optional["Config"]) -> "Config":
        return cls().update(*configs)

    def update(self, *configs: Optional["Config"]) -> "Config":
        """
        使用给定的配置对象更新当前实例,优先使用靠后的值

        Args:
            configs: 要合并的配置对象

        Returns:
            合并后的配置对象
        """

        for config in configs:
            if config is None:
                continue

            for attr in filter(
                lambda x: x != "__weakref__",
                self.__slots__,
            ):
                value = getattr(config, attr)
                if value is not None:
                    if type(value) is dict:
                        getattr(self, attr).update(value)
                    else:
                        setattr(self, attr, value)

        return self

    def __repr__(self) -> str:

        return "Config{%s}" % (
            ", ".join([
                f'"{key}": "{getattr(self, key)}"'
                for key in self.__slots__
                if key != "__weakref__"
            ])
        )

    def get_timeout(self) -> Optional[int]:
        """获取请求超时时间,未设置时返回 None"""
        return self._timeout

    def get_read_timeout(self) -> Optional[int]:
        """获取读取超时时间,未设置时返回 None"""
        return self._read_timeout

    def get_headers(self) -> Dict[str, str]:
        """获取自定义请求头"""
        return self._headers or {}
