"""日志模块 / Logging Module

提供统一的 ``agentrun-logger`` 日志记录器。
Provides the shared ``agentrun-logger`` logger.

设置环境变量 ``AGENTRUN_SDK_DEBUG`` 为真值以输出调试日志。
Set ``AGENTRUN_SDK_DEBUG`` to a truthy value to enable debug output.
"""

import logging
import os

LOGGER_NAME = "agentrun-logger"


class CustomFormatter(logging.Formatter):
    """按日志级别着色的格式化器 / Level-colored formatter"""

    _RESET = "\x1b[0m"
    _COLORS = {
        logging.DEBUG: "\x1b[36m",
        logging.INFO: "\x1b[34m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[1m\x1b[31m",
    }
    _FORMAT = (
        "%(asctime)s [%(name)s] %(levelname)s"
        " %(filename)s:%(lineno)d %(message)s"
    )

    def format(self, record: logging.LogRecord) -> str:
        color = self._COLORS.get(record.levelno, self._RESET)
        formatter = logging.Formatter(color + self._FORMAT + self._RESET)
        return formatter.format(record)


def _debug_enabled() -> bool:
    return os.getenv("AGENTRUN_SDK_DEBUG", "").lower() in (
        "1",
        "true",
        "yes",
        "on",
    )


def _build_logger() -> logging.Logger:
    _logger = logging.getLogger(LOGGER_NAME)
    if not _logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(CustomFormatter())
        _logger.addHandler(handler)
    _logger.setLevel(logging.DEBUG if _debug_enabled() else logging.INFO)
    return _logger


logger = _build_logger()
