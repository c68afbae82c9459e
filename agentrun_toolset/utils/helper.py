"""辅助工具模块 / Helper Utilities Module

此模块提供一些通用的辅助函数。
This module provides general utility functions.
"""

from enum import Enum
from typing import Any, FrozenSet, Mapping, Optional

from agentrun_toolset.utils.log import logger


def mask_password(password: Optional[str]) -> str:
    """遮蔽密码用于日志记录 / Mask password for logging purposes

    将密码部分字符替换为星号,用于安全地记录日志。
    Replaces part of the password characters with asterisks for safe logging.

    Args:
        password: 原始密码,可选 / Original password, optional

    Returns:
        str: 遮蔽后的密码 / Masked password

    Examples:
        >>> mask_password("password123")
        'pa*******23'
        >>> mask_password("abc")
        'a*c'
    """
    if not password:
        return ""
    if len(password) <= 2:
        return "*" * len(password)
    if len(password) <= 4:
        return password[0] + "*" * (len(password) - 2) + password[-1]
    return password[0:2] + "*" * (len(password) - 4) + password[-2:]


# 按顺序尝试的序列化钩子: (方法名, 关键字参数)
_SERIALIZE_HOOKS = (
    ("model_dump", {"mode": "python", "exclude_unset": True}),  # Pydantic v2
    ("dict", {"exclude_none": True}),  # Pydantic v1
    ("to_dict", {}),  # Google ADK NestedObject 等
    ("to_json", {}),
)


def to_native(value: Any) -> Any:
    """将框架对象转换为可 JSON 序列化的 Python 原生类型

    Convert framework objects (pydantic models, ADK wrappers, plain class
    instances) into primitives, lists and dicts so the result can always be
    passed to ``json.dumps``.

    - 基本类型原样返回
    - ``list``/``tuple``/``set`` 转为 ``list``
    - ``Mapping`` 转为 ``dict``, key 转为字符串
    - 具有序列化钩子的对象: 调用钩子并递归转换其结果; 钩子抛错时跳过
    - 其他具有 ``__dict__`` 的对象: 按公开属性逐个转换
    - 无法识别的值: ``str(value)``
    - 循环引用: 再次遇到正在转换的对象时返回 ``None``

    该函数不会抛出异常，并且是幂等的: ``to_native(to_native(x)) == to_native(x)``。
    """
    return _to_native(value, frozenset())


def _to_native(value: Any, active: FrozenSet[int]) -> Any:
    # active: 当前递归路径上正在转换的对象 id
    if value is None or isinstance(value, (str, bool, int, float)):
        return value

    if isinstance(value, Enum):
        return _to_native(value.value, active)

    if id(value) in active:
        logger.debug(
            "Circular reference to %s replaced with None", type(value).__name__
        )
        return None
    active = active | {id(value)}

    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_native(item, active) for item in value]

    if isinstance(value, Mapping):
        return {str(k): _to_native(v, active) for k, v in value.items()}

    for hook, kwargs in _SERIALIZE_HOOKS:
        method = getattr(value, hook, None)
        if not callable(method):
            continue
        try:
            dumped = method(**kwargs)
        except Exception as e:
            logger.debug(
                "serialize hook %s of %s failed: %s",
                hook,
                type(value).__name__,
                e,
            )
            continue
        if dumped is value:
            continue
        return _to_native(dumped, active)

    if hasattr(value, "__dict__"):
        return {
            str(k): _to_native(v, active)
            for k, v in vars(value).items()
            if not str(k).startswith("_")
        }

    return str(value)
