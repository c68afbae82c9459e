"""$ref 解析 / JSON Reference Resolution

将文档中所有本地 ``$ref``（``#`` 或 ``#/...`` 形式的 JSON Pointer）替换为其指向的内容。
Replaces every local ``$ref`` (``#`` or ``#/...`` JSON Pointer) in a
document with the fragment it points to.

规则 / Rules:

- 引用目标本身会被递归解析，``$ref`` 的同级字段覆盖在目标之上
- 外部引用、无法解析的路径以及循环引用都退化为空对象（保留同级字段），并记录警告
- 输入文档不会被修改，解析基于深拷贝进行
"""

from copy import deepcopy
from typing import Any, Dict, FrozenSet, List, Optional

from agentrun_toolset.utils.log import logger

_MISSING = object()


def resolve_refs(document: Any) -> Any:
    """解析 document 中的所有本地 $ref，返回新的文档"""
    root = deepcopy(document)
    return _RefResolver(root).resolve()


class _RefResolver:

    def __init__(self, root: Any):
        self._root = root

    def resolve(self) -> Any:
        return self._walk(self._root, frozenset())

    def _walk(self, node: Any, expanding: FrozenSet[str]) -> Any:
        """``expanding`` 为当前递归链上正在展开的引用路径"""
        if isinstance(node, list):
            return [self._walk(item, expanding) for item in node]
        if not isinstance(node, dict):
            return node

        ref = node.get("$ref")
        if isinstance(ref, str):
            return self._expand(ref, node, expanding)

        return {k: self._walk(v, expanding) for k, v in node.items()}

    def _expand(
        self, ref: str, node: Dict[str, Any], expanding: FrozenSet[str]
    ) -> Dict[str, Any]:
        target = self._lookup(ref, expanding)

        result: Dict[str, Any] = {}
        if target is not None:
            resolved = self._walk(target, expanding | {ref})
            if isinstance(resolved, dict):
                result.update(resolved)
            else:
                logger.warning(
                    "$ref %s points to a non-object value, ignored", ref
                )

        # 同级字段覆盖引用目标
        for key, value in node.items():
            if key == "$ref":
                continue
            result[key] = self._walk(value, expanding)
        return result

    def _lookup(self, ref: str, expanding: FrozenSet[str]) -> Optional[Any]:
        if ref != "#" and not ref.startswith("#/"):
            logger.warning("External $ref not supported: %s", ref)
            return None
        if ref in expanding:
            logger.warning("Circular $ref detected: %s", ref)
            return None

        parts = _split_pointer(ref[2:]) if ref != "#" else []
        target = _resolve_pointer(self._root, parts)
        if target is _MISSING:
            logger.warning("Unresolvable $ref: %s", ref)
            return None
        return target


def _split_pointer(pointer: str) -> List[str]:
    # unescape per JSON Pointer spec
    return [
        part.replace("~1", "/").replace("~0", "~")
        for part in pointer.split("/")
    ]


def _resolve_pointer(doc: Any, parts: List[str]) -> Any:
    cur = doc
    for part in parts:
        if isinstance(cur, dict) and part in cur:
            cur = cur[part]
        elif isinstance(cur, list) and part.isdigit() and int(part) < len(cur):
            cur = cur[int(part)]
        else:
            return _MISSING
    return cur
