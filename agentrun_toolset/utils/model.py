"""模型基类 / Base Model

所有数据模型的基类，字段以 snake_case 定义，序列化时使用 camelCase 别名。
Base class of all data models: fields are declared in snake_case and
serialized with camelCase aliases.
"""

from typing import Any, Dict

from pydantic import BaseModel as PydanticModel
from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel


class BaseModel(PydanticModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
        extra="ignore",
    )

    @classmethod
    def from_inner_object(cls, obj: Any):
        """从字典或其他模型对象创建实例"""
        if isinstance(obj, cls):
            return obj
        if isinstance(obj, PydanticModel):
            obj = obj.model_dump(by_alias=True, exclude_none=True)
        return cls.model_validate(obj)

    def to_map(self) -> Dict[str, Any]:
        """转换为 camelCase 字典"""
        return self.model_dump(by_alias=True, exclude_none=True)


__all__ = ["BaseModel", "Field"]
