"""
数据字段定义模型 - 可绑定字段（Schema）

对应字段面板中的一个条目；key 即元素的 binding_key。
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

FieldType = Literal["text", "number", "date", "barcode", "image", "static_text"]


class SchemaField(BaseModel):
    """可绑定字段"""
    id: str = Field(..., description="字段唯一ID(如 f_mat)")
    key: str = Field(..., description="绑定key(如 material)")
    label: str = Field(..., description="显示名(如 Material Number)")
    type: FieldType = "text"
    is_system: bool = False
    is_custom: bool = False

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }
