"""
单号计数器状态模型
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .template import now_ms


class CounterState(BaseModel):
    """计数器状态（各存储层写入同一结构）"""
    value: int = Field(..., ge=0)
    last_updated: int = Field(default_factory=now_ms, description="epoch毫秒")
    updated_by: str = "System"

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }
