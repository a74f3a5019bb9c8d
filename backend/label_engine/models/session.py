"""
解析上下文模型 - 会话变量与解析模式

绑定解析器只消费这两个结构，与编辑器/打印站完全解耦
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ResolveMode(str, Enum):
    """解析模式"""
    DESIGN = "design"          # 编辑态
    PREVIEW = "preview"        # 预览态
    PRINT_ROW = "print-row"    # 按数据行打印


class SessionContext(BaseModel):
    """当前会话（操作员/部门/打印时手工输入值）"""
    operator_name: str | None = None
    department: str | None = None

    # 打印时输入的字段，以系统key为键（数量/销售订单/计划批次/备注...）
    inputs: dict[str, str] = Field(default_factory=dict)

    # 本张标签已取得的CIPL单号
    auto_number: int | None = None

    # 固定"今天"（测试或补打时使用），None 取系统日期
    today: date | None = None

    def with_auto_number(self, number: int) -> SessionContext:
        """返回带指定单号的副本（每张标签一份）"""
        return self.model_copy(update={"auto_number": number})

    def get_today(self) -> date:
        return self.today or date.today()


class ResolutionContext(BaseModel):
    """绑定解析上下文"""
    mode: ResolveMode = ResolveMode.DESIGN
    session: SessionContext = Field(default_factory=SessionContext)
    row: dict[str, Any] | None = None

    @property
    def has_row(self) -> bool:
        return self.row is not None
