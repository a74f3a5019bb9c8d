"""
打印任务模型 - 定义打印周期状态与生命周期

一个打印周期：Idle → BatchSelected → Rendering → (PrintEventObserved | TimeoutFallback) → Idle
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class PrintCycleState(str, Enum):
    """打印周期状态枚举"""
    IDLE = "idle"
    BATCH_SELECTED = "batch_selected"
    RENDERING = "rendering"
    PRINT_EVENT_OBSERVED = "print_event_observed"
    TIMEOUT_FALLBACK = "timeout_fallback"
    FAILED = "failed"


class PrintKind(str, Enum):
    """打印类型"""
    SINGLE = "single"     # 单条记录
    BATCH = "batch"       # 指定批次
    ALL = "all"           # 全部记录


class ReleaseReason(str, Enum):
    """渲染资源释放原因"""
    PRINT_EVENT = "print_event"
    TIMEOUT = "timeout"
    ERROR = "error"


class BatchRange(BaseModel):
    """批次范围 [start, end)"""
    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_order(self) -> BatchRange:
        if self.end < self.start:
            raise ValueError(f"批次范围非法: [{self.start}, {self.end})")
        return self

    @property
    def count(self) -> int:
        return self.end - self.start

    @property
    def label(self) -> str:
        """批次显示名（记录序号从1开始）"""
        return f"Records {self.start + 1} - {self.end}"


_RELEASED_STATES = {
    ReleaseReason.PRINT_EVENT: PrintCycleState.PRINT_EVENT_OBSERVED,
    ReleaseReason.TIMEOUT: PrintCycleState.TIMEOUT_FALLBACK,
    ReleaseReason.ERROR: PrintCycleState.FAILED,
}


class PrintJob(BaseModel):
    """打印任务实体"""
    job_id: str = Field(..., description="UUID")
    kind: PrintKind
    template_id: str
    batch: BatchRange

    # 状态
    state: PrintCycleState = PrintCycleState.BATCH_SELECTED
    release_reason: ReleaseReason | None = None

    # 本次打印取得的CIPL单号
    auto_numbers: list[int] = Field(default_factory=list)

    # 结果
    flags: list[str] = Field(default_factory=list, description="告警标记")
    errors: list[str] = Field(default_factory=list, description="错误信息")

    # 时间戳
    created_at: datetime = Field(default_factory=datetime.now)
    rendered_at: datetime | None = None
    released_at: datetime | None = None

    def mark_rendering(self) -> None:
        """标记为渲染中"""
        self.state = PrintCycleState.RENDERING
        self.rendered_at = datetime.now()

    def mark_released(self, reason: ReleaseReason) -> None:
        """标记资源已释放"""
        self.state = _RELEASED_STATES[reason]
        self.release_reason = reason
        self.released_at = datetime.now()

    def mark_failed(self, error: str) -> None:
        """记录错误"""
        self.errors.append(error)

    def add_flag(self, flag: str) -> None:
        """添加告警标记（不中断）"""
        if flag not in self.flags:
            self.flags.append(flag)
