"""
批次规划 - 将数据源切分为连续批次

规则：
- 批次为半开区间 [start, end)，互不重叠，按顺序覆盖 [0, n)
- 除最后一批外每批 batch_size 条
- 一次性打印全部记录超过告警阈值时需要确认
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models import BatchRange

DEFAULT_BATCH_SIZE = 50
DEFAULT_WARNING_THRESHOLD = 100


def plan_batches(total: int, batch_size: int = DEFAULT_BATCH_SIZE) -> list[BatchRange]:
    """
    切分批次

    Raises:
        ValueError: total < 0 或 batch_size < 1
    """
    if total < 0:
        raise ValueError(f"记录数不能为负: {total}")
    if batch_size < 1:
        raise ValueError(f"批次大小必须不小于1: {batch_size}")

    return [
        BatchRange(start=start, end=min(start + batch_size, total))
        for start in range(0, total, batch_size)
    ]


def batch_label(index: int, batch: BatchRange) -> str:
    """批次显示名：Batch 1 (Records 1 - 50)"""
    return f"Batch {index + 1} ({batch.label})"


@dataclass(frozen=True)
class PrintAllDecision:
    """打印全部记录的判定结果"""
    total: int
    threshold: int
    proceed: bool
    requires_confirmation: bool
    recommended_batch_size: int = DEFAULT_BATCH_SIZE


def request_print_all(
    total: int,
    threshold: int = DEFAULT_WARNING_THRESHOLD,
    confirm: bool = False,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> PrintAllDecision:
    """
    判定能否一次性打印全部记录

    total ≤ threshold 直接放行；超过阈值时只有 confirm=True 才放行。
    """
    over = total > threshold
    return PrintAllDecision(
        total=total,
        threshold=threshold,
        proceed=(not over) or confirm,
        requires_confirmation=over,
        recommended_batch_size=batch_size,
    )
