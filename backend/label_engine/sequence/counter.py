"""
CIPL单号计数器 - 多层存储 + 自动恢复

职责：
1. 读取当前单号：取所有可读层（主存储/备份/持久层）的最大值，全部无值时用默认值
2. 值落后或缺失的层回写为最大值（自愈）
3. 取号/设置起始号/重置：写入所有存储层后返回
4. 单层存储故障记录日志并跳过，不中断打印

限制：
- 同一进程内取号串行；多进程/多窗口并发取号可能重号（各层最后写入者生效）

测试要点：
- test_get_next_monotonic: 连续取号严格递增
- test_recover_from_backup: 主存储丢失时从备份恢复并回写
- test_stale_tier_after_failed_write: 写入失败的层恢复后不重号
- test_set_start_rejects_lower: 起始号不大于当前号时报错
"""

from __future__ import annotations

import logging
import threading

from ..interfaces import ICounterStore, InvalidSequenceValue, StorageTierUnavailable
from ..models import CounterState
from .stores import JsonDocumentStore, JsonKeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_START = 18505


class SequenceCounter:
    """多层存储单号计数器"""

    def __init__(
        self,
        tiers: list[ICounterStore],
        default_start: int = DEFAULT_START,
        updated_by: str = "System",
    ):
        if not tiers:
            raise ValueError("至少需要一个存储层")
        self.tiers = list(tiers)
        self.default_start = default_start
        self.updated_by = updated_by
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config) -> SequenceCounter:
        """按 RuntimeConfig 构建标准三层存储（主存储/备份共用键值文件 + 持久文档）"""
        seq = config.sequence
        sequence_dir = config.get_sequence_dir()
        store_path = sequence_dir / seq.store_file
        tiers: list[ICounterStore] = [
            JsonKeyValueStore(store_path, seq.primary_key, name="primary"),
            JsonKeyValueStore(store_path, seq.backup_key, name="backup"),
            JsonDocumentStore(sequence_dir / seq.durable_file, name="durable"),
        ]
        return cls(tiers, default_start=seq.default_start)

    # ------------------------------------------------------------------
    # 读取
    # ------------------------------------------------------------------

    def get_current(self) -> int:
        """
        当前单号（取所有可读层的最大值；全部层无值时返回默认起始号）

        写入失败的层可能保留旧值；落后或缺失的层回写为最大值。
        """
        with self._lock:
            states: list[tuple[ICounterStore, CounterState | None]] = []
            for tier in self.tiers:
                try:
                    states.append((tier, tier.read()))
                except StorageTierUnavailable as e:
                    logger.warning(f"存储层读取失败，跳过: {tier.name}: {e}")

            values = [state.value for _, state in states if state is not None]
            if not values:
                return self.default_start

            current = max(values)
            lagging = [tier for tier, state in states if state is None or state.value < current]
            if lagging:
                names = ", ".join(tier.name for tier in lagging)
                logger.info(f"恢复单号 {current}，回写落后的存储层: {names}")
                best = next(state for _, state in states if state is not None and state.value == current)
                self._write_tiers(lagging, best)
            return current

    # ------------------------------------------------------------------
    # 修改
    # ------------------------------------------------------------------

    def get_next(self) -> int:
        """取下一个单号（写入所有层后返回）"""
        with self._lock:
            next_value = self.get_current() + 1
            self._write_all(next_value)
            logger.info(f"取号: {next_value}")
            return next_value

    def set_start(self, number: int, updated_by: str | None = None) -> None:
        """
        设置起始号（管理操作）

        Raises:
            InvalidSequenceValue: number < 1 或 number ≤ 当前号
        """
        number = self._validate(number)
        with self._lock:
            current = self.get_current()
            if number <= current:
                raise InvalidSequenceValue(f"起始号必须大于当前号 ({current}): {number}")
            self._write_all(number, updated_by)
            logger.info(f"设置起始号: {current} -> {number}")

    def reset(self, number: int | None = None, updated_by: str | None = None) -> None:
        """
        重置单号（管理操作，不校验大小关系）

        写入失败的层若仍持有较大的旧值，下次读取以较大值为准。

        Raises:
            InvalidSequenceValue: number < 1
        """
        number = self._validate(self.default_start if number is None else number)
        with self._lock:
            self._write_all(number, updated_by)
            logger.warning(f"单号已重置为 {number}")

    # ------------------------------------------------------------------
    # 内部
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(number: int) -> int:
        if isinstance(number, bool) or not isinstance(number, int):
            raise InvalidSequenceValue(f"单号必须为整数: {number!r}")
        if number < 1:
            raise InvalidSequenceValue(f"单号必须不小于1: {number}")
        return number

    def _write_all(self, value: int, updated_by: str | None = None) -> None:
        state = CounterState(value=value, updated_by=updated_by or self.updated_by)
        written = self._write_tiers(self.tiers, state)
        if written == 0:
            raise StorageTierUnavailable(f"所有存储层写入失败，单号 {value} 未保存")

    def _write_tiers(self, tiers: list[ICounterStore], state: CounterState) -> int:
        written = 0
        for tier in tiers:
            try:
                tier.write(state)
                written += 1
            except StorageTierUnavailable as e:
                logger.error(f"存储层写入失败: {tier.name}: {e}")
        return written
