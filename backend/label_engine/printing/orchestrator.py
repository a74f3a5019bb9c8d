"""
批量打印编排器 - 解析 → 渲染 → 交给宿主打印 → 释放

职责：
1. 批次规划与"打印全部"告警判定
2. 按数据源顺序解析 [start, end) 的每条记录
3. 模板含 CIPL 自动单号时每张标签取一次号
4. 渲染为一个打印文档交给宿主
5. 打印完成事件或超时兜底后释放渲染面（仅一次）

周期状态：Idle → BatchSelected → Rendering → (PrintEventObserved | TimeoutFallback) → Idle

测试要点：
- test_execute_batch_order: 按源顺序渲染
- test_release_once: 事件与超时同时到达只释放一次
- test_print_all_requires_confirm: 超过阈值需要确认
- test_auto_number_per_label: 每张标签一个单号
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Callable

from ..binding.resolver import resolve_template
from ..binding.schema_registry import SystemKeys
from ..config import PrintConfig
from ..interfaces import IPrintHost, ISurfaceRenderer, PrintError
from ..models import (
    BatchRange,
    LabelTemplate,
    PrintCycleState,
    PrintJob,
    PrintKind,
    ReleaseReason,
    ResolutionContext,
    ResolveMode,
    SessionContext,
)
from ..sequence import SequenceCounter
from .batching import PrintAllDecision, plan_batches, request_print_all
from .cycle import PrintCycle

logger = logging.getLogger(__name__)


class BatchPrintOrchestrator:
    """批量打印编排器"""

    def __init__(
        self,
        renderer: ISurfaceRenderer,
        host: IPrintHost,
        counter: SequenceCounter | None = None,
        config: PrintConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.renderer = renderer
        self.host = host
        self.counter = counter
        self.config = config or PrintConfig()
        self._sleep = sleep
        self._lock = threading.Lock()
        self._cycles: dict[str, PrintCycle] = {}
        self._surfaces: dict[str, bytes] = {}  # 已渲染、尚未释放的打印面

    # ------------------------------------------------------------------
    # 状态
    # ------------------------------------------------------------------

    @property
    def state(self) -> PrintCycleState:
        """当前周期状态（无进行中的周期时为 Idle）"""
        with self._lock:
            for cycle in self._cycles.values():
                return cycle.state
        return PrintCycleState.IDLE

    @property
    def busy(self) -> bool:
        with self._lock:
            return bool(self._cycles)

    def get_cycle(self, job_id: str) -> PrintCycle | None:
        with self._lock:
            return self._cycles.get(job_id)

    def wait_idle(self, timeout: float | None = None) -> bool:
        """等待当前周期释放"""
        with self._lock:
            cycles = list(self._cycles.values())
        return all(cycle.wait(timeout) for cycle in cycles)

    # ------------------------------------------------------------------
    # 规划
    # ------------------------------------------------------------------

    def plan(self, total: int) -> list[BatchRange]:
        """按配置批次大小切分"""
        return plan_batches(total, self.config.batch_size)

    def check_print_all(self, total: int, confirm: bool = False) -> PrintAllDecision:
        """打印全部记录的告警判定"""
        return request_print_all(
            total,
            threshold=self.config.warning_threshold,
            confirm=confirm,
            batch_size=self.config.batch_size,
        )

    # ------------------------------------------------------------------
    # 打印
    # ------------------------------------------------------------------

    def print_all(
        self,
        template: LabelTemplate,
        rows: list[dict],
        session: SessionContext,
        confirm: bool = False,
    ) -> PrintJob | None:
        """
        一次性打印全部记录

        超过告警阈值且未确认时不打印，返回None。
        """
        decision = self.check_print_all(len(rows), confirm)
        if not decision.proceed:
            logger.warning(
                f"打印全部需要确认: {decision.total} 条 > 阈值 {decision.threshold}，"
                f"建议按每批 {decision.recommended_batch_size} 条打印"
            )
            return None
        return self.execute_batch(
            template, rows, BatchRange(start=0, end=len(rows)), session, kind=PrintKind.ALL
        )

    def print_single(
        self,
        template: LabelTemplate,
        rows: list[dict],
        index: int,
        session: SessionContext,
    ) -> PrintJob:
        """打印单条记录（大小为1的批次）"""
        return self.execute_batch(
            template, rows, BatchRange(start=index, end=index + 1), session, kind=PrintKind.SINGLE
        )

    def execute_batch(
        self,
        template: LabelTemplate,
        rows: list[dict],
        batch: BatchRange,
        session: SessionContext,
        kind: PrintKind = PrintKind.BATCH,
    ) -> PrintJob:
        """
        打印一个批次

        Args:
            template: 标签模板
            rows: 数据源全部记录（按源顺序）
            batch: 批次 [start, end)
            session: 会话上下文
            kind: 打印类型

        Returns:
            打印任务（释放可能在返回后由宿主回调或超时完成）

        Raises:
            ValueError: 批次为空或越界
            PrintError: 已有进行中的周期，或宿主打印失败
        """
        if batch.count == 0:
            raise ValueError("批次为空，没有可打印的记录")
        if batch.end > len(rows):
            raise ValueError(f"批次越界: [{batch.start}, {batch.end}) 共 {len(rows)} 条")

        job = PrintJob(
            job_id=str(uuid.uuid4()),
            kind=kind,
            template_id=template.id,
            batch=batch,
        )
        cycle = PrintCycle(job, on_release=self._release_surface, timeout_sec=self.config.cleanup_timeout_sec)

        with self._lock:
            if self._cycles:
                raise PrintError("上一个打印周期尚未结束")
            self._cycles[job.job_id] = cycle

        logger.info(f"[{job.job_id}] 开始打印: {template.name} {batch.label} ({kind.value})")

        try:
            labels = self._resolve_labels(job, template, rows[batch.start:batch.end], session)
            if self.config.render_delay_sec > 0:
                self._sleep(self.config.render_delay_sec)
            cycle.start()
            document = self.renderer.render(template, labels)
            with self._lock:
                self._surfaces[job.job_id] = document
        except Exception as e:
            logger.error(f"[{job.job_id}] 渲染失败: {e}")
            job.mark_failed(str(e))
            cycle.release(ReleaseReason.ERROR)
            raise

        try:
            self.host.print_document(job, document, cycle.on_print_event)
        except PrintError as e:
            logger.error(f"[{job.job_id}] 宿主打印失败: {e}")
            job.mark_failed(str(e))
            cycle.release(ReleaseReason.ERROR)
            raise

        cycle.arm_timeout()
        return job

    # ------------------------------------------------------------------
    # 内部
    # ------------------------------------------------------------------

    def _resolve_labels(
        self,
        job: PrintJob,
        template: LabelTemplate,
        rows: list[dict],
        session: SessionContext,
    ) -> list[dict[str, str]]:
        """按源顺序解析每张标签（需要时每张取一个单号）"""
        uses_auto_number = template.uses_binding(SystemKeys.CIPL_AUTO)
        if uses_auto_number and self.counter is None:
            job.add_flag("未配置单号计数器")

        labels: list[dict[str, str]] = []
        for row in rows:
            label_session = session
            if uses_auto_number and self.counter is not None:
                number = self.counter.get_next()
                job.auto_numbers.append(number)
                label_session = session.with_auto_number(number)
            context = ResolutionContext(mode=ResolveMode.PRINT_ROW, session=label_session, row=row)
            labels.append(resolve_template(template, context))
        return labels

    def _release_surface(self, job: PrintJob, reason: ReleaseReason) -> None:
        """释放渲染面，回到 Idle"""
        with self._lock:
            self._surfaces.pop(job.job_id, None)
            self._cycles.pop(job.job_id, None)
        logger.info(f"[{job.job_id}] 打印周期结束: {job.state.value}")
