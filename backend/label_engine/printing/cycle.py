"""
打印周期 - 渲染面的释放控制

一个周期在以下任一事件发生时释放渲染面：
- 宿主回调打印完成（print event）
- 超时兜底（宿主未回调）
- 宿主报错

释放只执行一次：两个事件可能在不同线程几乎同时到达，以锁保证幂等。
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from ..models import PrintCycleState, PrintJob, ReleaseReason

logger = logging.getLogger(__name__)


class PrintCycle:
    """单个打印周期"""

    def __init__(
        self,
        job: PrintJob,
        on_release: Callable[[PrintJob, ReleaseReason], None] | None = None,
        timeout_sec: float = 2.0,
    ):
        self.job = job
        self.timeout_sec = timeout_sec
        self._on_release = on_release
        self._lock = threading.Lock()
        self._released = threading.Event()
        self._timer: threading.Timer | None = None

    @property
    def state(self) -> PrintCycleState:
        return self.job.state

    @property
    def released(self) -> bool:
        return self._released.is_set()

    def start(self) -> None:
        """进入渲染状态"""
        self.job.mark_rendering()

    def arm_timeout(self) -> None:
        """文档已交给宿主后启动超时兜底计时（已释放时不启动）"""
        with self._lock:
            if self._released.is_set():
                return
            self._timer = threading.Timer(self.timeout_sec, self._on_timeout)
            self._timer.daemon = True
            self._timer.start()

    def on_print_event(self) -> None:
        """宿主打印完成回调"""
        self.release(ReleaseReason.PRINT_EVENT)

    def _on_timeout(self) -> None:
        if self.release(ReleaseReason.TIMEOUT):
            logger.warning(f"[{self.job.job_id}] 未收到打印完成事件，超时释放")

    def release(self, reason: ReleaseReason) -> bool:
        """
        释放渲染面

        Returns:
            本次调用是否执行了释放（重复调用返回False）
        """
        with self._lock:
            if self._released.is_set():
                return False
            if self._timer is not None:
                self._timer.cancel()
            self.job.mark_released(reason)
            try:
                if self._on_release is not None:
                    self._on_release(self.job, reason)
            finally:
                self._released.set()
        logger.info(f"[{self.job.job_id}] 渲染面已释放: {reason.value}")
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """等待释放完成"""
        return self._released.wait(timeout)
