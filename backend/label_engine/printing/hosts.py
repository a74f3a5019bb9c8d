"""
打印宿主实现

- FileOutputHost: 将打印文档写入输出目录（无打印对话框的环境，如命令行工具）
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from ..interfaces import IPrintHost, PrintError
from ..models import PrintJob

logger = logging.getLogger(__name__)


class FileOutputHost(IPrintHost):
    """写文件的打印宿主（写入完成即视为打印完成）"""

    def __init__(self, output_dir: Path, filename_for: Callable[[PrintJob], str] | None = None):
        self.output_dir = Path(output_dir)
        self._filename_for = filename_for or (lambda job: f"{job.job_id}.pdf")
        self.written: list[Path] = []

    def print_document(
        self,
        job: PrintJob,
        document: bytes,
        on_after_print: Callable[[], None],
    ) -> None:
        out_path = self.output_dir / self._filename_for(job)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            out_path.write_bytes(document)
        except OSError as e:
            raise PrintError(f"写入打印文件失败: {out_path}: {e}") from e

        self.written.append(out_path)
        logger.info(f"[{job.job_id}] 打印文件: {out_path}")
        on_after_print()
