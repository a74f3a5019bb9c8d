"""
打印模块 - 批次规划、打印周期、PDF 打印面

子模块：
- batching: 批次切分与"打印全部"告警
- cycle: 打印周期（渲染面释放仅一次）
- orchestrator: 批量打印编排
- surface: reportlab PDF 渲染
- hosts: 打印宿主实现
"""

from .batching import PrintAllDecision, batch_label, plan_batches, request_print_all
from .cycle import PrintCycle
from .hosts import FileOutputHost
from .orchestrator import BatchPrintOrchestrator
from .surface import PdfSurfaceRenderer, build_print_filename, build_print_stylesheet

__all__ = [
    "PrintAllDecision",
    "batch_label",
    "plan_batches",
    "request_print_all",
    "PrintCycle",
    "FileOutputHost",
    "BatchPrintOrchestrator",
    "PdfSurfaceRenderer",
    "build_print_filename",
    "build_print_stylesheet",
]
