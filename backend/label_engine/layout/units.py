"""
单位换算 - mm ⇄ 像素

屏幕布局固定使用 96 DPI 参考分辨率；打印机 DPI 只用于计算导出缩放系数，
不参与屏幕几何。换算内部不做取整（仅显示时由调用方取整）。
"""

from __future__ import annotations

MM_PER_INCH = 25.4
REFERENCE_DPI = 96.0
POINTS_PER_INCH = 72.0

# 常见热敏/标签打印机分辨率
PRINTER_DPI_203 = 203.0
PRINTER_DPI_300 = 300.0
PRINTER_DPI_600 = 600.0


def mm_to_px(mm: float, dpi: float = REFERENCE_DPI) -> float:
    """mm 转像素"""
    return mm * dpi / MM_PER_INCH


def px_to_mm(px: float, dpi: float = REFERENCE_DPI) -> float:
    """像素转 mm"""
    return px * MM_PER_INCH / dpi


def mm_to_pt(mm: float) -> float:
    """mm 转 PDF 点（1/72 英寸）"""
    return mm_to_px(mm, POINTS_PER_INCH)


def px_to_pt(px: float, dpi: float = REFERENCE_DPI) -> float:
    """屏幕像素（线宽/圆角等）转 PDF 点"""
    return mm_to_pt(px_to_mm(px, dpi))


def print_scale_factor(printer_dpi: float, reference_dpi: float = REFERENCE_DPI) -> float:
    """导出缩放系数 = 参考DPI / 打印机DPI"""
    if printer_dpi <= 0:
        raise ValueError(f"打印机DPI必须大于0: {printer_dpi}")
    return reference_dpi / printer_dpi
