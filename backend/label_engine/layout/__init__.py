"""
布局模块 - 单位换算与几何引擎

子模块：
- units: mm ⇄ 像素换算，打印缩放系数
- geometry: 移动/缩放/吸附/微调/对齐参考线
"""

from .geometry import (
    AlignmentGuide,
    Canvas,
    DragMode,
    DragSession,
    Geometry,
    GeometryEngine,
    NudgeDirection,
    NudgeModifier,
    Position,
    Size,
    SnapSettings,
    apply_geometry,
    find_alignment_guides,
    snap_bounds,
    snap_position,
    snap_to_grid,
)
from .units import (
    MM_PER_INCH,
    PRINTER_DPI_203,
    PRINTER_DPI_300,
    PRINTER_DPI_600,
    REFERENCE_DPI,
    mm_to_pt,
    mm_to_px,
    print_scale_factor,
    px_to_mm,
)

__all__ = [
    "MM_PER_INCH",
    "REFERENCE_DPI",
    "PRINTER_DPI_203",
    "PRINTER_DPI_300",
    "PRINTER_DPI_600",
    "mm_to_px",
    "px_to_mm",
    "mm_to_pt",
    "print_scale_factor",
    "GeometryEngine",
    "Geometry",
    "Canvas",
    "Position",
    "Size",
    "SnapSettings",
    "DragMode",
    "DragSession",
    "NudgeDirection",
    "NudgeModifier",
    "AlignmentGuide",
    "apply_geometry",
    "find_alignment_guides",
    "snap_to_grid",
    "snap_position",
    "snap_bounds",
]
