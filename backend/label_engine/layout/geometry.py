"""
几何引擎 - 元素移动/缩放/吸附/键盘微调

职责：
1. 指针位移（mm）→ 新位置/尺寸，夹取到画布范围内
2. 缩放最小尺寸限制（默认 5mm）
3. 网格吸附：先按未吸附位移夹取，再取整到网格，再次夹取
4. 拖拽会话：始终基于起始几何 + 累计位移计算，避免多次事件累积漂移
5. 模板几何修复（导入/旧模板越界元素）

所有函数均为纯函数，返回新几何；写回模板由调用方负责。

测试要点：
- test_move_clamped: 移动夹取
- test_resize_min_size: 最小尺寸
- test_snap_idempotent: 吸附幂等
- test_drag_session_no_drift: 拖拽无漂移
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..models import ElementBase, LabelTemplate
from .units import px_to_mm

DEFAULT_MIN_SIZE_MM = 5.0


@dataclass(frozen=True)
class Position:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Geometry:
    """元素几何（mm）"""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_element(cls, element: ElementBase) -> Geometry:
        width, height = element.effective_size()
        return cls(x=element.x, y=element.y, width=width, height=height)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


@dataclass(frozen=True)
class Canvas:
    """画布尺寸（mm）"""
    width: float
    height: float

    @classmethod
    def from_template(cls, template: LabelTemplate) -> Canvas:
        return cls(width=template.width, height=template.height)


@dataclass(frozen=True)
class SnapSettings:
    """网格吸附设置"""
    enabled: bool = False
    grid_size_mm: float = 5.0

    @classmethod
    def from_config(cls, config) -> SnapSettings:
        """从 GeometryConfig 构建"""
        return cls(enabled=config.snap_enabled, grid_size_mm=config.grid_size_mm)


NO_SNAP = SnapSettings()


class NudgeDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class NudgeModifier(str, Enum):
    NONE = "none"
    COARSE = "coarse"   # Shift
    FINE = "fine"       # Alt


class DragMode(str, Enum):
    MOVE = "move"
    RESIZE = "resize"


# ============================================================================
# 基础函数
# ============================================================================

def clamp(value: float, lower: float, upper: float) -> float:
    """夹取到 [lower, upper]（upper < lower 时取 lower）"""
    return max(lower, min(value, upper))


def snap_to_grid(value: float, grid_size: float, enabled: bool = True) -> float:
    """吸附到最近的网格点"""
    if not enabled or grid_size <= 0:
        return value
    return round(value / grid_size) * grid_size


def snap_position(x: float, y: float, grid_size: float, enabled: bool = True) -> Position:
    """位置吸附"""
    return Position(
        x=snap_to_grid(x, grid_size, enabled),
        y=snap_to_grid(y, grid_size, enabled),
    )


def snap_bounds(geometry: Geometry, grid_size: float, enabled: bool = True) -> Geometry:
    """位置与尺寸同时吸附"""
    if not enabled or grid_size <= 0:
        return geometry
    return Geometry(
        x=snap_to_grid(geometry.x, grid_size),
        y=snap_to_grid(geometry.y, grid_size),
        width=snap_to_grid(geometry.width, grid_size),
        height=snap_to_grid(geometry.height, grid_size),
    )


def _clamp_extent(value: float, floor: float, ceiling: float) -> float:
    """尺寸夹取：远端不得越过画布；画布剩余空间不足最小尺寸时以画布为准"""
    if ceiling < floor:
        return max(ceiling, 0.0)
    return clamp(value, floor, ceiling)


def _as_geometry(target: Geometry | ElementBase) -> Geometry:
    if isinstance(target, Geometry):
        return target
    return Geometry.from_element(target)


# ============================================================================
# 几何引擎
# ============================================================================

class GeometryEngine:
    """几何引擎"""

    def __init__(
        self,
        min_size_mm: float = DEFAULT_MIN_SIZE_MM,
        nudge_step_mm: float = 1.0,
        nudge_coarse_step_mm: float = 10.0,
        nudge_fine_step_mm: float = 0.1,
    ) -> None:
        self.min_size_mm = min_size_mm
        self.nudge_steps = {
            NudgeModifier.NONE: nudge_step_mm,
            NudgeModifier.COARSE: nudge_coarse_step_mm,
            NudgeModifier.FINE: nudge_fine_step_mm,
        }

    @classmethod
    def from_config(cls, config) -> GeometryEngine:
        """从 GeometryConfig 构建"""
        return cls(
            min_size_mm=config.min_element_size_mm,
            nudge_step_mm=config.nudge_step_mm,
            nudge_coarse_step_mm=config.nudge_coarse_step_mm,
            nudge_fine_step_mm=config.nudge_fine_step_mm,
        )

    def move(
        self,
        target: Geometry | ElementBase,
        dx_mm: float,
        dy_mm: float,
        canvas: Canvas,
        snap: SnapSettings = NO_SNAP,
    ) -> Position:
        """
        移动元素

        Args:
            target: 起始几何（或元素）
            dx_mm, dy_mm: 自会话开始以来的累计位移
            canvas: 画布
            snap: 吸附设置

        Returns:
            新位置，满足 0 ≤ x ≤ W-w, 0 ≤ y ≤ H-h
        """
        geom = _as_geometry(target)
        max_x = max(0.0, canvas.width - geom.width)
        max_y = max(0.0, canvas.height - geom.height)

        x = clamp(geom.x + dx_mm, 0.0, max_x)
        y = clamp(geom.y + dy_mm, 0.0, max_y)

        if snap.enabled:
            x = clamp(snap_to_grid(x, snap.grid_size_mm), 0.0, max_x)
            y = clamp(snap_to_grid(y, snap.grid_size_mm), 0.0, max_y)

        return Position(x=x, y=y)

    def resize(
        self,
        target: Geometry | ElementBase,
        dx_mm: float,
        dy_mm: float,
        canvas: Canvas,
        snap: SnapSettings = NO_SNAP,
    ) -> Size:
        """
        缩放元素（右下角拖拽）

        宽高不小于最小尺寸，右/下边不越过画布。
        """
        geom = _as_geometry(target)
        max_w = canvas.width - geom.x
        max_h = canvas.height - geom.y

        width = _clamp_extent(geom.width + dx_mm, self.min_size_mm, max_w)
        height = _clamp_extent(geom.height + dy_mm, self.min_size_mm, max_h)

        if snap.enabled:
            width = _clamp_extent(snap_to_grid(width, snap.grid_size_mm), self.min_size_mm, max_w)
            height = _clamp_extent(snap_to_grid(height, snap.grid_size_mm), self.min_size_mm, max_h)

        return Size(width=width, height=height)

    def nudge(
        self,
        target: Geometry | ElementBase,
        direction: NudgeDirection | str,
        canvas: Canvas,
        modifier: NudgeModifier | str = NudgeModifier.NONE,
    ) -> Position:
        """键盘方向键微调（1mm / Shift 10mm / Alt 0.1mm）"""
        step = self.nudge_steps[NudgeModifier(modifier)]
        dx, dy = {
            NudgeDirection.UP: (0.0, -step),
            NudgeDirection.DOWN: (0.0, step),
            NudgeDirection.LEFT: (-step, 0.0),
            NudgeDirection.RIGHT: (step, 0.0),
        }[NudgeDirection(direction)]
        return self.move(target, dx, dy, canvas)

    def begin_drag(
        self,
        element: ElementBase,
        mode: DragMode | str,
        pointer_x_px: float,
        pointer_y_px: float,
        canvas: Canvas,
        snap: SnapSettings = NO_SNAP,
        zoom: float = 1.0,
    ) -> DragSession:
        """开始拖拽/缩放会话，记录起始几何"""
        return DragSession(
            engine=self,
            mode=DragMode(mode),
            origin=Geometry.from_element(element),
            start_x_px=pointer_x_px,
            start_y_px=pointer_y_px,
            canvas=canvas,
            snap=snap,
            zoom=zoom,
        )

    def repair(self, template: LabelTemplate) -> LabelTemplate:
        """
        修复模板几何：越界元素缩到画布内再夹取位置

        返回新模板，原模板不变。
        """
        canvas = Canvas.from_template(template)
        elements = []
        for element in template.elements:
            geom = Geometry.from_element(element)
            width = min(geom.width, canvas.width)
            height = min(geom.height, canvas.height)
            x = clamp(geom.x, 0.0, max(0.0, canvas.width - width))
            y = clamp(geom.y, 0.0, max(0.0, canvas.height - height))
            elements.append(
                element.model_copy(update={"x": x, "y": y, "width": width, "height": height})
            )
        return template.model_copy(update={"elements": elements})


@dataclass(frozen=True)
class DragSession:
    """拖拽会话 - 以起始几何 + 累计指针位移计算"""
    engine: GeometryEngine
    mode: DragMode
    origin: Geometry
    start_x_px: float
    start_y_px: float
    canvas: Canvas
    snap: SnapSettings = NO_SNAP
    zoom: float = 1.0

    def update(self, pointer_x_px: float, pointer_y_px: float) -> Position | Size:
        """指针移动到 (x, y) 时的新位置（移动）或新尺寸（缩放）"""
        dx_mm = px_to_mm((pointer_x_px - self.start_x_px) / self.zoom)
        dy_mm = px_to_mm((pointer_y_px - self.start_y_px) / self.zoom)
        if self.mode == DragMode.MOVE:
            return self.engine.move(self.origin, dx_mm, dy_mm, self.canvas, self.snap)
        return self.engine.resize(self.origin, dx_mm, dy_mm, self.canvas, self.snap)


def apply_geometry(
    template: LabelTemplate,
    element_id: str,
    change: Position | Size,
) -> LabelTemplate:
    """将几何结果写回模板（返回新模板）"""
    if isinstance(change, Position):
        updates = {"x": change.x, "y": change.y}
    else:
        updates = {"width": change.width, "height": change.height}
    elements = [
        el.model_copy(update=updates) if el.id == element_id else el
        for el in template.elements
    ]
    return template.model_copy(update={"elements": elements})


# ============================================================================
# 对齐参考线
# ============================================================================

@dataclass(frozen=True)
class AlignmentGuide:
    orientation: str  # vertical / horizontal
    position: float
    label: str


def is_aligned(value1: float, value2: float, threshold: float = 2.0) -> bool:
    """两个坐标是否在阈值内对齐"""
    return abs(value1 - value2) <= threshold


def find_alignment_guides(
    target: Geometry,
    others: list[Geometry],
    threshold: float = 5.0,
) -> list[AlignmentGuide]:
    """查找与其他元素的对齐参考线（左/中/右，上/中/下），按方向+位置去重"""
    guides: list[AlignmentGuide] = []
    for other in others:
        pairs = [
            ("vertical", target.x, other.x, "Left"),
            ("vertical", target.center_x, other.center_x, "Center"),
            ("vertical", target.right, other.right, "Right"),
            ("horizontal", target.y, other.y, "Top"),
            ("horizontal", target.center_y, other.center_y, "Middle"),
            ("horizontal", target.bottom, other.bottom, "Bottom"),
        ]
        for orientation, mine, theirs, label in pairs:
            if is_aligned(mine, theirs, threshold):
                guides.append(AlignmentGuide(orientation, theirs, label))

    unique: list[AlignmentGuide] = []
    seen: set[tuple[str, float]] = set()
    for guide in guides:
        key = (guide.orientation, guide.position)
        if key not in seen:
            seen.add(key)
            unique.append(guide)
    return unique
