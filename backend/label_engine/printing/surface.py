"""
打印面渲染 - 已解析标签 → PDF

职责：
1. 每张标签一页，页面尺寸严格等于模板宽高（mm），无边距
2. 按元素类型绘制：文本/条码/线条/矩形/标签值/表格
3. 元素内容硬裁剪到元素框内，文本超出时自动缩小字号（不换行）
4. 条码使用 reportlab 条码控件，失败时回退为文本
5. 辅助：HTML 打印宿主用的 @page 样式、打印文件名

坐标：模板坐标原点在左上角（mm），PDF 原点在左下角（pt）。

依赖：
- reportlab: PDF 绘制、字体度量、条码

测试要点：
- test_page_count: 页数 = 标签数
- test_page_size: 页面尺寸 = 模板尺寸
"""

from __future__ import annotations

import io
import logging
import re
from datetime import date

from reportlab.graphics.barcode import code39, code128
from reportlab.lib import colors
from reportlab.pdfgen import canvas

from ..binding.barcode_fonts import resolve_symbology, strip_code39_delimiters
from ..interfaces import ISurfaceRenderer
from ..layout.units import mm_to_pt, px_to_pt
from ..models import (
    BarcodeElement,
    BatchRange,
    ElementBase,
    LabelTemplate,
    LabelValueElement,
    LineElement,
    RectangleElement,
    TableElement,
    TextElement,
)

logger = logging.getLogger(__name__)

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_MONO = "Courier"
FONT_MONO_BOLD = "Courier-Bold"
MIN_FONT_SIZE_PT = 4.0
LINE_SPACING = 1.2
BARCODE_TEXT_SIZE_PT = 6.0
CELL_PADDING_PT = 1.0

_MONO_FAMILIES = {"courier", "courier new", "monospace", "consolas"}


def map_font_name(font_family: str | None, bold: bool = False) -> str:
    """CSS 字体族 → reportlab 标准字体"""
    mono = (font_family or "").strip().lower() in _MONO_FAMILIES
    if mono:
        return FONT_MONO_BOLD if bold else FONT_MONO
    return FONT_BOLD if bold else FONT_REGULAR


def parse_color(value: str | None, default=colors.black):
    """#RRGGBB → reportlab 颜色（非法值回退默认色）"""
    if not value:
        return default
    try:
        return colors.HexColor(value)
    except (ValueError, TypeError):
        logger.warning(f"颜色值无效，使用默认色: {value}")
        return default


def fit_font_size(
    pdf: canvas.Canvas,
    lines: list[str],
    font_name: str,
    font_size: float,
    box_width: float,
    box_height: float,
    min_size: float = MIN_FONT_SIZE_PT,
) -> float:
    """超出元素框时按比例缩小字号（不低于最小字号）"""
    if not lines:
        return font_size
    max_width = max(pdf.stringWidth(line, font_name, font_size) for line in lines)
    text_height = font_size * LINE_SPACING * len(lines)
    if max_width <= box_width and text_height <= box_height:
        return font_size
    scale_w = box_width / max_width if max_width > 0 else 1.0
    scale_h = box_height / text_height if text_height > 0 else 1.0
    scale = min(1.0, scale_w, scale_h)
    return max(min_size, font_size * scale)


class PdfSurfaceRenderer(ISurfaceRenderer):
    """PDF 打印面渲染器"""

    def __init__(self, min_font_size: float = MIN_FONT_SIZE_PT):
        self.min_font_size = min_font_size

    def render(self, template: LabelTemplate, labels: list[dict[str, str]]) -> bytes:
        """渲染标签（每张一页）"""
        buffer = io.BytesIO()
        page_w = mm_to_pt(template.width)
        page_h = mm_to_pt(template.height)
        pdf = canvas.Canvas(buffer, pagesize=(page_w, page_h))
        pdf.setTitle(template.name)

        for values in labels:
            for element in template.elements:
                value = values.get(element.id, element.value)
                pdf.saveState()
                try:
                    self._draw_element(pdf, element, value, page_h)
                finally:
                    pdf.restoreState()
            pdf.showPage()

        pdf.save()
        logger.debug(f"渲染打印面: {template.name}, {len(labels)} 页")
        return buffer.getvalue()

    # ------------------------------------------------------------------
    # 元素绘制
    # ------------------------------------------------------------------

    def _box(self, element: ElementBase, page_h: float) -> tuple[float, float, float, float]:
        """元素框（PDF 坐标，左下角 + 宽高）"""
        width_mm, height_mm = element.effective_size()
        x = mm_to_pt(element.x)
        w = mm_to_pt(width_mm)
        h = mm_to_pt(height_mm)
        y = page_h - mm_to_pt(element.y) - h
        return x, y, w, h

    def _clip(self, pdf: canvas.Canvas, x: float, y: float, w: float, h: float) -> None:
        path = pdf.beginPath()
        path.rect(x, y, w, h)
        pdf.clipPath(path, stroke=0, fill=0)

    def _draw_element(self, pdf: canvas.Canvas, element: ElementBase, value: str, page_h: float) -> None:
        x, y, w, h = self._box(element, page_h)
        self._clip(pdf, x, y, w, h)

        if isinstance(element, TextElement):
            font = map_font_name(element.font_family, element.font_weight == "bold")
            self._draw_text(pdf, value, font, px_to_pt(element.font_size), (x, y, w, h), element.text_align)
        elif isinstance(element, BarcodeElement):
            self._draw_barcode(pdf, element, value, (x, y, w, h))
        elif isinstance(element, LineElement):
            self._draw_line(pdf, element, (x, y, w, h))
        elif isinstance(element, RectangleElement):
            self._draw_rectangle(pdf, element, (x, y, w, h))
        elif isinstance(element, LabelValueElement):
            self._draw_label_value(pdf, element, value, (x, y, w, h))
        elif isinstance(element, TableElement):
            self._draw_table(pdf, element, (x, y, w, h))

    def _draw_text(
        self,
        pdf: canvas.Canvas,
        text: str,
        font: str,
        font_size: float,
        box: tuple[float, float, float, float],
        align: str = "left",
    ) -> None:
        """绘制文本（垂直居中，超出时缩小字号）"""
        x, y, w, h = box
        lines = text.splitlines()
        if not lines:
            return
        size = fit_font_size(pdf, lines, font, font_size, w, h, self.min_font_size)
        leading = size * LINE_SPACING
        block_h = leading * len(lines)
        top = y + (h + block_h) / 2.0

        pdf.setFont(font, size)
        pdf.setFillColor(colors.black)
        for index, line in enumerate(lines):
            baseline = top - leading * index - size
            line_w = pdf.stringWidth(line, font, size)
            if align == "center":
                tx = x + (w - line_w) / 2.0
            elif align == "right":
                tx = x + w - line_w
            else:
                tx = x
            pdf.drawString(tx, baseline, line)

    def _draw_barcode(
        self,
        pdf: canvas.Canvas,
        element: BarcodeElement,
        value: str,
        box: tuple[float, float, float, float],
    ) -> None:
        x, y, w, h = box
        if not value:
            return

        text_h = BARCODE_TEXT_SIZE_PT * LINE_SPACING if element.show_text else 0.0
        bar_h = max(h - text_h, 1.0)
        symbology = resolve_symbology(element.symbology, element.font_family)

        try:
            if symbology == "code128":
                data = value
                widget = code128.Code128(data, barHeight=bar_h, barWidth=1.0, quiet=0, humanReadable=False)
            else:
                data = strip_code39_delimiters(value)
                widget = code39.Standard39(
                    data, barHeight=bar_h, barWidth=1.0, quiet=0, stop=1, checksum=0, humanReadable=False
                )
            if widget.width <= 0:
                raise ValueError(f"条码宽度为0: {value!r}")

            pdf.saveState()
            try:
                pdf.translate(x, y + text_h)
                pdf.scale(w / widget.width, 1.0)
                widget.drawOn(pdf, 0, 0)
            finally:
                pdf.restoreState()
        except Exception as e:
            logger.warning(f"条码渲染失败，回退为文本: {element.id}: {e}")
            self._draw_text(pdf, value, FONT_MONO, px_to_pt(element.font_size), box, "center")
            return

        if element.show_text:
            self._draw_text(pdf, data, FONT_REGULAR, BARCODE_TEXT_SIZE_PT, (x, y, w, text_h), "center")

    def _draw_line(self, pdf: canvas.Canvas, element: LineElement, box: tuple[float, float, float, float]) -> None:
        x, y, w, h = box
        thickness = px_to_pt(element.line_thickness)
        pdf.setLineWidth(thickness)
        pdf.setStrokeColor(parse_color(element.line_color))
        if element.line_style == "dashed":
            pdf.setDash(thickness * 4, thickness * 2)
        elif element.line_style == "dotted":
            pdf.setDash(thickness, thickness * 2)
        mid_y = y + h / 2.0
        pdf.line(x, mid_y, x + w, mid_y)

    def _draw_rectangle(
        self,
        pdf: canvas.Canvas,
        element: RectangleElement,
        box: tuple[float, float, float, float],
    ) -> None:
        x, y, w, h = box
        border = px_to_pt(element.border_width)
        fill = 1 if element.background_color else 0
        stroke = 1 if border > 0 else 0
        if not fill and not stroke:
            return

        if fill:
            pdf.setFillColor(parse_color(element.background_color, colors.white))
        if stroke:
            pdf.setLineWidth(border)
            pdf.setStrokeColor(parse_color(element.border_color))
            if element.border_style == "dashed":
                pdf.setDash(border * 4, border * 2)
            elif element.border_style == "dotted":
                pdf.setDash(border, border * 2)

        # 描边居中于路径，内缩半个线宽避免被裁剪
        inset = border / 2.0
        radius = px_to_pt(element.corner_radius)
        rx, ry, rw, rh = x + inset, y + inset, max(w - border, 0.0), max(h - border, 0.0)
        if radius > 0:
            pdf.roundRect(rx, ry, rw, rh, radius, stroke=stroke, fill=fill)
        else:
            pdf.rect(rx, ry, rw, rh, stroke=stroke, fill=fill)

    def _draw_label_value(
        self,
        pdf: canvas.Canvas,
        element: LabelValueElement,
        value: str,
        box: tuple[float, float, float, float],
    ) -> None:
        x, y, w, h = box
        label_font = map_font_name(element.font_family, element.label_bold)
        value_font = map_font_name(element.font_family, element.font_weight == "bold")
        size = px_to_pt(element.font_size)

        if element.layout == "vertical":
            half = h / 2.0
            self._draw_text(pdf, element.label_text, label_font, size, (x, y + half, w, half))
            self._draw_text(pdf, value, value_font, size, (x, y, w, half))
            return

        label_part = f"{element.label_text} {element.separator} " if element.label_text else ""
        total = pdf.stringWidth(label_part, label_font, size) + pdf.stringWidth(value, value_font, size)
        if total > w and total > 0:
            size = max(self.min_font_size, size * w / total)
        size = min(size, h / LINE_SPACING) if h > 0 else size
        size = max(size, self.min_font_size)

        baseline = y + (h - size) / 2.0 + size * 0.2
        pdf.setFillColor(colors.black)
        pdf.setFont(label_font, size)
        pdf.drawString(x, baseline, label_part)
        label_w = pdf.stringWidth(label_part, label_font, size)
        pdf.setFont(value_font, size)
        pdf.drawString(x + label_w, baseline, value)

    def _draw_table(self, pdf: canvas.Canvas, element: TableElement, box: tuple[float, float, float, float]) -> None:
        x, y, w, h = box
        cell_w = w / element.columns
        cell_h = h / element.rows
        size = px_to_pt(element.font_size)

        if element.show_borders:
            pdf.setLineWidth(0.5)
            pdf.setStrokeColor(colors.black)
            for r in range(element.rows + 1):
                ly = y + h - r * cell_h
                pdf.line(x, ly, x + w, ly)
            for c in range(element.columns + 1):
                lx = x + c * cell_w
                pdf.line(lx, y, lx, y + h)

        for r in range(element.rows):
            bold = element.header_row and r == 0
            font = FONT_BOLD if bold else FONT_REGULAR
            for c in range(element.columns):
                text = element.get_cell(r, c)
                if not text:
                    continue
                cx = x + c * cell_w + CELL_PADDING_PT
                cy = y + h - (r + 1) * cell_h
                cell_box = (cx, cy, max(cell_w - 2 * CELL_PADDING_PT, 0.0), cell_h)
                pdf.saveState()
                self._clip(pdf, *cell_box)
                self._draw_text(pdf, text, font, size, cell_box, "center" if bold else "left")
                pdf.restoreState()


# ============================================================================
# 打印宿主辅助
# ============================================================================

def build_print_stylesheet(template: LabelTemplate) -> str:
    """
    HTML 打印宿主用 @media print 样式

    - 页面 = 标签尺寸，无边距
    - 标签区域（.label-page）以外的页面内容不输出
    """
    width = f"{template.width:g}mm"
    height = f"{template.height:g}mm"
    return (
        "@media print {\n"
        f"  @page {{ size: {width} {height}; margin: 0; }}\n"
        "  html, body { margin: 0; padding: 0; background: white; }\n"
        "  body * { visibility: hidden; }\n"
        "  .no-print { display: none !important; }\n"
        "  .label-page, .label-page * { visibility: visible; }\n"
        "  .label-page {\n"
        "    position: relative;\n"
        f"    width: {width} !important;\n"
        f"    height: {height} !important;\n"
        "    overflow: hidden;\n"
        "    page-break-after: always;\n"
        "    break-after: page;\n"
        "  }\n"
        "}\n"
    )


def build_print_filename(
    template_name: str,
    batch: BatchRange | None = None,
    today: date | None = None,
    extension: str = ".pdf",
) -> str:
    """
    打印文件名

    单张：<模板名>_<yyyy-mm-dd>
    批次：<模板名>_Batch_<start>-<end>_<yyyy-mm-dd>
    """
    safe_name = re.sub(r"[^a-z0-9]", "_", template_name or "Label", flags=re.IGNORECASE)
    day = (today or date.today()).isoformat()
    if batch is None:
        return f"{safe_name}_{day}{extension}"
    return f"{safe_name}_Batch_{batch.start}-{batch.end}_{day}{extension}"
