"""
PDF 打印面单元测试

使用 pypdf 回读 reportlab 生成的 PDF
"""

import io
from datetime import date

import pytest
from pypdf import PdfReader
from reportlab.lib import colors
from reportlab.pdfgen import canvas

from label_engine.binding import BindingResolver
from label_engine.layout import mm_to_pt
from label_engine.models import (
    BarcodeElement,
    BatchRange,
    LabelTemplate,
    RectangleElement,
    SessionContext,
    TableElement,
)
from label_engine.printing import PdfSurfaceRenderer, build_print_filename, build_print_stylesheet
from label_engine.printing.surface import fit_font_size, map_font_name, parse_color


def _render(template: LabelTemplate, rows: list[dict], session: SessionContext) -> PdfReader:
    resolver = BindingResolver(session)
    labels = [resolver.resolve_template(template, row=row) for row in rows]
    data = PdfSurfaceRenderer().render(template, labels)
    return PdfReader(io.BytesIO(data))


class TestRender:
    """渲染"""

    def test_page_count(self, sample_template, sample_rows, session):
        """页数 = 标签数"""
        reader = _render(sample_template, sample_rows, session)
        assert len(reader.pages) == len(sample_rows)

    def test_page_size(self, sample_template, sample_rows, session):
        """页面尺寸 = 模板尺寸（mm → pt）"""
        reader = _render(sample_template, sample_rows[:1], session)
        box = reader.pages[0].mediabox
        assert float(box.width) == pytest.approx(mm_to_pt(100), abs=0.01)
        assert float(box.height) == pytest.approx(mm_to_pt(50), abs=0.01)

    def test_text_content(self, sample_template, sample_rows, session):
        reader = _render(sample_template, sample_rows[:2], session)
        first = reader.pages[0].extract_text()
        second = reader.pages[1].extract_text()
        assert "SHIPPING LABEL" in first
        assert "MAT001" in first
        assert "Budi" in first
        assert "MAT002" in second

    def test_auto_number_on_page(self, cipl_template, sample_rows, session):
        resolver = BindingResolver(session.with_auto_number(18506))
        labels = [resolver.resolve_template(cipl_template, row=sample_rows[0])]
        reader = PdfReader(io.BytesIO(PdfSurfaceRenderer().render(cipl_template, labels)))
        text = reader.pages[0].extract_text()
        assert "CIPL NO" in text
        assert "18506" in text

    def test_all_element_types(self, session):
        """各类元素均可绘制"""
        template = LabelTemplate(
            name="Mixed",
            width=80,
            height=60,
            elements=[
                RectangleElement(id="box", x=0, y=0, width=80, height=60, corner_radius=4, background_color="#eeeeee"),
                BarcodeElement(id="bc128", x=2, y=2, width=50, height=15, value="abc-128", symbology="code128"),
                TableElement(
                    id="tbl",
                    x=2,
                    y=20,
                    width=60,
                    height=30,
                    rows=3,
                    columns=2,
                    header_row=True,
                    auto_number=True,
                    cell_data=[["No", "Part"], ["", "Bolt"], ["", "Nut"]],
                ),
            ],
        )
        data = PdfSurfaceRenderer().render(template, [{}])
        reader = PdfReader(io.BytesIO(data))
        assert len(reader.pages) == 1
        assert "Bolt" in reader.pages[0].extract_text()

    def test_static_values_without_resolution(self, sample_template):
        """缺少解析值时使用元素静态值"""
        data = PdfSurfaceRenderer().render(sample_template, [{}])
        text = PdfReader(io.BytesIO(data)).pages[0].extract_text()
        assert "SHIPPING LABEL" in text


class TestTextFitting:
    """字号自适应"""

    def test_fits_unchanged(self):
        pdf = canvas.Canvas(io.BytesIO())
        assert fit_font_size(pdf, ["Hi"], "Helvetica", 10, 200, 50) == 10

    def test_shrinks(self):
        pdf = canvas.Canvas(io.BytesIO())
        size = fit_font_size(pdf, ["W" * 40], "Helvetica", 12, 100, 50)
        assert 4 <= size < 12

    def test_min_size(self):
        pdf = canvas.Canvas(io.BytesIO())
        assert fit_font_size(pdf, ["W" * 500], "Helvetica", 12, 10, 50) == 4


class TestHelpers:
    """字体/颜色/样式/文件名"""

    def test_map_font_name(self):
        assert map_font_name("Arial") == "Helvetica"
        assert map_font_name("Arial", bold=True) == "Helvetica-Bold"
        assert map_font_name("Courier New") == "Courier"

    def test_parse_color(self):
        assert parse_color("#ff0000").hexval() == "0xff0000"
        assert parse_color("#zzzzzz") is colors.black
        assert parse_color(None) is colors.black

    def test_stylesheet(self):
        css = build_print_stylesheet(LabelTemplate(width=100, height=50))
        assert "size: 100mm 50mm" in css
        assert "margin: 0" in css

    def test_stylesheet_hides_other_content(self):
        """只输出标签区域，尺寸与模板一致"""
        css = build_print_stylesheet(LabelTemplate(width=80.5, height=40))
        assert "body * { visibility: hidden; }" in css
        assert ".label-page, .label-page * { visibility: visible; }" in css
        assert "width: 80.5mm !important;" in css
        assert "height: 40mm !important;" in css

    def test_filename(self):
        today = date(2026, 1, 5)
        assert build_print_filename("Box Label", today=today) == "Box_Label_2026-01-05.pdf"
        batch = BatchRange(start=50, end=100)
        assert build_print_filename("Box Label", batch, today=today) == "Box_Label_Batch_50-100_2026-01-05.pdf"
