"""
标签元素模型 - 按 type 区分的元素联合类型

每种元素只携带自己的字段：
- text: 文本
- barcode: 条码
- line: 线条
- rectangle: 矩形/框
- label-value: 标签/值对
- table: 表格

所有坐标与尺寸单位为 mm；JSON 交换格式使用 camelCase 字段名。
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

# 默认尺寸（mm）
DEFAULT_ELEMENT_WIDTH = 40.0
DEFAULT_TEXT_HEIGHT = 10.0
DEFAULT_BARCODE_HEIGHT = 15.0
DEFAULT_LINE_HEIGHT = 2.0
DEFAULT_RECTANGLE_WIDTH = 30.0
DEFAULT_RECTANGLE_HEIGHT = 20.0
DEFAULT_LABEL_VALUE_WIDTH = 60.0
DEFAULT_LABEL_VALUE_HEIGHT = 8.0
DEFAULT_TABLE_WIDTH = 60.0
DEFAULT_TABLE_HEIGHT = 30.0
DEFAULT_FONT_SIZE = 12.0
DEFAULT_FONT_FAMILY = "Arial"

MAX_TABLE_ROWS = 20
MAX_TABLE_COLUMNS = 10


class ElementType(str, Enum):
    """元素类型枚举"""
    TEXT = "text"
    BARCODE = "barcode"
    LINE = "line"
    RECTANGLE = "rectangle"
    LABEL_VALUE = "label-value"
    TABLE = "table"


class FormatKind(str, Enum):
    """值格式化方式"""
    NONE = "none"
    CURRENCY_IDR = "currency_idr"
    CURRENCY_USD = "currency_usd"
    DATE_SHORT = "date_short"
    DATE_LONG = "date_long"
    BARCODE_39 = "barcode_39"


StrokeStyle = Literal["solid", "dashed", "dotted"]


class ElementBase(BaseModel):
    """元素公共字段"""
    id: str = Field(..., description="模板内唯一ID")
    x: float = Field(0.0, description="左上角X(mm)")
    y: float = Field(0.0, description="左上角Y(mm)")
    width: float | None = Field(None, description="宽度(mm)")
    height: float | None = Field(None, description="高度(mm)")
    value: str = Field("", description="静态值，或绑定元素的占位文本")

    # 动态绑定
    is_dynamic: bool = False
    binding_key: str | None = Field(None, description="绑定字段key")
    schema_label: str | None = Field(None, description="字段显示名（设计态别名）")
    format: FormatKind = FormatKind.NONE

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @property
    def is_bound(self) -> bool:
        """是否为有效绑定元素"""
        return bool(self.is_dynamic and self.binding_key)

    def default_size(self) -> tuple[float, float]:
        """未指定尺寸时使用的默认宽高"""
        return DEFAULT_ELEMENT_WIDTH, DEFAULT_TEXT_HEIGHT

    def effective_size(self) -> tuple[float, float]:
        """实际宽高（缺省时取类型默认值）"""
        default_w, default_h = self.default_size()
        return (self.width or default_w, self.height or default_h)


class TextElement(ElementBase):
    """文本元素"""
    type: Literal["text"] = "text"
    font_size: float = DEFAULT_FONT_SIZE  # px
    font_family: str = DEFAULT_FONT_FAMILY
    font_weight: Literal["normal", "bold"] = "normal"
    text_align: Literal["left", "center", "right"] = "left"


class BarcodeElement(ElementBase):
    """条码元素（font_family 作为条码字体选择器）"""
    type: Literal["barcode"] = "barcode"
    symbology: Literal["code128", "code39"] | None = None
    font_family: str | None = None
    font_size: float = DEFAULT_FONT_SIZE
    show_text: bool = True

    def default_size(self) -> tuple[float, float]:
        return DEFAULT_ELEMENT_WIDTH, DEFAULT_BARCODE_HEIGHT


class LineElement(ElementBase):
    """线条元素"""
    type: Literal["line"] = "line"
    line_thickness: float = 1.0  # px
    line_style: StrokeStyle = "solid"
    line_color: str = "#000000"

    def default_size(self) -> tuple[float, float]:
        return DEFAULT_ELEMENT_WIDTH, DEFAULT_LINE_HEIGHT


class RectangleElement(ElementBase):
    """矩形元素"""
    type: Literal["rectangle"] = "rectangle"
    border_width: float = 1.0  # px, 0 = 无边框
    border_style: StrokeStyle = "solid"
    border_color: str = "#000000"
    background_color: str | None = None  # None = 透明
    corner_radius: float = 0.0  # px

    def default_size(self) -> tuple[float, float]:
        return DEFAULT_RECTANGLE_WIDTH, DEFAULT_RECTANGLE_HEIGHT


class LabelValueElement(ElementBase):
    """标签/值对元素（如 "CIPL NO : 18506"）"""
    type: Literal["label-value"] = "label-value"
    label_text: str = ""
    separator: str = ":"
    layout: Literal["horizontal", "vertical"] = "horizontal"
    label_bold: bool = True
    font_size: float = DEFAULT_FONT_SIZE
    font_family: str = DEFAULT_FONT_FAMILY
    font_weight: Literal["normal", "bold"] = "normal"

    def default_size(self) -> tuple[float, float]:
        return DEFAULT_LABEL_VALUE_WIDTH, DEFAULT_LABEL_VALUE_HEIGHT


class TableElement(ElementBase):
    """表格元素"""
    type: Literal["table"] = "table"
    rows: int = Field(3, ge=1, le=MAX_TABLE_ROWS)
    columns: int = Field(3, ge=1, le=MAX_TABLE_COLUMNS)
    cell_data: list[list[str]] = Field(default_factory=list)
    show_borders: bool = True
    auto_number: bool = False
    header_row: bool = False
    font_size: float = 8.0

    def default_size(self) -> tuple[float, float]:
        return DEFAULT_TABLE_WIDTH, DEFAULT_TABLE_HEIGHT

    def get_cell(self, row: int, column: int) -> str:
        """取单元格内容（auto_number 时数据行首列自动编号）"""
        if self.auto_number and column == 0:
            data_row = row - 1 if self.header_row else row
            if data_row >= 0:
                return str(data_row + 1)
        if row < len(self.cell_data) and column < len(self.cell_data[row]):
            return self.cell_data[row][column]
        return ""


LabelElement = Annotated[
    Union[
        TextElement,
        BarcodeElement,
        LineElement,
        RectangleElement,
        LabelValueElement,
        TableElement,
    ],
    Field(discriminator="type"),
]

ELEMENT_CLASSES: dict[ElementType, type[ElementBase]] = {
    ElementType.TEXT: TextElement,
    ElementType.BARCODE: BarcodeElement,
    ElementType.LINE: LineElement,
    ElementType.RECTANGLE: RectangleElement,
    ElementType.LABEL_VALUE: LabelValueElement,
    ElementType.TABLE: TableElement,
}
