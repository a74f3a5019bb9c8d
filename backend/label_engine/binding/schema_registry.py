"""
字段注册表 - 系统字段 + 主数据字段 + 自定义字段

职责：
1. 定义系统保留key（操作员/打印时输入/系统变量/工具）
2. 维护可绑定字段列表（系统字段不可修改、不可删除）
3. 从 Excel 表头同步自定义字段（key 规范化 + 大小写不敏感去重）
4. 从字段创建绑定元素（拖放到画布）
5. 断链检测：绑定key不在当前字段表中的元素

测试要点：
- test_replace_schema_keeps_system: 系统字段始终在前
- test_sync_from_headers_dedup: 表头去重
- test_create_bound_element_clamped: 放置位置夹取
"""

from __future__ import annotations

import logging
import uuid

from ..data.keys import sanitize_key
from ..models import (
    BarcodeElement,
    ElementBase,
    ElementType,
    LabelTemplate,
    LabelValueElement,
    SchemaField,
    TextElement,
    create_default_element,
    generate_element_id,
)
from ..models.element import (
    DEFAULT_BARCODE_HEIGHT,
    DEFAULT_ELEMENT_WIDTH,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_LABEL_VALUE_HEIGHT,
    DEFAULT_LABEL_VALUE_WIDTH,
    DEFAULT_TEXT_HEIGHT,
)

logger = logging.getLogger(__name__)


class SystemKeys:
    """系统保留绑定key"""
    OPERATOR_NAME = "__SYS_OPERATOR_NAME__"
    # 打印时输入
    INPUT_QTY = "__SYS_INPUT_QTY__"
    INPUT_SO = "__SYS_INPUT_SO__"
    INPUT_PLAN = "__SYS_INPUT_PLAN__"
    INPUT_NO_PL = "__SYS_INPUT_NO_PL__"
    INPUT_LINE = "__SYS_INPUT_LINE__"
    INPUT_REMARKS = "__SYS_INPUT_REMARKS__"
    # 系统变量
    VAR_DEPT = "__SYS_DEPT__"
    VAR_DATE_ONLY = "__SYS_DATE_ONLY__"
    # 工具
    STATIC_TEXT = "__STATIC_TEXT_TOOL__"
    BARCODE_FONT = "__TOOL_BARCODE_FONT__"
    LINE = "__TOOL_LINE__"
    LABEL_VALUE = "__TOOL_LABEL_VALUE__"
    RECTANGLE = "__TOOL_RECTANGLE__"
    TABLE = "__TOOL_TABLE__"
    CIPL_AUTO = "__TOOL_CIPL_AUTO__"


SYSTEM_KEYS = SystemKeys

INPUT_KEYS = (
    SystemKeys.INPUT_QTY,
    SystemKeys.INPUT_SO,
    SystemKeys.INPUT_PLAN,
    SystemKeys.INPUT_NO_PL,
    SystemKeys.INPUT_LINE,
    SystemKeys.INPUT_REMARKS,
)

# 会话值缺失时显示的占位文本
SYSTEM_PLACEHOLDERS: dict[str, str] = {
    SystemKeys.OPERATOR_NAME: "[Unknown Operator]",
    SystemKeys.VAR_DEPT: "[Department]",
    SystemKeys.INPUT_QTY: "[Qty]",
    SystemKeys.INPUT_SO: "[Sales Order]",
    SystemKeys.INPUT_PLAN: "[Plan / Batch]",
    SystemKeys.INPUT_NO_PL: "[No PL]",
    SystemKeys.INPUT_LINE: "[Line]",
    SystemKeys.INPUT_REMARKS: "[Keterangan]",
    SystemKeys.CIPL_AUTO: "[CIPL No]",
}

OPERATOR_TOKEN = f"{{{{{SystemKeys.OPERATOR_NAME}}}}}"
QTY_TOKEN = "{{Qty}}"
CIPL_LABEL_TEXT = "CIPL NO"

# 工具字段 → 创建的静态元素类型
TOOL_ELEMENT_TYPES: dict[str, ElementType] = {
    SystemKeys.STATIC_TEXT: ElementType.TEXT,
    SystemKeys.BARCODE_FONT: ElementType.BARCODE,
    SystemKeys.LINE: ElementType.LINE,
    SystemKeys.LABEL_VALUE: ElementType.LABEL_VALUE,
    SystemKeys.RECTANGLE: ElementType.RECTANGLE,
    SystemKeys.TABLE: ElementType.TABLE,
}

# 放置时距右/下边的保留空间（mm）
DROP_MARGIN_X = 20.0
DROP_MARGIN_Y = 5.0


def _system_field(field_id: str, key: str, label: str, field_type: str = "text") -> SchemaField:
    return SchemaField(id=field_id, key=key, label=label, type=field_type, is_system=True)


INITIAL_SCHEMA: list[SchemaField] = [
    # 工具
    _system_field("tool_static", SystemKeys.STATIC_TEXT, "Static Text (Label)", "static_text"),
    _system_field("tool_bc_font", SystemKeys.BARCODE_FONT, "Barcode (Mat. No)"),
    _system_field("tool_line", SystemKeys.LINE, "Horizontal Line"),
    _system_field("tool_label_value", SystemKeys.LABEL_VALUE, "Label/Value Pair"),
    _system_field("tool_rectangle", SystemKeys.RECTANGLE, "Rectangle/Box"),
    _system_field("tool_table", SystemKeys.TABLE, "Table/Grid"),
    _system_field("tool_cipl_auto", SystemKeys.CIPL_AUTO, "CIPL Auto-Number"),
    # 打印时输入
    _system_field("sys_qty", SystemKeys.INPUT_QTY, "Item Qty (Input)", "number"),
    _system_field("sys_so", SystemKeys.INPUT_SO, "SO (Input)"),
    _system_field("sys_no_pl", SystemKeys.INPUT_NO_PL, "No PL (Input)"),
    _system_field("sys_line", SystemKeys.INPUT_LINE, "Line (Input)"),
    _system_field("sys_plan", SystemKeys.INPUT_PLAN, "Plan / Batch (Input)"),
    _system_field("sys_remarks", SystemKeys.INPUT_REMARKS, "Keterangan (Input)"),
    # 系统变量（只读）
    _system_field("sys_date", SystemKeys.VAR_DATE_ONLY, "Date (dd-MM-yyyy)", "date"),
    _system_field("sys_dept", SystemKeys.VAR_DEPT, "Department (User)"),
    _system_field("sys_operator", SystemKeys.OPERATOR_NAME, "Operator Name"),
    # 主数据
    SchemaField(id="f_mat", key="material", label="Material Number"),
    SchemaField(id="f_desc", key="material_description", label="Material Description"),
    SchemaField(id="f_uom", key="base_unit_of_measure", label="Base UoM"),
]

SYSTEM_KEY_SET = frozenset(f.key for f in INITIAL_SCHEMA if f.is_system)


def is_system_key(key: str | None) -> bool:
    """是否为系统保留key"""
    return key in SYSTEM_KEY_SET


def initial_schema() -> list[SchemaField]:
    """初始字段表副本"""
    return [f.model_copy() for f in INITIAL_SCHEMA]


class SchemaRegistry:
    """可绑定字段注册表"""

    def __init__(self, fields: list[SchemaField] | None = None):
        self._fields: list[SchemaField] = []
        self.replace_schema(fields or [])

    @property
    def fields(self) -> list[SchemaField]:
        return list(self._fields)

    def keys(self) -> set[str]:
        return {f.key for f in self._fields}

    def get_by_key(self, key: str) -> SchemaField | None:
        for f in self._fields:
            if f.key == key:
                return f
        return None

    def _has_key(self, key: str) -> bool:
        lowered = key.lower()
        return any(f.key.lower() == lowered for f in self._fields)

    def add_field(self, key: str, label: str | None = None, field_type: str = "text") -> SchemaField:
        """
        添加自定义字段（key 规范化后大小写不敏感去重）

        Raises:
            ValueError: key 为空或已存在
        """
        clean_key = sanitize_key(key)
        if not clean_key:
            raise ValueError(f"字段key无效: {key!r}")
        if self._has_key(clean_key):
            raise ValueError(f"字段key已存在: {clean_key}")

        field = SchemaField(
            id=f"custom_{uuid.uuid4().hex[:8]}",
            key=clean_key,
            label=label or key,
            type=field_type,
            is_custom=True,
        )
        self._fields.append(field)
        logger.info(f"添加字段: {clean_key}")
        return field

    def update_field(self, field_id: str, **updates) -> SchemaField:
        """
        更新字段（系统字段不可修改）

        Raises:
            KeyError: 字段不存在
            ValueError: 系统字段
        """
        for i, f in enumerate(self._fields):
            if f.id == field_id:
                if f.is_system:
                    raise ValueError(f"系统字段不可修改: {f.key}")
                updated = f.model_copy(update=updates)
                self._fields[i] = updated
                return updated
        raise KeyError(field_id)

    def delete_field(self, field_id: str) -> None:
        """
        删除字段（系统字段不可删除）

        Raises:
            ValueError: 系统字段
        """
        for f in self._fields:
            if f.id == field_id:
                if f.is_system:
                    raise ValueError(f"系统字段不可删除: {f.key}")
                self._fields = [x for x in self._fields if x.id != field_id]
                logger.info(f"删除字段: {f.key}")
                return

    def replace_schema(self, incoming: list[SchemaField]) -> None:
        """
        替换字段表：系统字段固定在前，随后为传入的非系统字段

        传入为空时恢复初始字段表。
        """
        if not incoming:
            self._fields = initial_schema()
            return
        system_fields = [f for f in INITIAL_SCHEMA if f.is_system]
        others = [f for f in incoming if not f.is_system and not is_system_key(f.key)]
        self._fields = [f.model_copy() for f in system_fields] + list(others)

    def sync_from_headers(self, headers: list[str]) -> list[SchemaField]:
        """
        按 Excel 表头同步自定义字段

        Returns:
            新增的字段
        """
        added: list[SchemaField] = []
        for header in headers:
            key = sanitize_key(header)
            if not key or self._has_key(key):
                continue
            field = SchemaField(
                id=f"auto_{uuid.uuid4().hex[:8]}",
                key=key,
                label=header,
                type="text",
                is_custom=True,
            )
            self._fields.append(field)
            added.append(field)
        if added:
            logger.info(f"从表头同步字段: {len(added)} 个")
        return added

    def find_broken_links(self, template: LabelTemplate) -> list[ElementBase]:
        """绑定key不在当前字段表中的元素"""
        keys = self.keys()
        return [el for el in template.elements if el.is_bound and el.binding_key not in keys]


def _drop_position(template: LabelTemplate, x: float, y: float) -> tuple[float, float]:
    x = max(0.0, min(x, template.width - DROP_MARGIN_X))
    y = max(0.0, min(y, template.height - DROP_MARGIN_Y))
    return x, y


def create_bound_element(
    field: SchemaField,
    x: float,
    y: float,
    template: LabelTemplate,
) -> ElementBase:
    """
    从字段创建元素（字段拖放到画布）

    工具字段创建对应类型的静态元素；CIPL 自动单号创建绑定的标签/值元素；
    其余字段创建绑定的文本/条码元素，占位值为 {{key}}。
    """
    x, y = _drop_position(template, x, y)

    if field.key in TOOL_ELEMENT_TYPES:
        return create_default_element(TOOL_ELEMENT_TYPES[field.key], x, y)

    if field.key == SystemKeys.CIPL_AUTO:
        return LabelValueElement(
            id=generate_element_id(),
            x=x,
            y=y,
            width=DEFAULT_LABEL_VALUE_WIDTH,
            height=DEFAULT_LABEL_VALUE_HEIGHT,
            label_text=CIPL_LABEL_TEXT,
            value=f"{{{{{field.key}}}}}",
            is_dynamic=True,
            binding_key=field.key,
            schema_label=field.label,
        )

    if field.key == SystemKeys.OPERATOR_NAME:
        value = OPERATOR_TOKEN
    elif field.key == SystemKeys.INPUT_QTY:
        value = QTY_TOKEN
    else:
        value = f"{{{{{field.key}}}}}"

    common = dict(
        id=generate_element_id(),
        x=x,
        y=y,
        width=DEFAULT_ELEMENT_WIDTH,
        value=value,
        is_dynamic=True,
        binding_key=field.key,
        schema_label=field.label,
        font_size=DEFAULT_FONT_SIZE,
    )
    if field.type == "barcode":
        return BarcodeElement(height=DEFAULT_BARCODE_HEIGHT, **common)
    return TextElement(height=DEFAULT_TEXT_HEIGHT, font_family=DEFAULT_FONT_FAMILY, **common)
