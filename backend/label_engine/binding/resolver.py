"""
绑定解析器 - 元素 + 上下文 → 显示字符串

解析优先级（严格按序）：
1. 静态元素 → element.value 原样
2. 系统key → 会话值（操作员/部门/今天/打印时输入/CIPL单号），缺失时显示占位
3. 无数据行（编辑/预览） → [binding_key]
4. 数据行查找：缺失 → ""，存在 → 按 format 格式化

解析器为纯函数，不抛异常；格式化失败回退到原始字符串。

测试要点：
- test_static_passthrough: 静态元素原样输出
- test_operator_wins_over_row: 系统key优先于数据行同名列
- test_design_placeholder: 无数据行时显示 [key]
- test_missing_column_empty: 缺列为空串
"""

from __future__ import annotations

from ..models import (
    ElementBase,
    LabelTemplate,
    LabelValueElement,
    ResolutionContext,
    ResolveMode,
    SessionContext,
)
from .formatters import format_today, format_value, to_display_string
from .schema_registry import INPUT_KEYS, SYSTEM_PLACEHOLDERS, SystemKeys, is_system_key


def _or_placeholder(value: object, key: str) -> str:
    text = to_display_string(value)
    if text:
        return text
    return SYSTEM_PLACEHOLDERS.get(key, f"[{key}]")


def resolve_system_value(element: ElementBase, session: SessionContext) -> str:
    """系统key取值（来源为会话，与数据行无关）"""
    key = element.binding_key
    if key == SystemKeys.OPERATOR_NAME:
        return _or_placeholder(session.operator_name, key)
    if key == SystemKeys.VAR_DEPT:
        return _or_placeholder(session.department, key)
    if key == SystemKeys.VAR_DATE_ONLY:
        return format_today(session.get_today())
    if key == SystemKeys.CIPL_AUTO:
        return _or_placeholder(session.auto_number, key)
    if key in INPUT_KEYS:
        return _or_placeholder(session.inputs.get(key), key)
    # 工具key不携带数据
    return element.value


def resolve(element: ElementBase, context: ResolutionContext) -> str:
    """解析元素显示值"""
    if not element.is_dynamic:
        return element.value

    key = element.binding_key
    if not key:
        return element.value

    if is_system_key(key):
        return resolve_system_value(element, context.session)

    if not context.has_row:
        return f"[{key}]"

    raw = context.row.get(key)
    if raw is None:
        return ""
    return format_value(raw, element.format)


def display_text(element: ElementBase, value: str) -> str:
    """
    元素最终显示文本

    标签/值元素横向合成为 "LABEL : VALUE"，纵向为标签、值各占一行；
    其余元素即解析值。
    """
    if isinstance(element, LabelValueElement) and element.label_text:
        if element.layout == "vertical":
            return f"{element.label_text}\n{value}"
        return f"{element.label_text} {element.separator} {value}"
    return value


class BindingResolver:
    """
    绑定解析器

    持有会话上下文，按模式批量解析整张模板
    """

    def __init__(self, session: SessionContext | None = None):
        self.session = session or SessionContext()

    def context_for(self, row: dict | None, mode: ResolveMode | None = None) -> ResolutionContext:
        """构造解析上下文（未指定模式时：有行 → print-row，无行 → design）"""
        if mode is None:
            mode = ResolveMode.PRINT_ROW if row is not None else ResolveMode.DESIGN
        return ResolutionContext(mode=mode, session=self.session, row=row)

    def resolve(self, element: ElementBase, context: ResolutionContext) -> str:
        return resolve(element, context)

    def resolve_template(
        self,
        template: LabelTemplate,
        row: dict | None = None,
        mode: ResolveMode | None = None,
        session: SessionContext | None = None,
    ) -> dict[str, str]:
        """
        解析模板所有元素

        Returns:
            {元素ID: 显示值}
        """
        context = self.context_for(row, mode)
        if session is not None:
            context = context.model_copy(update={"session": session})
        return {el.id: resolve(el, context) for el in template.elements}


def resolve_template(
    template: LabelTemplate,
    context: ResolutionContext,
) -> dict[str, str]:
    """按给定上下文解析模板所有元素"""
    return {el.id: resolve(el, context) for el in template.elements}
