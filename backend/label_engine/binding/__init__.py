"""
绑定模块 - 字段注册表、值格式化、绑定解析

子模块：
- schema_registry: 系统key、初始字段表、字段注册表
- formatters: 货币/日期/Code 39 格式化
- resolver: 元素 + 上下文 → 显示字符串
- barcode_fonts: 条码字体 → 码制
"""

from .barcode_fonts import BUILTIN_BARCODE_FONTS, BarcodeFont, get_barcode_font, resolve_symbology
from .formatters import apply_format, format_value
from .resolver import BindingResolver, display_text, resolve, resolve_template
from .schema_registry import (
    INITIAL_SCHEMA,
    SYSTEM_KEYS,
    SYSTEM_PLACEHOLDERS,
    SchemaRegistry,
    SystemKeys,
    create_bound_element,
    is_system_key,
)

__all__ = [
    "BUILTIN_BARCODE_FONTS",
    "BarcodeFont",
    "get_barcode_font",
    "resolve_symbology",
    "apply_format",
    "format_value",
    "BindingResolver",
    "display_text",
    "resolve",
    "resolve_template",
    "INITIAL_SCHEMA",
    "SYSTEM_KEYS",
    "SYSTEM_PLACEHOLDERS",
    "SchemaRegistry",
    "SystemKeys",
    "create_bound_element",
    "is_system_key",
]
