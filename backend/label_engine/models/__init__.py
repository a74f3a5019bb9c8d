"""
数据模型层 - 定义系统核心数据结构

所有模块通过这些模型交互，实现解耦：
- LabelTemplate / LabelElement: 模板与元素（按 type 区分）
- SchemaField: 可绑定字段
- SessionContext / ResolutionContext: 绑定解析上下文
- PrintJob / BatchRange: 打印周期
- CounterState: CIPL单号状态
"""

from .element import (
    BarcodeElement,
    ElementBase,
    ElementType,
    FormatKind,
    LabelElement,
    LabelValueElement,
    LineElement,
    RectangleElement,
    TableElement,
    TextElement,
)
from .print_job import BatchRange, PrintCycleState, PrintJob, PrintKind, ReleaseReason
from .schema import SchemaField
from .sequence import CounterState
from .session import ResolutionContext, ResolveMode, SessionContext
from .template import (
    LabelTemplate,
    create_default_element,
    generate_element_id,
    is_valid_template,
    now_ms,
)

__all__ = [
    "ElementBase",
    "ElementType",
    "FormatKind",
    "LabelElement",
    "TextElement",
    "BarcodeElement",
    "LineElement",
    "RectangleElement",
    "LabelValueElement",
    "TableElement",
    "LabelTemplate",
    "create_default_element",
    "generate_element_id",
    "is_valid_template",
    "now_ms",
    "SchemaField",
    "SessionContext",
    "ResolutionContext",
    "ResolveMode",
    "PrintJob",
    "PrintKind",
    "PrintCycleState",
    "ReleaseReason",
    "BatchRange",
    "CounterState",
]
