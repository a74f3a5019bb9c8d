"""
标签模板模型 - 画布尺寸 + 元素列表

模板级约束：
- width/height > 0
- 元素ID唯一
- 元素越界属于提示性问题（由几何引擎夹取修复，模型层不拒绝）
"""

from __future__ import annotations

import time
import uuid

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .element import ELEMENT_CLASSES, ElementBase, ElementType, LabelElement
from .schema import SchemaField

DEFAULT_TEMPLATE_WIDTH = 100.0
DEFAULT_TEMPLATE_HEIGHT = 50.0
DEFAULT_TEMPLATE_NAME = "New Template"


def now_ms() -> int:
    """当前时间（epoch 毫秒）"""
    return int(time.time() * 1000)


class LabelTemplate(BaseModel):
    """标签模板"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = DEFAULT_TEMPLATE_NAME
    width: float = Field(DEFAULT_TEMPLATE_WIDTH, description="画布宽(mm)")
    height: float = Field(DEFAULT_TEMPLATE_HEIGHT, description="画布高(mm)")
    elements: list[LabelElement] = Field(default_factory=list)

    # 模板持久化的自定义字段
    data_schema: list[SchemaField] = Field(default_factory=list, alias="schema")
    last_modified: int = Field(default_factory=now_ms, description="epoch毫秒")

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def get_element(self, element_id: str) -> ElementBase | None:
        """按ID获取元素"""
        for element in self.elements:
            if element.id == element_id:
                return element
        return None

    def uses_binding(self, binding_key: str) -> bool:
        """模板中是否有元素绑定到指定key"""
        return any(el.is_bound and el.binding_key == binding_key for el in self.elements)

    def bound_keys(self) -> list[str]:
        """模板中所有绑定key（去重，保持顺序）"""
        keys: list[str] = []
        for element in self.elements:
            if element.is_bound and element.binding_key not in keys:
                keys.append(element.binding_key)
        return keys


def is_valid_template(template: LabelTemplate) -> list[str]:
    """
    模板一致性校验，返回问题列表（不抛异常）

    越界问题只作提示，几何引擎负责修复。
    """
    violations: list[str] = []

    if template.width <= 0:
        violations.append(f"模板宽度必须大于0: {template.width}")
    if template.height <= 0:
        violations.append(f"模板高度必须大于0: {template.height}")

    seen: set[str] = set()
    for element in template.elements:
        if element.id in seen:
            violations.append(f"元素ID重复: {element.id}")
        seen.add(element.id)

        if element.is_dynamic and not element.binding_key:
            violations.append(f"绑定元素缺少bindingKey: {element.id}")

        width, height = element.effective_size()
        if element.x < 0 or element.y < 0:
            violations.append(f"元素越界(负坐标): {element.id}")
        if template.width > 0 and element.x + width > template.width:
            violations.append(f"元素越界(右侧): {element.id}")
        if template.height > 0 and element.y + height > template.height:
            violations.append(f"元素越界(底部): {element.id}")

    return violations


def generate_element_id() -> str:
    """生成元素ID"""
    return f"el-{uuid.uuid4().hex[:9]}"


def create_default_element(
    element_type: ElementType | str,
    x: float = 0.0,
    y: float = 0.0,
    element_id: str | None = None,
) -> ElementBase:
    """按类型创建带默认尺寸的静态元素"""
    kind = ElementType(element_type)
    cls = ELEMENT_CLASSES[kind]
    element = cls(id=element_id or generate_element_id(), x=x, y=y)
    width, height = element.default_size()
    element.width = width
    element.height = height

    if kind == ElementType.TEXT:
        element.value = "Text"
    elif kind == ElementType.BARCODE:
        element.value = "123456"
    elif kind == ElementType.LABEL_VALUE:
        element.label_text = "Label"
        element.value = "Value"
    return element
