"""
模块接口契约 - 定义各模块的抽象接口

设计原则：
1. 模块间通过接口通信，不直接依赖具体实现
2. 每个接口定义清晰的输入输出类型
3. 便于单元测试和mock替换

使用方式：
    from label_engine.interfaces import ICounterStore

    class MyStore(ICounterStore):
        def read(self) -> CounterState | None:
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from .models import CounterState, LabelTemplate, PrintJob


# ============================================================================
# 单号计数器存储接口
# ============================================================================

class ICounterStore(ABC):
    """计数器存储层接口 - 多层存储中的一层"""

    name: str = "store"

    @abstractmethod
    def read(self) -> CounterState | None:
        """
        读取计数器状态

        Returns:
            存储的状态；不存在或内容无效时返回None

        Raises:
            StorageTierUnavailable: 存储层不可用
        """
        ...

    @abstractmethod
    def write(self, state: CounterState) -> None:
        """
        写入计数器状态

        Raises:
            StorageTierUnavailable: 存储层不可用
        """
        ...

    @abstractmethod
    def clear(self) -> None:
        """清除本层存储的值"""
        ...


# ============================================================================
# 打印模块接口
# ============================================================================

class ISurfaceRenderer(ABC):
    """打印面渲染器接口 - 将已解析的标签渲染为可打印文档"""

    @abstractmethod
    def render(self, template: LabelTemplate, labels: list[dict[str, str]]) -> bytes:
        """
        渲染打印面

        Args:
            template: 标签模板（决定页面物理尺寸）
            labels: 每张标签的 {元素ID: 显示值}，按数据源顺序排列

        Returns:
            打印文档字节流（每张标签一页）
        """
        ...


class IPrintHost(ABC):
    """宿主打印适配器接口 - 负责调用系统打印对话框"""

    @abstractmethod
    def print_document(
        self,
        job: PrintJob,
        document: bytes,
        on_after_print: Callable[[], None],
    ) -> None:
        """
        提交打印文档

        宿主在打印完成后调用 on_after_print（可在任意线程、可能不调用）。

        Raises:
            PrintError: 宿主无法打开打印对话框
        """
        ...


# ============================================================================
# 模板仓库接口
# ============================================================================

class ITemplateRepository(ABC):
    """模板仓库接口"""

    @abstractmethod
    def get_all(self) -> list[LabelTemplate]:
        """获取全部模板（按修改时间降序）"""
        ...

    @abstractmethod
    def get_by_id(self, template_id: str) -> LabelTemplate | None:
        """按ID获取模板"""
        ...

    @abstractmethod
    def save(self, template: LabelTemplate) -> LabelTemplate:
        """保存或更新模板"""
        ...

    @abstractmethod
    def delete(self, template_id: str) -> None:
        """删除模板"""
        ...


# ============================================================================
# 异常定义
# ============================================================================

class LabelEngineError(Exception):
    """基础异常"""
    pass


class InvalidSequenceValue(LabelEngineError):
    """单号设置值非法（管理操作，必须上抛）"""
    pass


class StorageTierUnavailable(LabelEngineError):
    """存储层不可用（记录日志，不上抛）"""
    pass


class FormatFailure(LabelEngineError):
    """值格式化失败（解析器内部捕获，回退原始值）"""
    pass


class TemplateFormatError(LabelEngineError):
    """模板JSON格式错误"""
    pass


class PrintError(LabelEngineError):
    """打印错误"""
    pass
