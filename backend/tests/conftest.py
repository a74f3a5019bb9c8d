"""
pytest 配置与公共 fixtures

使用方式：
    def test_something(sample_template, session):
        assert sample_template.width == 100
"""

from __future__ import annotations

import tempfile
from datetime import date
from pathlib import Path
from typing import Callable, Generator

import pytest

from label_engine.config import PrintConfig, RuntimeConfig
from label_engine.data import TemplateRepository
from label_engine.interfaces import IPrintHost, ISurfaceRenderer, PrintError
from label_engine.models import (
    BarcodeElement,
    FormatKind,
    LabelTemplate,
    LabelValueElement,
    LineElement,
    PrintJob,
    SessionContext,
    TextElement,
)
from label_engine.sequence import MemoryCounterStore, SequenceCounter

CIPL_KEY = "__TOOL_CIPL_AUTO__"
OPERATOR_KEY = "__SYS_OPERATOR_NAME__"


# ============================================================================
# 配置 Fixtures
# ============================================================================

@pytest.fixture
def runtime_config(temp_dir: Path) -> RuntimeConfig:
    """运行期配置（存储目录指向临时目录）"""
    return RuntimeConfig(storage_dir=temp_dir / "storage")


@pytest.fixture
def print_config() -> PrintConfig:
    """打印配置（测试中不等待渲染延迟）"""
    return PrintConfig(batch_size=50, warning_threshold=100, render_delay_sec=0.0, cleanup_timeout_sec=5.0)


# ============================================================================
# 数据模型 Fixtures
# ============================================================================

@pytest.fixture
def sample_template() -> LabelTemplate:
    """示例模板：静态标题 + 物料号 + 条码 + 操作员 + 分隔线"""
    return LabelTemplate(
        id="tpl-sample",
        name="Sample Label",
        width=100,
        height=50,
        elements=[
            TextElement(id="title", x=5, y=2, width=90, height=8, value="SHIPPING LABEL", font_weight="bold"),
            TextElement(
                id="mat",
                x=5,
                y=12,
                width=60,
                height=8,
                value="{{material}}",
                is_dynamic=True,
                binding_key="material",
            ),
            BarcodeElement(
                id="mat_bc",
                x=5,
                y=22,
                width=60,
                height=15,
                value="{{material}}",
                is_dynamic=True,
                binding_key="material",
                format=FormatKind.BARCODE_39,
            ),
            TextElement(
                id="op",
                x=5,
                y=40,
                width=40,
                height=6,
                value="{{__SYS_OPERATOR_NAME__}}",
                is_dynamic=True,
                binding_key=OPERATOR_KEY,
            ),
            LineElement(id="sep", x=0, y=38, width=100, height=1),
        ],
    )


@pytest.fixture
def cipl_template(sample_template: LabelTemplate) -> LabelTemplate:
    """带 CIPL 自动单号的模板"""
    cipl = LabelValueElement(
        id="cipl",
        x=50,
        y=40,
        width=45,
        height=8,
        label_text="CIPL NO",
        value="{{__TOOL_CIPL_AUTO__}}",
        is_dynamic=True,
        binding_key=CIPL_KEY,
    )
    return sample_template.model_copy(update={"elements": [*sample_template.elements, cipl]})


@pytest.fixture
def session() -> SessionContext:
    """会话上下文（固定日期）"""
    return SessionContext(
        operator_name="Budi",
        department="Warehouse",
        inputs={"__SYS_INPUT_SO__": "SO-778"},
        today=date(2026, 1, 5),
    )


@pytest.fixture
def sample_rows() -> list[dict]:
    """示例数据行（已规范化key）"""
    return [
        {"material": f"MAT{i:03d}", "material_description": f"Item {i}", "base_unit_of_measure": "PC"}
        for i in range(1, 6)
    ]


# ============================================================================
# 单号 Fixtures
# ============================================================================

@pytest.fixture
def memory_tiers() -> list[MemoryCounterStore]:
    """三层内存存储"""
    return [
        MemoryCounterStore("primary"),
        MemoryCounterStore("backup"),
        MemoryCounterStore("durable"),
    ]


@pytest.fixture
def counter(memory_tiers: list[MemoryCounterStore]) -> SequenceCounter:
    """内存计数器（默认起始号 18505）"""
    return SequenceCounter(memory_tiers)


# ============================================================================
# 打印 Fixtures
# ============================================================================

class RecordingRenderer(ISurfaceRenderer):
    """记录调用的渲染器（不生成真实PDF）"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple[LabelTemplate, list[dict[str, str]]]] = []

    def render(self, template: LabelTemplate, labels: list[dict[str, str]]) -> bytes:
        if self.fail:
            raise RuntimeError("render failed")
        self.calls.append((template, labels))
        return f"{template.id}:{len(labels)}".encode()


class FakePrintHost(IPrintHost):
    """
    模拟打印宿主

    auto_complete=True 时立即回调打印完成；否则保存回调，由测试手动触发。
    """

    def __init__(self, auto_complete: bool = True, fail: bool = False):
        self.auto_complete = auto_complete
        self.fail = fail
        self.documents: list[bytes] = []
        self.pending: list[Callable[[], None]] = []

    def print_document(self, job: PrintJob, document: bytes, on_after_print: Callable[[], None]) -> None:
        if self.fail:
            raise PrintError("printer offline")
        self.documents.append(document)
        if self.auto_complete:
            on_after_print()
        else:
            self.pending.append(on_after_print)


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def host() -> FakePrintHost:
    return FakePrintHost()


@pytest.fixture
def silent_host() -> FakePrintHost:
    """不回调打印完成的宿主"""
    return FakePrintHost(auto_complete=False)


@pytest.fixture
def failing_host() -> FakePrintHost:
    return FakePrintHost(fail=True)


@pytest.fixture
def failing_renderer() -> RecordingRenderer:
    return RecordingRenderer(fail=True)


# ============================================================================
# 文件 Fixtures
# ============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def repository(temp_dir: Path) -> TemplateRepository:
    """临时目录上的模板仓库"""
    return TemplateRepository(temp_dir / "templates")
