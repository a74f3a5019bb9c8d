"""
批量打印编排单元测试

使用 conftest 中的 RecordingRenderer / FakePrintHost 代替真实 PDF 与打印机
"""

from pathlib import Path

import pytest

from label_engine.config import PrintConfig
from label_engine.interfaces import PrintError
from label_engine.models import (
    BatchRange,
    LabelTemplate,
    PrintCycleState,
    PrintKind,
    ReleaseReason,
    SessionContext,
)
from label_engine.printing import BatchPrintOrchestrator, FileOutputHost, build_print_filename
from label_engine.sequence import SequenceCounter


@pytest.fixture
def orchestrator(renderer, host, counter, print_config) -> BatchPrintOrchestrator:
    return BatchPrintOrchestrator(renderer, host, counter=counter, config=print_config)


class TestExecuteBatch:
    """打印一个批次"""

    def test_execute_batch_order(
        self,
        orchestrator: BatchPrintOrchestrator,
        renderer,
        sample_template: LabelTemplate,
        sample_rows: list[dict],
        session: SessionContext,
    ):
        """按源顺序渲染 [start, end)"""
        job = orchestrator.execute_batch(sample_template, sample_rows, BatchRange(start=1, end=4), session)

        _, labels = renderer.calls[0]
        assert [label["mat"] for label in labels] == ["MAT002", "MAT003", "MAT004"]
        assert labels[0]["mat_bc"] == "*MAT002*"
        assert labels[0]["op"] == "Budi"
        assert job.kind == PrintKind.BATCH

    def test_released_by_print_event(
        self,
        orchestrator: BatchPrintOrchestrator,
        sample_template: LabelTemplate,
        sample_rows: list[dict],
        session: SessionContext,
    ):
        """宿主回调后回到 Idle"""
        job = orchestrator.execute_batch(sample_template, sample_rows, BatchRange(start=0, end=2), session)
        assert job.state == PrintCycleState.PRINT_EVENT_OBSERVED
        assert job.release_reason == ReleaseReason.PRINT_EVENT
        assert not orchestrator.busy
        assert orchestrator.state == PrintCycleState.IDLE

    def test_timeout_fallback(
        self,
        renderer,
        silent_host,
        sample_template: LabelTemplate,
        sample_rows: list[dict],
        session: SessionContext,
    ):
        """宿主不回调时超时释放"""
        host = silent_host
        config = PrintConfig(render_delay_sec=0.0, cleanup_timeout_sec=0.05)
        orchestrator = BatchPrintOrchestrator(renderer, host, config=config)

        job = orchestrator.execute_batch(sample_template, sample_rows, BatchRange(start=0, end=1), session)
        assert orchestrator.busy
        assert orchestrator.wait_idle(2.0)
        assert job.state == PrintCycleState.TIMEOUT_FALLBACK
        assert not orchestrator.busy

        # 迟到的打印事件不再释放
        host.pending[0]()
        assert job.release_reason == ReleaseReason.TIMEOUT

    def test_busy_guard(
        self,
        renderer,
        silent_host,
        sample_template: LabelTemplate,
        sample_rows: list[dict],
        session: SessionContext,
    ):
        """同一时间只有一个打印周期"""
        host = silent_host
        config = PrintConfig(render_delay_sec=0.0, cleanup_timeout_sec=10.0)
        orchestrator = BatchPrintOrchestrator(renderer, host, config=config)

        orchestrator.execute_batch(sample_template, sample_rows, BatchRange(start=0, end=1), session)
        with pytest.raises(PrintError):
            orchestrator.execute_batch(sample_template, sample_rows, BatchRange(start=1, end=2), session)

        host.pending[0]()
        assert not orchestrator.busy
        orchestrator.execute_batch(sample_template, sample_rows, BatchRange(start=1, end=2), session)

    def test_empty_batch(self, orchestrator, sample_template, sample_rows, session):
        with pytest.raises(ValueError):
            orchestrator.execute_batch(sample_template, sample_rows, BatchRange(start=2, end=2), session)

    def test_out_of_range(self, orchestrator, sample_template, sample_rows, session):
        with pytest.raises(ValueError):
            orchestrator.execute_batch(sample_template, sample_rows, BatchRange(start=3, end=10), session)
        assert not orchestrator.busy

    def test_render_delay(self, renderer, host, sample_template, sample_rows, session):
        """渲染前等待配置的延迟"""
        delays = []
        config = PrintConfig(render_delay_sec=0.5)
        orchestrator = BatchPrintOrchestrator(renderer, host, config=config, sleep=delays.append)
        orchestrator.execute_batch(sample_template, sample_rows, BatchRange(start=0, end=1), session)
        assert delays == [0.5]


class TestFailures:
    """失败时释放"""

    def test_host_failure(self, renderer, failing_host, sample_template, sample_rows, session, print_config):
        orchestrator = BatchPrintOrchestrator(renderer, failing_host, config=print_config)
        with pytest.raises(PrintError):
            orchestrator.execute_batch(sample_template, sample_rows, BatchRange(start=0, end=1), session)
        assert not orchestrator.busy

    def test_render_failure(self, failing_renderer, host, sample_template, sample_rows, session, print_config):
        orchestrator = BatchPrintOrchestrator(failing_renderer, host, config=print_config)
        with pytest.raises(RuntimeError):
            orchestrator.execute_batch(sample_template, sample_rows, BatchRange(start=0, end=1), session)
        assert not orchestrator.busy
        assert host.documents == []


class TestAutoNumber:
    """CIPL 自动单号"""

    def test_auto_number_per_label(
        self,
        orchestrator: BatchPrintOrchestrator,
        renderer,
        cipl_template: LabelTemplate,
        sample_rows: list[dict],
        session: SessionContext,
        counter: SequenceCounter,
    ):
        """每张标签取一个单号"""
        job = orchestrator.execute_batch(cipl_template, sample_rows, BatchRange(start=0, end=3), session)
        _, labels = renderer.calls[0]
        assert [label["cipl"] for label in labels] == ["18506", "18507", "18508"]
        assert job.auto_numbers == [18506, 18507, 18508]
        assert counter.get_current() == 18508

    def test_no_number_without_binding(self, orchestrator, sample_template, sample_rows, session, counter):
        orchestrator.execute_batch(sample_template, sample_rows, BatchRange(start=0, end=3), session)
        assert counter.get_current() == 18505

    def test_without_counter(self, renderer, host, cipl_template, sample_rows, session, print_config):
        orchestrator = BatchPrintOrchestrator(renderer, host, config=print_config)
        job = orchestrator.execute_batch(cipl_template, sample_rows, BatchRange(start=0, end=1), session)
        _, labels = renderer.calls[0]
        assert labels[0]["cipl"] == "[CIPL No]"
        assert job.flags


class TestPrintAll:
    """打印全部/单条"""

    def test_print_all_requires_confirm(self, renderer, host, sample_template, session):
        config = PrintConfig(render_delay_sec=0.0, warning_threshold=3)
        orchestrator = BatchPrintOrchestrator(renderer, host, config=config)
        rows = [{"material": f"M{i}"} for i in range(5)]

        assert orchestrator.print_all(sample_template, rows, session) is None
        assert renderer.calls == []

        job = orchestrator.print_all(sample_template, rows, session, confirm=True)
        assert job.kind == PrintKind.ALL
        assert job.batch == BatchRange(start=0, end=5)
        assert len(renderer.calls[0][1]) == 5

    def test_print_all_below_threshold(self, orchestrator, renderer, sample_template, sample_rows, session):
        job = orchestrator.print_all(sample_template, sample_rows, session)
        assert job is not None
        assert len(renderer.calls[0][1]) == len(sample_rows)

    def test_print_single(self, orchestrator, renderer, sample_template, sample_rows, session):
        job = orchestrator.print_single(sample_template, sample_rows, 2, session)
        assert job.kind == PrintKind.SINGLE
        assert renderer.calls[0][1][0]["mat"] == "MAT003"

    def test_plan(self, orchestrator):
        assert [b.count for b in orchestrator.plan(120)] == [50, 50, 20]
        assert orchestrator.check_print_all(101).requires_confirmation


class TestFileOutputHost:
    """写文件宿主"""

    def test_writes_document(self, renderer, temp_dir: Path, sample_template, sample_rows, session, print_config):
        host = FileOutputHost(
            temp_dir / "out",
            filename_for=lambda job: build_print_filename(sample_template.name, job.batch),
        )
        orchestrator = BatchPrintOrchestrator(renderer, host, config=print_config)
        job = orchestrator.execute_batch(sample_template, sample_rows, BatchRange(start=0, end=2), session)

        assert len(host.written) == 1
        assert host.written[0].name.startswith("Sample_Label_Batch_0-2_")
        assert host.written[0].read_bytes() == b"tpl-sample:2"
        assert job.state == PrintCycleState.PRINT_EVENT_OBSERVED
