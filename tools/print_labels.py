"""
批量打印标签到 PDF（命令行）

用法：
    python tools/print_labels.py --template label.json --data mm60.xlsx --out-dir out
    python tools/print_labels.py --template label.json --data mm60.xlsx --batch 2
    python tools/print_labels.py --template label.json --data mm60.xlsx --all --yes
    python tools/print_labels.py --template label.json --data mm60.xlsx --input qty=10 --input so=SO123
"""

import argparse
import sys
from pathlib import Path


def _add_backend_to_path() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    backend_root = repo_root / "backend"
    if str(backend_root) not in sys.path:
        sys.path.insert(0, str(backend_root))


def _parse_inputs(items: list[str]) -> dict[str, str]:
    """KEY=VALUE 列表 → {系统key: 值}（KEY 取 qty/so/plan/no_pl/line/remarks）"""
    from label_engine.binding.schema_registry import SystemKeys  # type: ignore

    aliases = {
        "qty": SystemKeys.INPUT_QTY,
        "so": SystemKeys.INPUT_SO,
        "plan": SystemKeys.INPUT_PLAN,
        "no_pl": SystemKeys.INPUT_NO_PL,
        "line": SystemKeys.INPUT_LINE,
        "remarks": SystemKeys.INPUT_REMARKS,
    }
    inputs: dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or key.lower() not in aliases:
            raise SystemExit(f"无效输入项: {item}（可用: {', '.join(aliases)}）")
        inputs[aliases[key.lower()]] = value
    return inputs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="按模板与Excel数据批量输出标签PDF")
    parser.add_argument("--template", required=True, help="模板JSON文件")
    parser.add_argument("--data", required=True, help="Excel数据文件（.xlsx，读取第一个工作表）")
    parser.add_argument("--out-dir", default="out", help="PDF输出目录（默认：out）")
    parser.add_argument("--config", default="", help="可选：runtime.yaml 路径")
    parser.add_argument("--batch", type=int, default=0, help="只打印第N批（从1开始，0=逐批全部输出）")
    parser.add_argument("--all", action="store_true", help="全部记录输出为一个PDF")
    parser.add_argument("--yes", action="store_true", help="超过告警阈值时确认继续")
    parser.add_argument("--operator", default="", help="操作员姓名")
    parser.add_argument("--department", default="", help="部门")
    parser.add_argument(
        "--input",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="打印时输入，每项一个 --input，如 --input qty=10 --input so=SO123",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    _add_backend_to_path()
    from label_engine.config import configure_logging, get_config, reload_config  # type: ignore
    from label_engine.data import DataSource, parse_template  # type: ignore
    from label_engine.models import SessionContext  # type: ignore
    from label_engine.printing import (  # type: ignore
        BatchPrintOrchestrator,
        FileOutputHost,
        PdfSurfaceRenderer,
        batch_label,
        build_print_filename,
    )
    from label_engine.sequence import SequenceCounter  # type: ignore

    config = reload_config(args.config) if args.config else get_config()
    configure_logging(config)

    template = parse_template(Path(args.template).read_text(encoding="utf-8"))
    source = DataSource.load_xlsx(args.data)
    if source.is_empty:
        print("数据源没有记录")
        return 1

    session = SessionContext(
        operator_name=args.operator or None,
        department=args.department or None,
        inputs=_parse_inputs(args.input),
    )

    host = FileOutputHost(
        Path(args.out_dir),
        filename_for=lambda job: build_print_filename(template.name, job.batch),
    )
    orchestrator = BatchPrintOrchestrator(
        renderer=PdfSurfaceRenderer(),
        host=host,
        counter=SequenceCounter.from_config(config),
        config=config.printing.model_copy(update={"render_delay_sec": 0.0}),
    )

    if args.all:
        job = orchestrator.print_all(template, source.rows, session, confirm=args.yes)
        if job is None:
            print(f"共 {len(source)} 条，超过告警阈值 {config.printing.warning_threshold}，加 --yes 确认")
            return 2
        orchestrator.wait_idle()
    else:
        batches = orchestrator.plan(len(source))
        if args.batch:
            if not 1 <= args.batch <= len(batches):
                print(f"批次编号超出范围: 1-{len(batches)}")
                return 1
            selected = [(args.batch - 1, batches[args.batch - 1])]
        else:
            selected = list(enumerate(batches))
        for index, batch in selected:
            orchestrator.execute_batch(template, source.rows, batch, session)
            orchestrator.wait_idle()
            print(batch_label(index, batch))

    for path in host.written:
        print(path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
