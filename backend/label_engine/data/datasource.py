"""
数据源 - 有序数据行 + 当前行导航

职责：
1. 从记录列表或 Excel（.xlsx）构建数据源
2. 表头规范化为绑定key（sanitize_key），原始表头保留作字段显示名
3. 当前行导航（选择/上一条/下一条）
4. 行顺序即打印顺序

Excel 读取规则：
- 只读第一个工作表
- 第1行为表头，空表头列忽略
- 空单元格 → ""

依赖：
- openpyxl: Excel读取

测试要点：
- test_load_xlsx_headers: 表头规范化
- test_empty_cells: 空单元格为空串
- test_navigation_bounds: 导航越界处理
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

from .keys import sanitize_key

logger = logging.getLogger(__name__)


class DataSource:
    """有序数据行集合"""

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        headers: list[str] | None = None,
        raw_headers: list[str] | None = None,
    ):
        self.rows: list[dict[str, Any]] = list(rows or [])
        if headers is None:
            headers = list(self.rows[0].keys()) if self.rows else []
        self.headers: list[str] = headers
        self.raw_headers: list[str] = raw_headers if raw_headers is not None else list(headers)
        self.active_index: int = 0 if self.rows else -1

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    # ------------------------------------------------------------------
    # 构建
    # ------------------------------------------------------------------

    @classmethod
    def from_records(cls, records: list[dict[str, Any]]) -> DataSource:
        """
        从记录列表构建（记录的键按表头规范化）

        同一规范化key出现多次时保留第一列。
        """
        raw_headers: list[str] = []
        for record in records:
            for header in record:
                if header not in raw_headers:
                    raw_headers.append(header)

        mapping = _header_mapping(raw_headers)
        rows = [
            {key: _cell_value(record.get(raw)) for raw, key in mapping.items()}
            for record in records
        ]
        return cls(rows=rows, headers=list(mapping.values()), raw_headers=list(mapping.keys()))

    @classmethod
    def load_xlsx(
        cls,
        path: Path | str,
        header_map: dict[str, str] | None = None,
    ) -> DataSource:
        """
        读取 Excel 第一个工作表

        Args:
            path: .xlsx 文件路径
            header_map: 可选 {原始表头: 目标key}，指定时只保留映射列

        Raises:
            FileNotFoundError: 文件不存在
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Excel文件不存在: {path}")

        wb = load_workbook(path, read_only=True, data_only=True)
        try:
            ws = wb.worksheets[0] if wb.worksheets else None
            if ws is None:
                logger.warning(f"Excel没有工作表: {path}")
                return cls()
            table = [list(row) for row in ws.iter_rows(values_only=True)]
        finally:
            wb.close()

        if not table:
            logger.warning(f"Excel工作表为空: {path}")
            return cls()

        header_cells = [str(h).strip() if h is not None else "" for h in table[0]]

        if header_map:
            columns = {
                idx: header_map[h] for idx, h in enumerate(header_cells) if h in header_map
            }
            raw_headers = [header_cells[idx] for idx in columns]
        else:
            columns = {}
            raw_headers = []
            seen: set[str] = set()
            for idx, raw in enumerate(header_cells):
                key = sanitize_key(raw)
                if not key or key in seen:
                    continue
                seen.add(key)
                columns[idx] = key
                raw_headers.append(raw)

        rows = []
        for cells in table[1:]:
            if all(c is None or c == "" for c in cells):
                continue
            rows.append({
                key: _cell_value(cells[idx] if idx < len(cells) else None)
                for idx, key in columns.items()
            })

        logger.info(f"读取Excel: {path.name}, {len(rows)} 行, {len(columns)} 列")
        return cls(rows=rows, headers=list(columns.values()), raw_headers=raw_headers)

    # ------------------------------------------------------------------
    # 导航
    # ------------------------------------------------------------------

    def active_row(self) -> dict[str, Any] | None:
        """当前行（无数据时为None）"""
        if 0 <= self.active_index < len(self.rows):
            return self.rows[self.active_index]
        return None

    def select(self, index: int) -> dict[str, Any] | None:
        """
        选择指定行

        Raises:
            IndexError: 索引越界
        """
        if not 0 <= index < len(self.rows):
            raise IndexError(f"行索引越界: {index} (共 {len(self.rows)} 行)")
        self.active_index = index
        return self.rows[index]

    def next(self) -> dict[str, Any] | None:
        """下一行（已在末行时停留）"""
        if self.rows and self.active_index < len(self.rows) - 1:
            self.active_index += 1
        return self.active_row()

    def previous(self) -> dict[str, Any] | None:
        """上一行（已在首行时停留）"""
        if self.rows and self.active_index > 0:
            self.active_index -= 1
        return self.active_row()

    def slice(self, start: int, end: int) -> list[dict[str, Any]]:
        """取 [start, end) 的行（保持顺序）"""
        return self.rows[start:end]


def _header_mapping(raw_headers: list[str]) -> dict[str, str]:
    """{原始表头: 规范化key}，空key与重复key跳过"""
    mapping: dict[str, str] = {}
    seen: set[str] = set()
    for raw in raw_headers:
        key = sanitize_key(raw)
        if not key or key in seen:
            continue
        seen.add(key)
        mapping[raw] = key
    return mapping


def _cell_value(value: Any) -> Any:
    return "" if value is None else value
