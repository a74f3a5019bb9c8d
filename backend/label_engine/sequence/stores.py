"""
单号存储层实现

- MemoryCounterStore: 内存存储（测试/临时会话）
- JsonKeyValueStore: 键值 JSON 文件，一个文件可容纳多个 key（主存储 + 备份）
- JsonDocumentStore: 独立 JSON 文档，保存 {value, lastUpdated, updatedBy}（持久层）

文件读写失败抛出 StorageTierUnavailable，由计数器记录并跳过该层。
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..interfaces import ICounterStore, StorageTierUnavailable
from ..models import CounterState


def _parse_int(raw: Any) -> int | None:
    """键值层保存的值转为整数（无效时返回None）"""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw >= 0 else None
    if isinstance(raw, str):
        text = raw.strip()
        if text.isdigit():
            return int(text)
    return None


def _write_json_atomic(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    tmp_path.replace(path)


class MemoryCounterStore(ICounterStore):
    """内存存储层（available=False 时模拟存储不可用）"""

    def __init__(self, name: str = "memory", initial: int | None = None):
        self.name = name
        self.available = True
        self._state: CounterState | None = CounterState(value=initial) if initial is not None else None

    def _check(self) -> None:
        if not self.available:
            raise StorageTierUnavailable(f"存储层不可用: {self.name}")

    def read(self) -> CounterState | None:
        self._check()
        return self._state

    def write(self, state: CounterState) -> None:
        self._check()
        self._state = state

    def clear(self) -> None:
        self._state = None


class JsonKeyValueStore(ICounterStore):
    """
    键值 JSON 文件存储层

    文件内容为 {key: "数值字符串"}，多个实例可共享同一文件（不同 key）。
    """

    _locks: dict[Path, threading.Lock] = {}
    _locks_guard = threading.Lock()

    def __init__(self, path: Path, key: str, name: str | None = None):
        self.path = Path(path)
        self.key = key
        self.name = name or key

    def _lock(self) -> threading.Lock:
        with self._locks_guard:
            resolved = self.path.resolve()
            if resolved not in self._locks:
                self._locks[resolved] = threading.Lock()
            return self._locks[resolved]

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError:
            # 内容损坏视为空，由下层恢复
            return {}
        except OSError as e:
            raise StorageTierUnavailable(f"读取失败: {self.path}: {e}") from e
        return data if isinstance(data, dict) else {}

    def read(self) -> CounterState | None:
        with self._lock():
            value = _parse_int(self._load().get(self.key))
        if value is None:
            return None
        return CounterState(value=value)

    def write(self, state: CounterState) -> None:
        with self._lock():
            data = self._load()
            data[self.key] = str(state.value)
            try:
                _write_json_atomic(self.path, data)
            except OSError as e:
                raise StorageTierUnavailable(f"写入失败: {self.path}: {e}") from e

    def clear(self) -> None:
        with self._lock():
            data = self._load()
            if data.pop(self.key, None) is not None:
                try:
                    _write_json_atomic(self.path, data)
                except OSError as e:
                    raise StorageTierUnavailable(f"写入失败: {self.path}: {e}") from e


class JsonDocumentStore(ICounterStore):
    """持久层：独立 JSON 文档 {value, lastUpdated, updatedBy}"""

    def __init__(self, path: Path, name: str = "durable"):
        self.path = Path(path)
        self.name = name

    def read(self) -> CounterState | None:
        if not self.path.exists():
            return None
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageTierUnavailable(f"读取失败: {self.path}: {e}") from e
        try:
            return CounterState.model_validate_json(text)
        except ValidationError:
            return None

    def write(self, state: CounterState) -> None:
        try:
            _write_json_atomic(self.path, state.model_dump(mode="json", by_alias=True))
        except OSError as e:
            raise StorageTierUnavailable(f"写入失败: {self.path}: {e}") from e

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
