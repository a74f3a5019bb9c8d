"""
单号模块 - CIPL 自动单号

子模块：
- stores: 存储层实现（内存/键值文件/持久文档）
- counter: 多层存储计数器
"""

from .counter import DEFAULT_START, SequenceCounter
from .stores import JsonDocumentStore, JsonKeyValueStore, MemoryCounterStore

__all__ = [
    "DEFAULT_START",
    "SequenceCounter",
    "MemoryCounterStore",
    "JsonKeyValueStore",
    "JsonDocumentStore",
]
