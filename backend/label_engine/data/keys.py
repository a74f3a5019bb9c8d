"""
字段key规范化 - Excel 表头与字段注册表共用
"""

from __future__ import annotations

import re

_INVALID_CHARS = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_key(header: object) -> str:
    """
    表头 → 绑定key

    小写、去首尾空白、去除非 [a-z0-9 空白] 字符、空白折叠为下划线。
    例："Material Number" → "material_number"，"Qty (PCS)" → "qty_pcs"
    """
    if header is None:
        return ""
    text = str(header).lower().strip()
    text = _INVALID_CHARS.sub("", text)
    return _WHITESPACE.sub("_", text)
