"""
数据模块 - 数据源与模板仓库

子模块：
- keys: 表头 → 绑定key 规范化
- datasource: 有序数据行（Excel/记录列表）
- template_repository: 模板 JSON 文件存储
"""

from .datasource import DataSource
from .keys import sanitize_key
from .template_repository import TemplateRepository, parse_template, serialize_template

__all__ = [
    "DataSource",
    "sanitize_key",
    "TemplateRepository",
    "parse_template",
    "serialize_template",
]
