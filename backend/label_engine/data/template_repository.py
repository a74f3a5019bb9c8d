"""
模板仓库 - 模板 JSON 文件存储

职责：
1. 模板增删查（每个模板一个 JSON 文件：storage/templates/<id>.json）
2. 保存时自动更新 last_modified
3. 导入/导出（导入时分配新ID，名称追加 " (Imported)"）
4. 首次使用时写入示例模板

测试要点：
- test_save_and_get: 保存与读取
- test_get_all_sorted: 按修改时间降序
- test_import_invalid: 非法JSON抛 TemplateFormatError
- test_roundtrip: 序列化往返
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..config import get_config
from ..interfaces import ITemplateRepository, TemplateFormatError
from ..models import LabelTemplate, TextElement, now_ms

logger = logging.getLogger(__name__)

IMPORTED_SUFFIX = " (Imported)"
DEMO_TEMPLATE_NAME = "Demo Shipping Label"


def serialize_template(template: LabelTemplate) -> str:
    """模板 → JSON 字符串（camelCase 字段名）"""
    return template.model_dump_json(by_alias=True, indent=2)


def parse_template(text: str | bytes) -> LabelTemplate:
    """
    JSON 字符串 → 模板

    Raises:
        TemplateFormatError: JSON 非法或结构不符
    """
    try:
        return LabelTemplate.model_validate_json(text)
    except ValidationError as e:
        raise TemplateFormatError(f"模板格式错误: {e}") from e


def _check_import_payload(data: Any) -> None:
    if not isinstance(data, dict):
        raise TemplateFormatError("模板格式错误: 顶层必须为对象")
    if not data.get("name") or not data.get("width") or not data.get("height"):
        raise TemplateFormatError("模板格式错误: 缺少 name/width/height")
    if not isinstance(data.get("elements"), list):
        raise TemplateFormatError("模板格式错误: elements 必须为列表")


def _safe_filename(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "_", name, flags=re.IGNORECASE)


class TemplateRepository(ITemplateRepository):
    """模板仓库实现（JSON 文件）"""

    def __init__(self, templates_dir: Path | None = None):
        self.templates_dir = Path(templates_dir) if templates_dir else get_config().get_templates_dir()
        self._templates: dict[str, LabelTemplate] = {}  # 内存缓存
        self._last_stamp = 0

    def get_all(self) -> list[LabelTemplate]:
        """全部模板（按修改时间降序）"""
        if self.templates_dir.exists():
            for path in self.templates_dir.glob("*.json"):
                template_id = path.stem
                if template_id not in self._templates:
                    template = self._load_template(template_id)
                    if template:
                        self._templates[template_id] = template

        templates = list(self._templates.values())
        templates.sort(key=lambda t: t.last_modified, reverse=True)
        return templates

    def get_by_id(self, template_id: str) -> LabelTemplate | None:
        """按ID获取模板"""
        if template_id in self._templates:
            return self._templates[template_id]

        template = self._load_template(template_id)
        if template:
            self._templates[template_id] = template
        return template

    def save(self, template: LabelTemplate) -> LabelTemplate:
        """保存或更新模板（更新 last_modified）"""
        stamp = max(now_ms(), self._last_stamp + 1)
        self._last_stamp = stamp

        to_save = template.model_copy(update={"last_modified": stamp})
        self._templates[to_save.id] = to_save
        self._persist_template(to_save)
        logger.info(f"保存模板: {to_save.name} ({to_save.id})")
        return to_save

    def delete(self, template_id: str) -> None:
        """删除模板（不存在时忽略）"""
        self._templates.pop(template_id, None)
        path = self._template_path(template_id)
        if path.exists():
            path.unlink()
            logger.info(f"删除模板: {template_id}")

    # ------------------------------------------------------------------
    # 导入导出
    # ------------------------------------------------------------------

    def export_template(self, template_id: str, output_dir: Path) -> Path:
        """
        导出单个模板为 <名称>_template.json

        Raises:
            KeyError: 模板不存在
        """
        template = self.get_by_id(template_id)
        if not template:
            raise KeyError(f"模板不存在: {template_id}")

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        out_path = output_dir / f"{_safe_filename(template.name)}_template.json"
        out_path.write_text(serialize_template(template), encoding="utf-8")
        logger.info(f"导出模板: {template.name} -> {out_path}")
        return out_path

    def export_all(self, output_dir: Path) -> Path:
        """
        导出全部模板为 all_templates_<时间戳>.json

        Raises:
            ValueError: 没有模板
        """
        templates = self.get_all()
        if not templates:
            raise ValueError("没有可导出的模板")

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        out_path = output_dir / f"all_templates_{now_ms()}.json"
        payload = [t.model_dump(mode="json", by_alias=True) for t in templates]
        with open(out_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        logger.info(f"导出全部模板: {len(templates)} 个 -> {out_path}")
        return out_path

    def import_template(self, json_string: str) -> LabelTemplate:
        """
        从 JSON 导入模板（分配新ID，名称追加 " (Imported)"）

        Raises:
            TemplateFormatError: JSON 非法或结构不符
        """
        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            logger.error(f"模板导入失败: {e}")
            raise TemplateFormatError(f"模板JSON解析失败: {e}") from e

        _check_import_payload(data)
        data["id"] = str(uuid.uuid4())
        data["name"] = f"{data['name']}{IMPORTED_SUFFIX}"

        try:
            template = LabelTemplate.model_validate(data)
        except ValidationError as e:
            logger.error(f"模板导入失败: {e}")
            raise TemplateFormatError(f"模板格式错误: {e}") from e

        return self.save(template)

    def initialize(self) -> LabelTemplate | None:
        """仓库为空时写入示例模板"""
        if self.get_all():
            return None

        logger.info("初始化示例模板")
        demo = LabelTemplate(
            name=DEMO_TEMPLATE_NAME,
            width=100,
            height=150,
            elements=[
                TextElement(
                    id="demo_1",
                    x=5,
                    y=5,
                    value="DEMO LABEL",
                    font_size=14,
                    font_weight="bold",
                )
            ],
        )
        return self.save(demo)

    # ------------------------------------------------------------------
    # 持久化
    # ------------------------------------------------------------------

    def _template_path(self, template_id: str) -> Path:
        return self.templates_dir / f"{template_id}.json"

    def _persist_template(self, template: LabelTemplate) -> None:
        """持久化模板"""
        self.templates_dir.mkdir(parents=True, exist_ok=True)
        self._template_path(template.id).write_text(serialize_template(template), encoding="utf-8")

    def _load_template(self, template_id: str) -> LabelTemplate | None:
        """从磁盘加载模板（文件损坏时记录错误并跳过）"""
        path = self._template_path(template_id)
        if not path.exists():
            return None

        try:
            return parse_template(path.read_text(encoding="utf-8"))
        except TemplateFormatError as e:
            logger.error(f"模板文件损坏，已跳过: {path.name}: {e}")
            return None
