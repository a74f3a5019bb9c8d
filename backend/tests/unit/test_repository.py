"""
模板仓库单元测试
"""

import json
from pathlib import Path

import pytest

from label_engine.data import TemplateRepository, parse_template, serialize_template
from label_engine.interfaces import TemplateFormatError
from label_engine.models import LabelTemplate, SchemaField, TextElement


class TestSerialization:
    """JSON 序列化"""

    def test_round_trip(self, sample_template: LabelTemplate):
        restored = parse_template(serialize_template(sample_template))
        assert restored == sample_template

    def test_invalid_json(self):
        with pytest.raises(TemplateFormatError):
            parse_template("{not json")

    def test_invalid_element_type(self):
        with pytest.raises(TemplateFormatError):
            parse_template(json.dumps({"name": "x", "elements": [{"id": "a", "type": "circle"}]}))


class TestRepository:
    """增删查"""

    def test_save_and_get(self, repository: TemplateRepository, sample_template: LabelTemplate):
        saved = repository.save(sample_template)
        assert repository.get_by_id(saved.id) == saved
        assert (repository.templates_dir / f"{saved.id}.json").exists()

    def test_persisted_across_instances(self, repository: TemplateRepository, sample_template: LabelTemplate):
        saved = repository.save(sample_template)
        fresh = TemplateRepository(repository.templates_dir)
        loaded = fresh.get_by_id(saved.id)
        assert loaded is not None
        assert loaded.elements[1].binding_key == "material"

    def test_get_all_sorted(self, repository: TemplateRepository):
        """按修改时间降序"""
        first = repository.save(LabelTemplate(name="first"))
        second = repository.save(LabelTemplate(name="second"))
        assert second.last_modified > first.last_modified
        assert [t.name for t in repository.get_all()] == ["second", "first"]

    def test_resave_updates_timestamp(self, repository: TemplateRepository):
        first = repository.save(LabelTemplate(name="a"))
        repository.save(LabelTemplate(name="b"))
        again = repository.save(first)
        assert repository.get_all()[0].id == again.id

    def test_delete(self, repository: TemplateRepository, sample_template: LabelTemplate):
        saved = repository.save(sample_template)
        repository.delete(saved.id)
        assert repository.get_by_id(saved.id) is None
        # 不存在时忽略
        repository.delete(saved.id)

    def test_corrupt_file_skipped(self, repository: TemplateRepository):
        repository.save(LabelTemplate(name="good"))
        (repository.templates_dir / "broken.json").write_text("{oops", encoding="utf-8")
        assert [t.name for t in repository.get_all()] == ["good"]

    def test_schema_persisted(self, repository: TemplateRepository):
        tpl = LabelTemplate(name="s", data_schema=[SchemaField(id="c", key="color", label="Color")])
        saved = repository.save(tpl)
        raw = json.loads((repository.templates_dir / f"{saved.id}.json").read_text(encoding="utf-8"))
        assert raw["schema"][0]["key"] == "color"
        assert "lastModified" in raw


class TestInitialize:
    """示例模板"""

    def test_seed_when_empty(self, repository: TemplateRepository):
        demo = repository.initialize()
        assert demo is not None
        assert demo.name == "Demo Shipping Label"
        assert (demo.width, demo.height) == (100, 150)
        assert demo.elements[0].value == "DEMO LABEL"

    def test_no_seed_when_present(self, repository: TemplateRepository):
        repository.save(LabelTemplate(name="mine"))
        assert repository.initialize() is None
        assert len(repository.get_all()) == 1


class TestImportExport:
    """导入导出"""

    def test_import(self, repository: TemplateRepository, sample_template: LabelTemplate):
        imported = repository.import_template(serialize_template(sample_template))
        assert imported.id != sample_template.id
        assert imported.name == "Sample Label (Imported)"
        assert len(imported.elements) == len(sample_template.elements)
        assert repository.get_by_id(imported.id) is not None

    def test_import_invalid_json(self, repository: TemplateRepository):
        with pytest.raises(TemplateFormatError):
            repository.import_template("not json")

    def test_import_missing_fields(self, repository: TemplateRepository):
        with pytest.raises(TemplateFormatError):
            repository.import_template(json.dumps({"name": "x", "elements": []}))
        with pytest.raises(TemplateFormatError):
            repository.import_template(json.dumps({"name": "x", "width": 1, "height": 1, "elements": {}}))

    def test_import_bad_element(self, repository: TemplateRepository):
        payload = {"name": "x", "width": 10, "height": 10, "elements": [{"id": "a", "type": "circle"}]}
        with pytest.raises(TemplateFormatError):
            repository.import_template(json.dumps(payload))
        assert repository.get_all() == []

    def test_export_template(self, repository: TemplateRepository, temp_dir: Path):
        saved = repository.save(_box_template())
        out = repository.export_template(saved.id, temp_dir / "out")
        assert out.name == "Box_Label_v2_template.json"
        assert parse_template(out.read_text(encoding="utf-8")).id == saved.id

    def test_export_missing(self, repository: TemplateRepository, temp_dir: Path):
        with pytest.raises(KeyError):
            repository.export_template("nope", temp_dir)

    def test_export_all(self, repository: TemplateRepository, temp_dir: Path):
        repository.save(LabelTemplate(name="a"))
        repository.save(LabelTemplate(name="b"))
        out = repository.export_all(temp_dir / "out")
        assert out.name.startswith("all_templates_")
        assert len(json.loads(out.read_text(encoding="utf-8"))) == 2

    def test_export_all_empty(self, repository: TemplateRepository, temp_dir: Path):
        with pytest.raises(ValueError):
            repository.export_all(temp_dir)


def _box_template() -> LabelTemplate:
    return LabelTemplate(name="Box Label v2", elements=[TextElement(id="t", value="Box")])
