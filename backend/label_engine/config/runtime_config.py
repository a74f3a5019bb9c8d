"""
运行期配置 - 读取 config/runtime.yaml

职责：
- 加载单位/打印批次/几何/单号等运行参数
- 提供环境变量覆盖机制
- 类型安全的配置访问
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from ..layout.units import print_scale_factor

DEFAULT_CONFIG_PATH = Path("config/runtime.yaml")


class UnitsConfig(BaseModel):
    """单位换算配置"""

    reference_dpi: float = 96.0
    printer_dpi: float = 203.0


class PrintConfig(BaseModel):
    """批量打印配置"""

    batch_size: int = 50
    warning_threshold: int = 100
    render_delay_sec: float = 0.5
    cleanup_timeout_sec: float = 2.0


class GeometryConfig(BaseModel):
    """几何引擎配置（单位 mm）"""

    min_element_size_mm: float = 5.0
    nudge_step_mm: float = 1.0
    nudge_coarse_step_mm: float = 10.0
    nudge_fine_step_mm: float = 0.1
    grid_size_mm: float = 5.0
    snap_enabled: bool = False
    grid_sizes: list[float] = Field(default_factory=lambda: [1, 2, 5, 10, 20])


class SequenceConfig(BaseModel):
    """CIPL单号配置"""

    default_start: int = 18505
    primary_key: str = "cipl_counter"
    backup_key: str = "cipl_counter_backup"
    store_file: str = "cipl_store.json"
    durable_file: str = "cipl_counter_durable.json"


class LoggingConfig(BaseModel):
    """日志配置"""

    log_level: str = "INFO"
    log_to_file: bool = False
    log_file: str = "label_engine.log"


class RuntimeConfig(BaseSettings):
    """运行期配置（支持环境变量覆盖）"""

    # 存储根目录（模板与单号文件位于其下）
    storage_dir: Path = Path("storage")

    # 各子配置
    units: UnitsConfig = Field(default_factory=UnitsConfig)
    printing: PrintConfig = Field(default_factory=PrintConfig)
    geometry: GeometryConfig = Field(default_factory=GeometryConfig)
    sequence: SequenceConfig = Field(default_factory=SequenceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "LABEL_ENGINE_",
        "env_nested_delimiter": "__",
        "arbitrary_types_allowed": True,
    }

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> RuntimeConfig:
        """从YAML文件加载配置"""
        path = Path(yaml_path)
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        runtime_opts = data.get("runtime_options", {})

        config = cls(
            units=UnitsConfig(**cls._extract(runtime_opts, "units")),
            printing=PrintConfig(**cls._extract(runtime_opts, "printing")),
            geometry=GeometryConfig(**cls._extract(runtime_opts, "geometry")),
            sequence=SequenceConfig(**cls._extract(runtime_opts, "sequence")),
            logging=LoggingConfig(**cls._extract(runtime_opts, "logging")),
        )

        storage_dir = runtime_opts.get("storage_dir")
        if storage_dir:
            config.storage_dir = Path(storage_dir)
        config._resolve_paths(base_dir=path.parent)
        return config

    @staticmethod
    def _extract(data: dict[str, Any], key: str) -> dict[str, Any]:
        """提取并展平配置"""
        section = data.get(key, {}) or {}
        result = {}
        for k, v in section.items():
            if isinstance(v, dict) and "default" in v:
                result[k] = v["default"]
            elif not isinstance(v, dict):
                result[k] = v
        return result

    def _resolve_paths(self, base_dir: Path) -> None:
        """解析相对路径配置为绝对路径（基于配置文件所在目录）"""
        if not self.storage_dir.is_absolute():
            self.storage_dir = (base_dir / self.storage_dir).resolve()

    def get_templates_dir(self) -> Path:
        """获取模板存储目录"""
        return self.storage_dir / "templates"

    def get_sequence_dir(self) -> Path:
        """获取单号存储目录"""
        return self.storage_dir / "sequence"

    def get_print_scale_factor(self) -> float:
        """导出缩放系数（参考DPI / 打印机DPI）"""
        return print_scale_factor(self.units.printer_dpi, self.units.reference_dpi)

    def ensure_dirs(self) -> None:
        """确保必要目录存在"""
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self.get_templates_dir().mkdir(exist_ok=True)
        self.get_sequence_dir().mkdir(exist_ok=True)


def configure_logging(config: RuntimeConfig) -> None:
    """按 LoggingConfig 初始化根日志"""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.logging.log_to_file:
        config.storage_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.FileHandler(config.storage_dir / config.logging.log_file, encoding="utf-8")
        )
    logging.basicConfig(
        level=config.logging.log_level.upper(),
        format="[%(levelname)s] [%(asctime)s] [%(name)s] %(message)s",
        handlers=handlers,
        force=True,
    )


# 全局配置实例
_config: RuntimeConfig | None = None


def get_config() -> RuntimeConfig:
    """获取全局配置（惰性加载）"""
    global _config
    if _config is None:
        _config = RuntimeConfig.from_yaml(DEFAULT_CONFIG_PATH)
    return _config


def reload_config(yaml_path: str | Path | None = None) -> RuntimeConfig:
    """重新加载配置"""
    global _config
    path = yaml_path or DEFAULT_CONFIG_PATH
    _config = RuntimeConfig.from_yaml(path)
    return _config
