"""
条码字体注册表

条码元素的 font_family 作为条码字体选择器，决定渲染时使用的码制。
未知字体按 Code 39 处理（默认字体）。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Symbology = Literal["code39", "code128"]


@dataclass(frozen=True)
class BarcodeFont:
    name: str
    family: str
    display_name: str
    preview: str
    symbology: Symbology


DEFAULT_BARCODE_FONT = BarcodeFont(
    name="LocalBarcodeFont",
    family="LocalBarcodeFont",
    display_name="Code 39 (Default)",
    preview="*BARCODE123*",
    symbology="code39",
)

BUILTIN_BARCODE_FONTS: list[BarcodeFont] = [
    DEFAULT_BARCODE_FONT,
    BarcodeFont(
        name="LibreBarcode39",
        family="Libre Barcode 39",
        display_name="Libre Barcode 39",
        preview="*SAMPLE*",
        symbology="code39",
    ),
    BarcodeFont(
        name="LibreBarcode128",
        family="Libre Barcode 128",
        display_name="Libre Barcode 128",
        preview="SAMPLE123",
        symbology="code128",
    ),
]


def get_barcode_font(family: str | None) -> BarcodeFont:
    """按 family 或 name 查找条码字体，未找到返回默认字体"""
    if family:
        for font in BUILTIN_BARCODE_FONTS:
            if family in (font.family, font.name):
                return font
    return DEFAULT_BARCODE_FONT


def resolve_symbology(explicit: Symbology | None, family: str | None) -> Symbology:
    """元素显式指定码制优先，否则由字体决定"""
    if explicit:
        return explicit
    return get_barcode_font(family).symbology


def strip_code39_delimiters(value: str) -> str:
    """去掉 Code 39 起止符 *（条码控件自带起止符）"""
    if len(value) >= 2 and value.startswith("*") and value.endswith("*"):
        return value[1:-1]
    return value
