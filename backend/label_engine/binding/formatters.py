"""
值格式化 - 货币/日期/Code 39

职责：
1. 货币：印尼盾（Rp 1.234.567）、美元（$1,234.56）
2. 日期：短格式（dd/mm/yy）、长格式（Monday, January 5, 2026）
3. Excel 序列日期：数值 > 20000 视为 1899-12-30 起的天数
4. Code 39：大写并以 * 包裹（幂等）

格式化失败时 format_value 记录告警并回退到原始字符串，
底层 apply_format 抛出 FormatFailure，便于单独测试。

测试要点：
- test_currency_idr: 千分位为点
- test_excel_serial_date: 序列日期换算
- test_barcode_39_idempotent: 不重复包裹
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Any

from ..interfaces import FormatFailure
from ..models import FormatKind

logger = logging.getLogger(__name__)

EXCEL_EPOCH = datetime(1899, 12, 30)
EXCEL_SERIAL_THRESHOLD = 20000

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

_DATE_INPUT_FORMATS = ("%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%d/%m/%Y", "%m/%d/%Y")


def to_display_string(value: Any) -> str:
    """原始值转显示字符串（None → ""，整数值浮点去掉 .0）"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ============================================================================
# 数值
# ============================================================================

def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise FormatFailure(f"非数值: {value!r}")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return Decimal(0)
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise FormatFailure(f"非数值: {value!r}") from e
    if not number.is_finite():
        raise FormatFailure(f"非有限数值: {value!r}")
    return number


def _group_digits(integer_part: str, separator: str) -> str:
    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)
    return separator.join(groups)


def _format_number(
    number: Decimal,
    max_decimals: int,
    min_decimals: int,
    thousands: str,
    decimal_mark: str,
) -> tuple[bool, str]:
    """返回 (是否负数, 数字部分)"""
    quantum = Decimal(1).scaleb(-max_decimals)
    rounded = number.quantize(quantum, rounding=ROUND_HALF_EVEN)
    negative = rounded < 0
    text = f"{abs(rounded):.{max_decimals}f}"
    integer_part, _, fraction = text.partition(".")
    fraction = fraction.rstrip("0")
    if len(fraction) < min_decimals:
        fraction = fraction.ljust(min_decimals, "0")
    body = _group_digits(integer_part, thousands)
    if fraction:
        body = f"{body}{decimal_mark}{fraction}"
    return negative, body


def format_currency_idr(value: Any) -> str:
    """印尼盾：Rp 1.234.567（最多两位小数，整数不带小数）"""
    negative, body = _format_number(_to_decimal(value), 2, 0, ".", ",")
    return f"{'-' if negative else ''}Rp {body}"


def format_currency_usd(value: Any) -> str:
    """美元：$1,234.56（固定两位小数）"""
    negative, body = _format_number(_to_decimal(value), 2, 2, ",", ".")
    return f"{'-' if negative else ''}${body}"


# ============================================================================
# 日期
# ============================================================================

def excel_serial_to_date(serial: float) -> date:
    """Excel 序列日期转日期"""
    return (EXCEL_EPOCH + timedelta(days=serial)).date()


def coerce_date(value: Any) -> date:
    """
    将原始值转换为日期

    支持 datetime/date 对象、Excel 序列日期（> 20000）、
    ISO 字符串及 dd/mm/yyyy 字符串。
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value > EXCEL_SERIAL_THRESHOLD:
            return excel_serial_to_date(value)
        raise FormatFailure(f"数值不是有效日期: {value!r}")
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
        for fmt in _DATE_INPUT_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
    raise FormatFailure(f"无法解析日期: {value!r}")


def format_date_short(value: Any) -> str:
    """短日期：dd/mm/yy"""
    d = coerce_date(value)
    return d.strftime("%d/%m/%y")


def format_date_long(value: Any) -> str:
    """长日期：Monday, January 5, 2026"""
    d = coerce_date(value)
    return f"{WEEKDAYS[d.weekday()]}, {MONTHS[d.month - 1]} {d.day}, {d.year}"


def format_today(today: date) -> str:
    """系统日期变量格式：dd/mm/yyyy"""
    return today.strftime("%d/%m/%Y")


# ============================================================================
# 条码
# ============================================================================

def format_barcode_39(value: Any) -> str:
    """Code 39：大写并以 * 包裹，已包裹的不再重复"""
    text = to_display_string(value).upper()
    if len(text) >= 2 and text.startswith("*") and text.endswith("*"):
        return text
    return f"*{text}*"


_FORMATTERS = {
    FormatKind.CURRENCY_IDR: format_currency_idr,
    FormatKind.CURRENCY_USD: format_currency_usd,
    FormatKind.DATE_SHORT: format_date_short,
    FormatKind.DATE_LONG: format_date_long,
    FormatKind.BARCODE_39: format_barcode_39,
}


def apply_format(value: Any, fmt: FormatKind | str | None) -> str:
    """
    按格式化方式格式化值

    Raises:
        FormatFailure: 值无法按指定方式格式化，或格式化方式未知
    """
    if value is None:
        return ""
    if not fmt or fmt == FormatKind.NONE:
        return to_display_string(value)
    try:
        kind = FormatKind(fmt)
    except ValueError as e:
        raise FormatFailure(f"未知格式化方式: {fmt}") from e
    return _FORMATTERS[kind](value)


def format_value(value: Any, fmt: FormatKind | str | None = None) -> str:
    """格式化值，失败时记录告警并回退到原始字符串"""
    try:
        return apply_format(value, fmt)
    except FormatFailure as e:
        logger.warning(f"格式化失败，使用原始值: {e}")
        return to_display_string(value)
