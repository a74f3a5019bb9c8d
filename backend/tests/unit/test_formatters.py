"""
值格式化单元测试
"""

from datetime import date, datetime

import pytest

from label_engine.binding.formatters import (
    apply_format,
    coerce_date,
    excel_serial_to_date,
    format_barcode_39,
    format_currency_idr,
    format_currency_usd,
    format_date_long,
    format_date_short,
    format_value,
    to_display_string,
)
from label_engine.interfaces import FormatFailure
from label_engine.models import FormatKind


class TestDisplayString:
    """原始值转字符串"""

    def test_basic(self):
        assert to_display_string(None) == ""
        assert to_display_string(True) == "true"
        assert to_display_string(5.0) == "5"
        assert to_display_string(2.5) == "2.5"
        assert to_display_string("abc") == "abc"


class TestCurrency:
    """货币格式化"""

    def test_idr(self):
        assert format_currency_idr(1234567) == "Rp 1.234.567"
        assert format_currency_idr("1500") == "Rp 1.500"

    def test_idr_fraction(self):
        """最多两位小数，末尾零去掉"""
        assert format_currency_idr(1234.5) == "Rp 1.234,5"

    def test_idr_negative(self):
        assert format_currency_idr(-1500) == "-Rp 1.500"

    def test_usd(self):
        assert format_currency_usd(1234.56) == "$1,234.56"
        assert format_currency_usd(1234) == "$1,234.00"
        assert format_currency_usd(-5) == "-$5.00"

    def test_empty_is_zero(self):
        assert format_currency_usd("") == "$0.00"

    def test_non_numeric(self):
        with pytest.raises(FormatFailure):
            format_currency_idr("abc")


class TestDates:
    """日期格式化"""

    def test_excel_serial(self):
        """序列号以 1899-12-30 为起点"""
        assert excel_serial_to_date(46027) == date(2026, 1, 5)

    def test_short(self):
        assert format_date_short(46027) == "05/01/26"
        assert format_date_short(datetime(2026, 1, 5, 13, 30)) == "05/01/26"
        assert format_date_short("2026-01-05") == "05/01/26"

    def test_long(self):
        assert format_date_long(46027) == "Monday, January 5, 2026"
        assert format_date_long(date(2025, 12, 25)) == "Thursday, December 25, 2025"

    def test_day_first_string(self):
        assert coerce_date("05/01/2026") == date(2026, 1, 5)

    def test_small_number_not_date(self):
        """不超过阈值的数值不视为日期"""
        with pytest.raises(FormatFailure):
            coerce_date(123)

    def test_unparseable(self):
        with pytest.raises(FormatFailure):
            coerce_date("not a date")


class TestBarcode39:
    """Code 39 包裹"""

    def test_wrap(self):
        assert format_barcode_39("abc123") == "*ABC123*"

    def test_idempotent(self):
        once = format_barcode_39("abc123")
        assert format_barcode_39(once) == once


class TestApplyFormat:
    """格式化分发与回退"""

    def test_none_format(self):
        assert apply_format(42, FormatKind.NONE) == "42"
        assert apply_format(42, None) == "42"

    def test_string_kind(self):
        assert apply_format(1234567, "currency_idr") == "Rp 1.234.567"

    def test_unknown_kind(self):
        with pytest.raises(FormatFailure):
            apply_format(1, "roman")

    def test_fallback_to_raw(self):
        """格式化失败时回退为原始字符串"""
        assert format_value("abc", FormatKind.CURRENCY_USD) == "abc"
        assert format_value(123, FormatKind.DATE_SHORT) == "123"

    def test_none_value(self):
        assert format_value(None, FormatKind.CURRENCY_IDR) == ""
