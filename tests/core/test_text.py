"""Tests for folio.core.utils.text."""

import pytest

from folio.core.utils.text import format_money, format_percent, truncate_text


class TestFormatMoney:
    @pytest.mark.parametrize(
        "value,currency,expected",
        [
            (1234.5, "USD", "$1,234.50"),
            (-12.5, "USD", "-$12.50"),
            (99.0, "eur", "€99.00"),
            (1500.0, "CZK", "1,500.00 Kč"),
            (3.0, "CHF", "3.00 CHF"),
        ],
    )
    def test_formats(self, value, currency, expected):
        assert format_money(value, currency) == expected


class TestFormatPercent:
    def test_sign(self):
        assert format_percent(1.256) == "+1.26%"
        assert format_percent(-0.4) == "-0.40%"
        assert format_percent(0.0) == "+0.00%"


class TestTruncate:
    def test_short_text_untouched(self):
        assert truncate_text("hello", 10) == "hello"

    def test_long_text_truncated(self):
        result = truncate_text("a" * 200, 50)
        assert len(result) == 50
        assert result.endswith("...")

    def test_empty(self):
        assert truncate_text("") == ""
