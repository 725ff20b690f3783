"""Ether/wei conversion."""

from decimal import Decimal

import pytest

from eventhub.etherlink.units import format_ether, parse_ether

WEI = 10**18


class TestParseEther:
    @pytest.mark.parametrize(
        ("amount", "expected"),
        [
            ("1", WEI),
            ("1.5", 3 * WEI // 2),
            ("0.05", 5 * 10**16),
            ("0", 0),
            (" 2 ", 2 * WEI),
            ("0.000000000000000001", 1),
            (Decimal("0.25"), WEI // 4),
        ],
    )
    def test_valid(self, amount, expected):
        assert parse_ether(amount) == expected

    def test_too_many_decimals(self):
        with pytest.raises(ValueError, match="Too many decimal places"):
            parse_ether("0.0000000000000000001")

    @pytest.mark.parametrize("amount", ["-1", "abc", "", "NaN", "Infinity"])
    def test_invalid(self, amount):
        with pytest.raises(ValueError, match="Invalid ether amount"):
            parse_ether(amount)


class TestFormatEther:
    @pytest.mark.parametrize(
        ("wei", "expected"),
        [
            (0, "0.0"),
            (WEI, "1.0"),
            (3 * WEI // 2, "1.5"),
            (5 * 10**16, "0.05"),
            (1, "0.000000000000000001"),
            (12 * WEI, "12.0"),
        ],
    )
    def test_format(self, wei, expected):
        assert format_ether(wei) == expected

    def test_parse_accepts_formatted(self):
        assert parse_ether(format_ether(123_456_789)) == 123_456_789
