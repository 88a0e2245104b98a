"""Tests for small formatting and parsing helpers."""

import pytest

from utils.helpers import clamp, coerce_int, combo_key, pad2, parse_pasted_numbers, validate_number_range


def test_pad2():
    assert pad2(5) == "05"
    assert pad2(60) == "60"


def test_combo_key_sorts_numbers():
    assert combo_key([53, 4, 10]) == "04-10-53"


@pytest.mark.parametrize("value,expected", [(0, 1), (1, 1), (70, 60), (-3, 1), (33, 33)])
def test_clamp(value, expected):
    assert clamp(value, 1, 60) == expected


@pytest.mark.parametrize("value,expected", [
    (7, 7),
    ("07", 7),
    (" 12 ", 12),
    (7.0, 7),
    (7.5, None),
    ("x", None),
    ("", None),
    (None, None),
    (True, None),
])
def test_coerce_int(value, expected):
    assert coerce_int(value) == expected


def test_validate_number_range():
    assert validate_number_range(1)
    assert validate_number_range(60)
    assert not validate_number_range(0)
    assert not validate_number_range(61)


def test_parse_pasted_numbers_keeps_first_six():
    assert parse_pasted_numbers("04, 08 - 15;16 23 42 99") == ['04', '08', '15', '16', '23', '42']


def test_parse_pasted_numbers_empty():
    assert parse_pasted_numbers("") == []
    assert parse_pasted_numbers(None) == []
