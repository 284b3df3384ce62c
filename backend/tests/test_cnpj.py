"""CNPJ formatting (progressive, for form inputs) and check-digit validation."""

import pytest

from stockroom.cnpj import format_cnpj, only_digits, validate_cnpj


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("", ""),
        ("1", "1"),
        ("11", "11"),
        ("112", "11.2"),
        ("1122", "11.22"),
        ("11222", "11.222"),
        ("112223", "11.222.3"),
        ("11222333", "11.222.333"),
        ("112223330", "11.222.333/0"),
        ("112223330001", "11.222.333/0001"),
        ("1122233300018", "11.222.333/0001-8"),
        ("11222333000181", "11.222.333/0001-81"),
    ],
)
def test_progressive_format(raw, expected):
    assert format_cnpj(raw) == expected


def test_format_ignores_punctuation_and_extra_digits():
    assert format_cnpj("11.222.333/0001-81") == "11.222.333/0001-81"
    assert format_cnpj("11222333000181999") == "11.222.333/0001-81"
    assert format_cnpj(None) == ""


def test_only_digits():
    assert only_digits("11.222.333/0001-81") == "11222333000181"
    assert only_digits(None) == ""


@pytest.mark.parametrize(
    "value",
    ["11222333000181", "11.222.333/0001-81", "12.345.678/0001-95"],
)
def test_valid(value):
    assert validate_cnpj(value)


@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        "1122233300018",       # too short
        "112223330001810",     # too long
        "11222333000182",      # wrong second check digit
        "11222333000191",      # wrong first check digit
        "11111111111111",      # repeated digit
        "00000000000000",
    ],
)
def test_invalid(value):
    assert not validate_cnpj(value)


def test_any_single_digit_change_invalidates():
    valid = "11222333000181"
    for position, original in enumerate(valid):
        for digit in "0123456789":
            if digit == original:
                continue
            mutated = valid[:position] + digit + valid[position + 1:]
            assert not validate_cnpj(mutated), mutated
