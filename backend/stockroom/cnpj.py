# Overview: CNPJ (Brazilian company registry number) formatting and check-digit validation.

"""
A CNPJ is 14 digits: 12 base digits followed by two mod-11 check digits,
displayed as NN.NNN.NNN/NNNN-NN.

Each check digit is computed over the digits before it with weights that
start at (length - 7) and count down, wrapping from 2 back to 9.
"""

from __future__ import annotations

import re

_NON_DIGITS = re.compile(r"[^0-9]")

CNPJ_LENGTH = 14


def only_digits(value: str | None) -> str:
    if not value:
        return ""
    return _NON_DIGITS.sub("", value)


def format_cnpj(value: str | None) -> str:
    """
    Progressive display formatting, usable while the user is still typing.

    "11" -> "11", "11222" -> "11.222", "11222333" -> "11.222.333",
    "112223330001" -> "11.222.333/0001", "11222333000181" -> "11.222.333/0001-81".
    Digits beyond the 14th are dropped.
    """
    digits = only_digits(value)

    if len(digits) <= 2:
        return digits
    if len(digits) <= 5:
        return f"{digits[:2]}.{digits[2:]}"
    if len(digits) <= 8:
        return f"{digits[:2]}.{digits[2:5]}.{digits[5:]}"
    if len(digits) <= 12:
        return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:]}"
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:14]}"


def _check_digit(digits: str) -> int:
    total = 0
    weight = len(digits) - 7
    for ch in digits:
        total += int(ch) * weight
        weight -= 1
        if weight < 2:
            weight = 9
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def validate_cnpj(value: str | None) -> bool:
    """True if `value` (formatted or not) is a structurally valid CNPJ."""
    digits = only_digits(value)

    if len(digits) != CNPJ_LENGTH:
        return False

    # 00000000000000, 11111111111111, ... pass the checksum but are not issued
    if len(set(digits)) == 1:
        return False

    if _check_digit(digits[:12]) != int(digits[12]):
        return False
    if _check_digit(digits[:13]) != int(digits[13]):
        return False

    return True
