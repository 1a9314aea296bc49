"""
Input validators shared by the contact directory and API schemas
"""

import re
from typing import Optional


# Optional leading "+", then 7-20 of: digits, space, dash, parentheses, period
PHONE_PATTERN = re.compile(r"^\+?[0-9 \-().]{7,20}$")

MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15


def phone_digits(phone: str) -> str:
    """Strip everything but digits"""
    return re.sub(r"\D", "", phone or "")


def is_valid_phone(phone: Optional[str]) -> bool:
    """
    Loose E.164-compatible format check (not carrier validation).

    >>> is_valid_phone("+919876543210")
    True
    >>> is_valid_phone("555-0101")
    True
    >>> is_valid_phone("abc")
    False
    """
    if not phone:
        return False

    candidate = phone.strip()
    if not PHONE_PATTERN.match(candidate):
        return False

    digit_count = len(phone_digits(candidate))
    return MIN_PHONE_DIGITS <= digit_count <= MAX_PHONE_DIGITS
