"""
validation.py — Phone-number format checks.

Contacts store numbers in E.164 international format:

    +  country code (1–9 first digit)  subscriber digits
    └──────────── at most 15 digits total ─────────────┘

    +92123456789   valid
    0123456789     invalid (no leading +)
    +0123456789    invalid (leading digit 0)
"""

from __future__ import annotations

import re

E164_PATTERN = re.compile(r"\+[1-9]\d{1,14}")

E164_MESSAGE = (
    "Phone number must be in E.164 international format (e.g., +92123456789)"
)


def is_e164(phone: str) -> bool:
    return bool(E164_PATTERN.fullmatch(phone))


def validate_e164(phone: str) -> str:
    """Return *phone* unchanged, or raise ValueError with the format hint."""
    if not isinstance(phone, str) or not is_e164(phone):
        raise ValueError(E164_MESSAGE)
    return phone
