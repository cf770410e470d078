"""Chilean RUT helpers: cleaning, Módulo 11 check digit, validation, formatting."""

from __future__ import annotations

_MIN_LENGTH = 8  # 7-digit body + check digit


def clean_rut(value: str) -> str:
    """Strip dots and dashes and upper-case the check digit."""
    return value.replace(".", "").replace("-", "").upper()


def compute_check_digit(body: str) -> str:
    """Módulo 11 check digit for a numeric RUT body.

    Digits are weighted right-to-left with the cyclic multipliers 2..7.
    """
    total = 0
    multiplier = 2
    for ch in reversed(body):
        total += int(ch) * multiplier
        multiplier = 2 if multiplier == 7 else multiplier + 1

    expected = 11 - (total % 11)
    if expected == 11:
        return "0"
    if expected == 10:
        return "K"
    return str(expected)


def validate_rut(value) -> bool:
    """Return True if ``value`` is a RUT with a correct check digit.

    Accepts separators in any position (``12.345.678-5``, ``12345678-5``,
    ``123456785``) and a lower-case ``k``. Never raises.
    """
    if not value or not isinstance(value, str):
        return False

    cleaned = clean_rut(value)
    if len(cleaned) < _MIN_LENGTH:
        return False

    body, check_digit = cleaned[:-1], cleaned[-1]
    if not (body.isascii() and body.isdigit()):
        return False

    return compute_check_digit(body) == check_digit


def format_rut(value: str) -> str:
    """Render a RUT as ``12.345.678-5``. Input is returned unchanged if it is too short."""
    cleaned = clean_rut(value)
    if len(cleaned) < 2:
        return value
    body, check_digit = cleaned[:-1], cleaned[-1]
    groups = []
    while body:
        groups.insert(0, body[-3:])
        body = body[:-3]
    return f"{'.'.join(groups)}-{check_digit}"
