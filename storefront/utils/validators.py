from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def sanitize_text(value: Any, max_length: int) -> str:
    """
    Removes control characters, trims and cuts the text to max_length.
    Applying it twice gives the same result.
    """
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    text = CONTROL_CHARS_RE.sub("", text).strip()
    if len(text) > max_length:
        text = text[:max_length].rstrip()
    return text


def sanitize_email(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def is_valid_email(email: str, max_length: int = 254) -> bool:
    if not email or len(email) > max_length:
        return False
    return bool(EMAIL_RE.match(email))


def to_decimal(value: Any) -> Optional[Decimal]:
    """Number or numeric string -> finite Decimal, anything else -> None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, Decimal)):
        raw = str(value)
    elif isinstance(value, str):
        raw = value.strip()
    else:
        return None
    try:
        d = Decimal(raw)
    except (InvalidOperation, ValueError):
        return None
    if not d.is_finite():
        return None
    return d


def is_number(value: Any) -> bool:
    """Real JSON number (bools and strings don't count)."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    return to_decimal(value) is not None


def clamp_int(value: Any, lo: int, hi: int, default: int) -> int:
    d = to_decimal(value)
    if d is None:
        return default
    # clamp before int(): a huge exponent would build a giant integer
    d = max(Decimal(lo), min(Decimal(hi), d))
    return int(d)


def clamp_decimal(value: Any, lo: int, hi: int, default: int = 0) -> Decimal:
    d = to_decimal(value)
    if d is None:
        return Decimal(default)
    return max(Decimal(lo), min(Decimal(hi), d))
