from __future__ import annotations
import math
import re
from datetime import date, datetime, timezone
from typing import Any

_LEADING_FLOAT = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_or_zero(value: Any) -> float:
    """Lenient numeric parse: leading numeric prefix wins, anything else is 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        num = float(value)
    else:
        m = _LEADING_FLOAT.match(str(value))
        if not m:
            return 0.0
        try:
            num = float(m.group(0))
        except ValueError:
            return 0.0
    return num if math.isfinite(num) else 0.0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def long_date(d: date | None) -> str:
    # "October 18, 2026"
    if d is None:
        return ""
    return f"{d:%B} {d.day}, {d.year}"


def plain_number(value: float) -> str:
    """16.0 -> '16', 16.5 -> '16.5'."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))
