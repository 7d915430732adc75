# gateway_cache/utils/ids.py
from __future__ import annotations

from typing import Any


def parse_snowflake(value: str | int | None) -> int | None:
    if value is None:
        return None
    return int(value)


def parse_optional_int(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)


def parse_bits(value: str | int | None) -> int:
    """Parse a permission bitfield, which the gateway sends as a decimal string."""
    if not value:
        return 0
    return int(value)
