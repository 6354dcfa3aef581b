"""Identifier and timestamp helpers shared by traces and steps."""

import secrets
import time
from datetime import datetime, timedelta, timezone

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id(prefix: str) -> str:
    """Return a unique identifier such as ``trace_m1x2y3z4_9f8e7d6c5b4a``."""
    millis = time.time_ns() // 1_000_000
    return f"{prefix}_{_base36(millis)}_{secrets.token_hex(6)}"


def now() -> datetime:
    """Current UTC time truncated to whole milliseconds."""
    current = datetime.now(timezone.utc)
    return current.replace(microsecond=current.microsecond // 1000 * 1000)


def format_timestamp(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(text: str) -> datetime:
    """Parse a timestamp written by :func:`format_timestamp`."""
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def duration_ms(start: datetime, end: datetime) -> int:
    return (end - start) // timedelta(milliseconds=1)

