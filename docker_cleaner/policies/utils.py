import re
from datetime import datetime, timezone
from typing import Any


SECONDS_PER_DAY = 86400

_FRACTION_PATTERN = re.compile(r"(\.\d{6})\d+")


def parse_created_at(value: Any) -> datetime | None:
    """Parse a backend creation timestamp, returning None when it is unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        if value <= 0:
            return None
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip()
    if not text:
        return None
    # Docker reports nanoseconds, fromisoformat stops at microseconds.
    text = _FRACTION_PATTERN.sub(r"\1", text.replace("Z", "+00:00"))
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def age_in_days(created_at: datetime, now: datetime) -> int:
    seconds = (now - created_at).total_seconds()
    return int(seconds / SECONDS_PER_DAY)


def sanitize_count(value: Any) -> int:
    """Coerce a count query result to a non-negative int, 0 when malformed."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value if value >= 0 else 0
    text = "".join(str(value if value is not None else "").split())
    if not text.isdigit():
        return 0
    return int(text)
